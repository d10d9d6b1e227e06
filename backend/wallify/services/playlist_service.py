import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from wallify.config import settings
from wallify.schemas.playlist import PlaylistResponse
from wallify.services.playlist_resolver import resolve_playlist, to_local
from wallify.services.version_service import VersionTracker

logger = logging.getLogger(__name__)


async def get_current_playlist(db: AsyncSession, at_time: datetime | None = None) -> PlaylistResponse:
    """Resolve the playlist over one consistent snapshot of the store."""
    if at_time is None:
        at_time = datetime.now(timezone.utc)

    snapshot = await VersionTracker(db).snapshot()
    now = to_local(at_time, settings.DISPLAY_TIMEZONE)
    playlist = resolve_playlist(snapshot.assets, snapshot.rules, now)

    logger.debug("Resolved %d entries at %s for v%d", len(playlist), now.isoformat(), snapshot.version)
    return PlaylistResponse(version=snapshot.version, playlist=playlist)
