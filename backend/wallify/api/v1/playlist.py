"""
Read endpoints polled by display clients. Responses must never be cached.
"""
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from wallify.db.session import get_db
from wallify.schemas.playlist import PlaylistResponse, VersionResponse
from wallify.services.playlist_service import get_current_playlist
from wallify.services.version_service import VersionTracker

router = APIRouter(tags=["playlist"])

NO_STORE = "no-store, no-cache, must-revalidate, max-age=0"


def _no_store(response: Response) -> None:
    response.headers["Cache-Control"] = NO_STORE
    response.headers["Pragma"] = "no-cache"


@router.get("/version", response_model=VersionResponse)
async def get_version(response: Response, db: AsyncSession = Depends(get_db)):
    _no_store(response)
    return VersionResponse(version=await VersionTracker(db).current())


@router.get("/current-playlist", response_model=PlaylistResponse)
async def current_playlist(response: Response, db: AsyncSession = Depends(get_db)):
    """Resolved playlist for this instant, together with the version it was built from."""
    _no_store(response)
    return await get_current_playlist(db)
