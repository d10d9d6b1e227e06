"""
Version tracking for the combined asset + schedule state.

Every accepted mutation calls `VersionTracker.bump()` inside its own transaction, so the
new state and the new version commit (or roll back) together. The bump is a single
`UPDATE ... SET version = version + 1` on one row; Postgres holds that row lock until
commit, which serialises concurrent writers and keeps versions strictly increasing.

Readers take a `snapshot()`: version, assets and rules are read and the version is read
again; if a writer committed in between, the read is retried so that the returned
version always describes exactly the returned state.
"""
import logging
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wallify.core.exceptions import ConflictError
from wallify.models.asset import Asset
from wallify.models.content_version import CONTENT_VERSION_ROW_ID, ContentVersion
from wallify.models.schedule_rule import ScheduleRule

logger = logging.getLogger(__name__)

SNAPSHOT_ATTEMPTS = 5


@dataclass(frozen=True)
class ContentSnapshot:
    version: int
    assets: list[Asset]
    rules: list[ScheduleRule]


class VersionTracker:
    """Reads and advances the content version within a caller's session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def ensure_row(self) -> None:
        exists = await self.db.execute(
            select(ContentVersion.id).where(ContentVersion.id == CONTENT_VERSION_ROW_ID)
        )
        if exists.scalar_one_or_none() is None:
            self.db.add(ContentVersion(id=CONTENT_VERSION_ROW_ID, version=0))
            await self.db.flush()

    async def current(self) -> int:
        result = await self.db.execute(
            select(ContentVersion.version).where(ContentVersion.id == CONTENT_VERSION_ROW_ID)
        )
        version = result.scalar_one_or_none()
        return version if version is not None else 0

    async def bump(self) -> int:
        """Advance the version as part of the caller's (uncommitted) mutation."""
        result = await self.db.execute(
            update(ContentVersion)
            .where(ContentVersion.id == CONTENT_VERSION_ROW_ID)
            .values(version=ContentVersion.version + 1)
        )
        if result.rowcount == 0:
            self.db.add(ContentVersion(id=CONTENT_VERSION_ROW_ID, version=1))
            await self.db.flush()
            version = 1
        else:
            version = await self.current()
        logger.debug("Content version advanced to %d", version)
        return version

    async def snapshot(self) -> ContentSnapshot:
        for attempt in range(1, SNAPSHOT_ATTEMPTS + 1):
            before = await self.current()

            assets_result = await self.db.execute(
                select(Asset)
                .order_by(Asset.order_index, Asset.created_at)
                .execution_options(populate_existing=True)
            )
            rules_result = await self.db.execute(
                select(ScheduleRule)
                .order_by(ScheduleRule.position, ScheduleRule.created_at)
                .execution_options(populate_existing=True)
            )
            assets = list(assets_result.scalars().all())
            rules = list(rules_result.scalars().all())

            after = await self.current()
            if before == after:
                return ContentSnapshot(version=after, assets=assets, rules=rules)
            logger.info(
                "Content changed during snapshot read (v%d -> v%d), retrying (%d/%d)",
                before, after, attempt, SNAPSHOT_ATTEMPTS,
            )

        raise ConflictError("Content is changing too quickly to read a consistent snapshot")
