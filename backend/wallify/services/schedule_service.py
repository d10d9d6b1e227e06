"""Schedule rule storage - binds assets to temporal predicates."""
import logging
import uuid
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from wallify.core.exceptions import NotFoundError
from wallify.models.schedule_rule import ScheduleRule
from wallify.schemas.schedule import RuleCreate
from wallify.services.version_service import VersionTracker

logger = logging.getLogger(__name__)


class ScheduleService:
    """Business logic for schedule rules. Every mutation advances the content version."""

    @staticmethod
    async def list_rules(db: AsyncSession) -> Sequence[ScheduleRule]:
        result = await db.execute(
            select(ScheduleRule).order_by(ScheduleRule.position, ScheduleRule.created_at)
        )
        return result.scalars().all()

    @staticmethod
    async def get_rule(db: AsyncSession, rule_id: uuid.UUID) -> ScheduleRule:
        result = await db.execute(select(ScheduleRule).where(ScheduleRule.id == rule_id))
        rule = result.scalar_one_or_none()
        if not rule:
            raise NotFoundError(f"Schedule rule {rule_id} not found")
        return rule

    @staticmethod
    async def create_rule(db: AsyncSession, data: RuleCreate) -> ScheduleRule:
        # The asset must exist at write time; later deletion leaves a dangling rule
        from wallify.services.asset_service import get_asset
        await get_asset(db, data.asset_id)

        max_position = (await db.execute(select(func.max(ScheduleRule.position)))).scalar()
        rule = ScheduleRule(
            **data.model_dump(exclude={"predicate_kind"}),
            predicate_kind=data.predicate_kind.value,
            position=0 if max_position is None else max_position + 1,
        )
        db.add(rule)
        await db.flush()
        await VersionTracker(db).bump()
        await db.refresh(rule)
        logger.info("Schedule rule %s (%s) created for asset %s", rule.id, rule.predicate_kind, rule.asset_id)
        return rule

    @staticmethod
    async def toggle_rule(db: AsyncSession, rule_id: uuid.UUID) -> ScheduleRule:
        rule = await ScheduleService.get_rule(db, rule_id)
        rule.enabled = not rule.enabled
        await db.flush()
        await VersionTracker(db).bump()
        await db.refresh(rule)
        return rule

    @staticmethod
    async def delete_rule(db: AsyncSession, rule_id: uuid.UUID) -> None:
        rule = await ScheduleService.get_rule(db, rule_id)
        await db.delete(rule)
        await db.flush()
        await VersionTracker(db).bump()
        logger.info("Schedule rule %s deleted", rule_id)
