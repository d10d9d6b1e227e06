"""
Schedule rule endpoints — bind assets to time windows.
"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from wallify.db.session import get_db
from wallify.schemas.schedule import RuleCreate, RuleResponse
from wallify.services.schedule_service import ScheduleService

router = APIRouter(prefix="/schedule", tags=["schedule"])


@router.get("", response_model=List[RuleResponse])
async def list_rules(db: AsyncSession = Depends(get_db)):
    """List all schedule rules in store order."""
    return await ScheduleService.list_rules(db)


@router.post("", response_model=RuleResponse, status_code=status.HTTP_201_CREATED)
async def create_rule(data: RuleCreate, db: AsyncSession = Depends(get_db)):
    """Create a rule. Malformed predicates are rejected with 422."""
    rule = await ScheduleService.create_rule(db, data)
    await db.commit()
    return rule


@router.patch("/{rule_id}/toggle", response_model=RuleResponse)
async def toggle_rule(rule_id: UUID, db: AsyncSession = Depends(get_db)):
    rule = await ScheduleService.toggle_rule(db, rule_id)
    await db.commit()
    return rule


@router.delete("/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rule(rule_id: UUID, db: AsyncSession = Depends(get_db)):
    await ScheduleService.delete_rule(db, rule_id)
    await db.commit()
