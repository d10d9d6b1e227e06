import enum
import uuid
from datetime import date, time

from sqlalchemy import Boolean, Date, Integer, String, Time
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from wallify.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from wallify.services.temporal import (
    Always,
    DateTimeRange,
    TemporalPredicate,
    WeekdayTimeRange,
    DAY_END,
    DAY_START,
)


class PredicateKind(str, enum.Enum):
    ALWAYS = "always"
    DATETIME_RANGE = "datetime_range"
    WEEKDAY_RANGE = "weekday_range"


class ScheduleRule(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "schedule_rules"

    # No ondelete cascade: rules may outlive their asset and are ignored by the resolver
    asset_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)

    predicate_kind: Mapped[str] = mapped_column(String(20), default=PredicateKind.ALWAYS.value, nullable=False)
    # always | datetime_range | weekday_range

    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    start_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    end_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    days_of_week: Mapped[list | None] = mapped_column(JSONB, nullable=True)
    # 0=Mon, 6=Sun

    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    # Store order; the first matching rule wins when two rules bind the same asset
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    @property
    def predicate(self) -> TemporalPredicate:
        start = self.start_time or DAY_START
        end = self.end_time or DAY_END
        if self.predicate_kind == PredicateKind.DATETIME_RANGE.value:
            return DateTimeRange(self.start_date, self.end_date, start, end)
        if self.predicate_kind == PredicateKind.WEEKDAY_RANGE.value:
            return WeekdayTimeRange(frozenset(self.days_of_week or ()), start, end)
        return Always()
