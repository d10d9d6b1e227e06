"""
Pydantic schemas for schedule rules.

Malformed predicates are rejected here, at write time; the resolver assumes every
stored rule is well formed.
"""
import uuid
from datetime import date, datetime, time

from pydantic import BaseModel, ConfigDict, Field, model_validator

from wallify.models.schedule_rule import PredicateKind


class RuleCreate(BaseModel):
    asset_id: uuid.UUID
    predicate_kind: PredicateKind = PredicateKind.DATETIME_RANGE
    start_date: date | None = None
    end_date: date | None = None
    start_time: time = time(0, 0)
    end_time: time = time(23, 59)
    days_of_week: list[int] | None = Field(None, max_length=7)
    enabled: bool = True

    @model_validator(mode="after")
    def check_predicate(self) -> "RuleCreate":
        if self.start_time > self.end_time:
            raise ValueError("start_time must not be after end_time (ranges do not wrap past midnight)")

        if self.predicate_kind == PredicateKind.DATETIME_RANGE:
            if self.start_date is None or self.end_date is None:
                raise ValueError("datetime_range rules need both start_date and end_date")
            if self.start_date > self.end_date:
                raise ValueError("end_date must be on or after start_date")
            self.days_of_week = None
        elif self.predicate_kind == PredicateKind.WEEKDAY_RANGE:
            if not self.days_of_week:
                raise ValueError("weekday_range rules need at least one day in days_of_week")
            if any(d < 0 or d > 6 for d in self.days_of_week):
                raise ValueError("days_of_week values must be 0 (Mon) through 6 (Sun)")
            self.days_of_week = sorted(set(self.days_of_week))
            self.start_date = None
            self.end_date = None
        else:
            self.start_date = None
            self.end_date = None
            self.days_of_week = None
        return self


class RuleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID | str
    asset_id: uuid.UUID | str
    predicate_kind: str
    start_date: date | None = None
    end_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    days_of_week: list[int] | None = None
    enabled: bool
    created_at: datetime | None = None
