"""
Temporal predicates for schedule rules.

Every rule carries exactly one predicate, evaluated against the wall clock of the
display location:
  - Always            — matches any instant
  - DateTimeRange     — full calendar days from start_date to end_date, and a
                        time-of-day window on each of those days
  - WeekdayTimeRange  — a set of weekdays (0=Mon..6=Sun) and a time-of-day window

Time-of-day windows are inclusive on both ends at minute resolution and never wrap
past midnight, so 00:00-23:59 covers the whole day.
"""
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Union

DAY_START = time(0, 0)
DAY_END = time(23, 59)


def _minute_of(at: datetime) -> time:
    return at.time().replace(second=0, microsecond=0)


def _within_day_window(at: datetime, start: time, end: time) -> bool:
    current = _minute_of(at)
    return start.replace(second=0, microsecond=0) <= current <= end.replace(second=0, microsecond=0)


@dataclass(frozen=True)
class Always:
    def matches(self, at: datetime) -> bool:
        return True


@dataclass(frozen=True)
class DateTimeRange:
    start_date: date
    end_date: date
    start_time: time = DAY_START
    end_time: time = DAY_END

    def matches(self, at: datetime) -> bool:
        if not (self.start_date <= at.date() <= self.end_date):
            return False
        return _within_day_window(at, self.start_time, self.end_time)


@dataclass(frozen=True)
class WeekdayTimeRange:
    days_of_week: frozenset[int]
    start_time: time = DAY_START
    end_time: time = DAY_END

    def matches(self, at: datetime) -> bool:
        if at.weekday() not in self.days_of_week:
            return False
        return _within_day_window(at, self.start_time, self.end_time)


TemporalPredicate = Union[Always, DateTimeRange, WeekdayTimeRange]
