"""Pydantic models for the rows handed to the metric services.

Rows arrive from persistence and import collaborators as plain dicts. These
models coerce them into typed values; numeric sanity (NaN, negative
durations) is left to the services, which filter rather than reject.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from dreamy.logging_config import log_context

logger = logging.getLogger(__name__)

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Date-only workouts are anchored at local noon so that timezone shifts
# never move them onto a neighbouring day.
LOCAL_NOON = dt.time(12, 0)


def local_naive(value: dt.datetime) -> dt.datetime:
    """Convert an aware datetime to naive local time; naive values pass through."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def window_start(now: dt.datetime, days: int) -> dt.datetime:
    """Midnight of the first calendar day inside a trailing window."""
    return dt.datetime.combine((now - dt.timedelta(days=days)).date(), dt.time.min)


class WorkoutRow(BaseModel):
    model_config = ConfigDict(extra="ignore")

    date: dt.datetime
    duration_minutes: Optional[float] = None
    distance_miles: Optional[float] = None
    avg_pace_seconds: Optional[float] = None
    workout_type: Optional[str] = None
    training_load: Optional[float] = None
    auto_category: Optional[str] = None
    zone_dominant: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def anchor_plain_dates(cls, v):
        if isinstance(v, dt.datetime):
            return v
        if isinstance(v, dt.date):
            return dt.datetime.combine(v, LOCAL_NOON)
        if isinstance(v, str) and _DATE_ONLY.match(v.strip()):
            return dt.datetime.combine(dt.date.fromisoformat(v.strip()), LOCAL_NOON)
        return v

    @field_validator("date")
    @classmethod
    def naive_local(cls, v):
        return local_naive(v)

    @field_validator("workout_type", "auto_category", "zone_dominant")
    @classmethod
    def blank_to_none(cls, v):
        if v is None:
            return None
        v = v.strip().lower()
        return v or None

    @property
    def day(self) -> dt.date:
        return self.date.date()


class LapRow(BaseModel):
    model_config = ConfigDict(extra="ignore")

    distance_miles: Optional[float] = None
    duration_seconds: Optional[float] = None
    avg_heart_rate: Optional[float] = None
    max_heart_rate: Optional[float] = None
    elevation_gain_feet: Optional[float] = None


def parse_workout_rows(rows: Iterable[Any]) -> list[WorkoutRow]:
    """Validate workout rows, skipping (and logging) any that cannot be coerced."""
    parsed: list[WorkoutRow] = []
    for row in rows:
        if isinstance(row, WorkoutRow):
            parsed.append(row)
            continue
        try:
            parsed.append(WorkoutRow.model_validate(row))
        except ValidationError as e:
            ref = row.get("date") if isinstance(row, dict) else None
            logger.warning(
                "Skipping invalid workout row (date=%s): %d errors", ref, e.error_count(),
                extra=log_context(date=ref, errors=e.error_count()),
            )
    return parsed
