"""Fatigue and recovery estimate over the trailing few days of training.

Each recent workout's load decays with a 24-hour half-life; the decayed sum
is scaled onto 0-100 and mapped to a form status. Recovery time comes from
the most recent workout's type. Nothing is persisted: the snapshot is
recomputed from the workout rows on every call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from dreamy.config import get_settings
from dreamy.logging_config import log_context
from dreamy.services.training_load import DEFAULT_WORKOUT_TYPE, workout_load
from dreamy.validators import WorkoutRow, local_naive, parse_workout_rows, window_start

logger = logging.getLogger(__name__)

FATIGUE_HALF_LIFE_HOURS = 24.0

BASE_RECOVERY_HOURS: Mapping[str, int] = MappingProxyType({
    "recovery": 12,
    "easy": 18,
    "long": 36,
    "steady": 24,
    "tempo": 30,
    "threshold": 36,
    "interval": 36,
    "race": 72,
})
DEFAULT_RECOVERY_HOURS = 24


class FormStatus(str, Enum):
    PEAKED = "peaked"
    FRESH = "fresh"
    NEUTRAL = "neutral"
    TIRED = "tired"
    VERY_TIRED = "very_tired"


# Upper bounds (exclusive) on the fatigue factor for each status
_FORM_THRESHOLDS: tuple[tuple[int, FormStatus], ...] = (
    (20, FormStatus.PEAKED),
    (35, FormStatus.FRESH),
    (55, FormStatus.NEUTRAL),
    (75, FormStatus.TIRED),
)

RECOVERY_DESCRIPTIONS: Mapping[FormStatus, str] = MappingProxyType({
    FormStatus.PEAKED: "Fully recovered - prime for racing",
    FormStatus.FRESH: "Well recovered - ready for any workout",
    FormStatus.NEUTRAL: "Normal fatigue - standard training OK",
    FormStatus.TIRED: "Accumulated fatigue - prioritize recovery",
    FormStatus.VERY_TIRED: "High fatigue - rest strongly recommended",
})


@dataclass
class FatigueSnapshot:
    fatigue_factor: int              # 0-100
    form_status: FormStatus
    recovery_hours: int              # hours until recovered from the last workout
    ready_for_hard_workout: bool
    ready_for_easy_run: bool
    recovery_description: str
    suggested_next_workout: str


def fully_rested() -> FatigueSnapshot:
    """Snapshot for an athlete with no workouts in the window."""
    return FatigueSnapshot(
        fatigue_factor=10,
        form_status=FormStatus.FRESH,
        recovery_hours=0,
        ready_for_hard_workout=True,
        ready_for_easy_run=True,
        recovery_description="Well rested",
        suggested_next_workout="Any workout type",
    )


def hours_between(earlier: datetime, later: datetime) -> float:
    return (later - earlier).total_seconds() / 3600.0


def decay_factor(hours_since: float) -> float:
    """Fraction of a workout's load still carried after hours_since."""
    return 0.5 ** (max(0.0, hours_since) / FATIGUE_HALF_LIFE_HOURS)


def form_status(fatigue_factor: int) -> FormStatus:
    for upper, status in _FORM_THRESHOLDS:
        if fatigue_factor < upper:
            return status
    return FormStatus.VERY_TIRED


def recovery_hours_needed(workout_type: str | None) -> int:
    key = (workout_type or DEFAULT_WORKOUT_TYPE).strip().lower()
    return BASE_RECOVERY_HOURS.get(key, DEFAULT_RECOVERY_HOURS)


def fatigue_factor(workouts: Iterable[WorkoutRow], now: datetime) -> int:
    """Decayed load of the given workouts, scaled onto 0-100."""
    total = sum(workout_load(w) * decay_factor(hours_between(w.date, now)) for w in workouts)
    return max(0, min(100, round(total / 2)))


def readiness(recovery_remaining: float, fatigue: int, hours_since_last: float) -> tuple[bool, bool, str]:
    """Return (ready_for_hard, ready_for_easy, suggestion)."""
    if recovery_remaining <= 0 and fatigue < 50:
        return True, True, "Ready for quality workout or long run"
    if recovery_remaining <= 6 and fatigue < 65:
        return False, True, "Easy run or recovery jog recommended"
    if fatigue < 80:
        return False, hours_since_last > 12, "Light activity or rest day"
    return False, False, "Rest day recommended"


def recovery_status(rows: Iterable[Any], now: datetime | None = None) -> FatigueSnapshot:
    """Estimate fatigue, form and readiness from recent workout rows.

    Rows outside the trailing recovery window are ignored, so callers may
    pass a wider fetch.
    """
    now = local_naive(now) if now is not None else datetime.now()
    settings = get_settings()
    since = window_start(now, settings.recovery_window_days)

    recent = [w for w in parse_workout_rows(rows) if w.date >= since]
    if not recent:
        return fully_rested()

    fatigue = fatigue_factor(recent, now)
    status = form_status(fatigue)

    last = max(recent, key=lambda w: w.date)
    hours_since_last = max(0.0, hours_between(last.date, now))
    recovery_remaining = max(0.0, recovery_hours_needed(last.workout_type) - hours_since_last)

    ready_hard, ready_easy, suggestion = readiness(recovery_remaining, fatigue, hours_since_last)
    logger.debug(
        "Recovery snapshot from %d workouts: fatigue=%d status=%s",
        len(recent), fatigue, status.value,
        extra=log_context(
            workouts=len(recent),
            fatigue=fatigue,
            form_status=status,
            recovery_hours=round(recovery_remaining),
        ),
    )

    return FatigueSnapshot(
        fatigue_factor=fatigue,
        form_status=status,
        recovery_hours=round(recovery_remaining),
        ready_for_hard_workout=ready_hard,
        ready_for_easy_run=ready_easy,
        recovery_description=RECOVERY_DESCRIPTIONS[status],
        suggested_next_workout=suggestion,
    )
