"""Training load estimates for workouts without a device-measured load.

Two heuristics live here:

- estimate_load: duration * intensity^2, used by the fatigue and ACWR
  models. Squaring the intensity factor makes hard sessions cost
  disproportionately more than their duration alone.
- calculate_workout_load: duration * intensity with a long-run bonus and a
  pace adjustment, used for the CTL/ATL/TSB fitness trend.

Workout types are matched case-insensitively; unknown types fall back to
the easy (or "other") factor rather than being rejected.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from dreamy.validators import WorkoutRow

DEFAULT_WORKOUT_TYPE = "easy"

INTENSITY_FACTORS: Mapping[str, float] = MappingProxyType({
    "recovery": 0.5,
    "easy": 0.65,
    "long": 0.7,
    "steady": 0.75,
    "tempo": 0.85,
    "threshold": 0.9,
    "interval": 0.95,
    "race": 1.0,
})

FITNESS_INTENSITY_FACTORS: Mapping[str, float] = MappingProxyType({
    "recovery": 0.5,
    "easy": 0.6,
    "long": 0.65,
    "steady": 0.75,
    "tempo": 0.85,
    "interval": 1.0,
    "race": 1.1,
    "cross_train": 0.4,
    "other": 0.6,
})

# Easy-effort benchmark for the pace adjustment (10:00/mi)
EASY_BENCHMARK_PACE = 600
# Pace adjustment only applies between 4:00 and 15:00 per mile
MIN_MEANINGFUL_PACE = 240
MAX_MEANINGFUL_PACE = 900


@dataclass(frozen=True)
class WorkoutLoadInput:
    """The fields of a workout that load estimation reads."""
    duration_minutes: float | None
    avg_pace_seconds: float | None
    workout_type: str | None


def _normalize_type(workout_type: str | None) -> str:
    return (workout_type or "").strip().lower()


def intensity_factor(workout_type: str | None) -> float:
    """Intensity factor for a workout type, defaulting to easy."""
    return INTENSITY_FACTORS.get(_normalize_type(workout_type), INTENSITY_FACTORS[DEFAULT_WORKOUT_TYPE])


def estimate_load(duration_minutes: float | None, pace_seconds: float | None, workout_type: str | None) -> int:
    """Estimate load as round(duration * intensity^2).

    A missing, zero or non-finite duration contributes nothing (0). Pace is
    accepted for signature compatibility with stored rows but does not enter
    the estimate.
    """
    if not duration_minutes or not math.isfinite(duration_minutes) or duration_minutes < 0:
        return 0
    intensity = intensity_factor(workout_type)
    return round(duration_minutes * intensity ** 2)


def estimate_load_for(inputs: WorkoutLoadInput) -> int:
    return estimate_load(inputs.duration_minutes, inputs.avg_pace_seconds, inputs.workout_type)


def workout_load(row: WorkoutRow) -> float:
    """Stored load when present (a stored 0 is kept), otherwise the estimate."""
    if row.training_load is not None and math.isfinite(row.training_load):
        return float(row.training_load)
    return float(estimate_load(row.duration_minutes, row.avg_pace_seconds, row.workout_type))


def calculate_workout_load(
    duration_minutes: float,
    workout_type: str | None,
    distance_miles: float | None = None,
    avg_pace_seconds: float | None = None,
) -> int:
    """Fitness-trend load: duration * intensity, with long-run and pace adjustments."""
    if not duration_minutes or not math.isfinite(duration_minutes) or duration_minutes < 0:
        return 0
    intensity = FITNESS_INTENSITY_FACTORS.get(_normalize_type(workout_type), FITNESS_INTENSITY_FACTORS["other"])
    load = duration_minutes * intensity

    # 0.5% endurance bonus per minute over an hour
    if duration_minutes > 60:
        load *= 1 + (duration_minutes - 60) * 0.005

    if avg_pace_seconds and distance_miles and distance_miles > 0:
        if MIN_MEANINGFUL_PACE <= avg_pace_seconds <= MAX_MEANINGFUL_PACE:
            load *= math.sqrt(EASY_BENCHMARK_PACE / avg_pace_seconds)

    return round(load)
