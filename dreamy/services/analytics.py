"""Fitness trend analytics: CTL / ATL / TSB, ramp rate and weekly summaries.

- Chronic Training Load (CTL, "fitness"): 42-day exponentially weighted
  average of daily load
- Acute Training Load (ATL, "fatigue"): 7-day exponentially weighted average
- Training Stress Balance (TSB, "form"): CTL - ATL

Positive TSB means fresh but possibly losing fitness; negative TSB means
fatigued but building. Rest days count, so gaps are filled with zero load
before the averages run.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterable

import pandas as pd

from dreamy.services.training_load import calculate_workout_load, workout_load
from dreamy.validators import parse_workout_rows

CTL_DAYS = 42
ATL_DAYS = 7


@dataclass(frozen=True)
class DailyLoad:
    day: date
    load: float


@dataclass(frozen=True)
class FitnessPoint:
    """A single day's fitness/fatigue state."""
    day: date
    daily_load: float
    ctl: float  # Chronic Training Load (fitness)
    atl: float  # Acute Training Load (fatigue)
    tsb: float  # Training Stress Balance (form)


@dataclass(frozen=True)
class RampRateRisk:
    level: str  # safe | moderate | elevated | high
    label: str
    message: str
    recommendation: str | None


def _decay(days: int) -> float:
    return 1 - math.exp(-1 / days)


def fill_daily_load_gaps(loads: Iterable[DailyLoad], start: date, end: date) -> list[DailyLoad]:
    """One entry per day from start to end, summing same-day loads and filling gaps with 0."""
    by_day: dict[date, float] = {}
    for entry in loads:
        by_day[entry.day] = by_day.get(entry.day, 0.0) + entry.load

    filled: list[DailyLoad] = []
    current = start
    while current <= end:
        filled.append(DailyLoad(day=current, load=by_day.get(current, 0.0)))
        current += timedelta(days=1)
    return filled


def calculate_fitness_metrics(daily_loads: Iterable[DailyLoad]) -> list[FitnessPoint]:
    """Compute the CTL/ATL/TSB series for chronologically sorted daily loads."""
    ctl_k = _decay(CTL_DAYS)
    atl_k = _decay(ATL_DAYS)
    ctl = 0.0
    atl = 0.0
    points: list[FitnessPoint] = []

    for entry in sorted(daily_loads, key=lambda d: d.day):
        ctl = ctl + ctl_k * (entry.load - ctl)
        atl = atl + atl_k * (entry.load - atl)
        points.append(FitnessPoint(
            day=entry.day,
            daily_load=entry.load,
            ctl=round(ctl, 1),
            atl=round(atl, 1),
            tsb=round(ctl - atl, 1),
        ))
    return points


def daily_loads_from_workouts(rows: Iterable[Any]) -> list[DailyLoad]:
    """Fitness-trend load per workout row, keyed by calendar day."""
    loads = []
    for w in parse_workout_rows(rows):
        if w.training_load is not None and math.isfinite(w.training_load):
            load = float(w.training_load)
        else:
            load = float(calculate_workout_load(
                w.duration_minutes or 0,
                w.workout_type,
                w.distance_miles,
                w.avg_pace_seconds,
            ))
        loads.append(DailyLoad(day=w.day, load=load))
    return loads


def fitness_trend(rows: Iterable[Any], start: date, end: date) -> list[FitnessPoint]:
    """CTL/ATL/TSB for every day from start to end."""
    daily = [d for d in daily_loads_from_workouts(rows) if start <= d.day <= end]
    return calculate_fitness_metrics(fill_daily_load_gaps(daily, start, end))


def fitness_status(tsb: float) -> tuple[str, str]:
    """Classify form from TSB as (status, label)."""
    if tsb > 20:
        return "fresh", "Well Rested"
    if tsb > 5:
        return "optimal", "Race Ready"
    if tsb > -10:
        return "optimal", "Training"
    if tsb > -25:
        return "tired", "Fatigued"
    return "overreached", "Overreached"


def optimal_load_range(current_ctl: float) -> tuple[int, int]:
    """Weekly load band of 80-120% of seven days at the current CTL."""
    weekly_target = current_ctl * 7
    return round(weekly_target * 0.8), round(weekly_target * 1.2)


def rolling_load(daily_loads: Iterable[DailyLoad], days: int = 7) -> float:
    """Total load of the most recent `days` entries."""
    recent = sorted(daily_loads, key=lambda d: d.day, reverse=True)[:days]
    return sum(d.load for d in recent)


def ramp_rate(metrics: list[FitnessPoint], weeks: int = 4) -> float | None:
    """CTL change per week over the trailing `weeks`; None without a week of data."""
    if len(metrics) < 7:
        return None
    end_idx = len(metrics) - 1
    start_idx = max(0, end_idx - weeks * 7)
    if end_idx - start_idx < 7:
        return None
    actual_weeks = (end_idx - start_idx) / 7
    return round((metrics[end_idx].ctl - metrics[start_idx].ctl) / actual_weeks, 1)


def ramp_rate_risk(rate: float | None) -> RampRateRisk:
    """Injury-risk band for a CTL ramp rate (points per week).

    Under 5 is conservative, 5-8 moderate, 8-10 aggressive, over 10 high risk.
    """
    if rate is None:
        return RampRateRisk("safe", "Insufficient Data", "Not enough training history to calculate ramp rate", None)
    if rate < 0:
        return RampRateRisk(
            "safe", "Decreasing", f"Fitness declining at {abs(rate):.1f} pts/week",
            "Consider increasing training volume gradually to maintain fitness" if rate < -5 else None,
        )
    if rate < 5:
        return RampRateRisk("safe", "Conservative", f"Building at {rate:.1f} pts/week", None)
    if rate < 8:
        return RampRateRisk("moderate", "Moderate", f"Building at {rate:.1f} pts/week", None)
    if rate < 10:
        return RampRateRisk(
            "elevated", "Aggressive", f"Ramping at {rate:.1f} pts/week",
            "Consider adding an extra recovery day or reducing volume by 10%",
        )
    return RampRateRisk(
        "high", "High Risk", f"Rapid ramp at {rate:.1f} pts/week",
        "High injury risk - schedule a recovery week soon and reduce intensity",
    )


def weekly_summary(logs_df: pd.DataFrame) -> pd.DataFrame:
    """Aggregate workouts into weekly totals of miles, minutes, load and runs.

    Expects columns: date, distance_miles, duration_minutes, load.
    Returns a DataFrame with columns: week, miles, minutes, load, runs.
    """
    columns = ["week", "miles", "minutes", "load", "runs"]
    if logs_df.empty:
        return pd.DataFrame(columns=columns)
    d = logs_df.copy()
    d["date"] = pd.to_datetime(d["date"])
    d["week"] = d["date"].dt.to_period("W").astype(str)
    out = d.groupby("week", as_index=False).agg(
        miles=("distance_miles", "sum"),
        minutes=("duration_minutes", "sum"),
        load=("load", "sum"),
        runs=("date", "count"),
    )
    return out[columns]


def workouts_frame(rows: Iterable[Any]) -> pd.DataFrame:
    """Workout rows as a DataFrame ready for weekly_summary."""
    records = [
        {
            "date": w.date,
            "distance_miles": w.distance_miles or 0.0,
            "duration_minutes": w.duration_minutes or 0.0,
            "load": workout_load(w),
        }
        for w in parse_workout_rows(rows)
    ]
    return pd.DataFrame(records, columns=["date", "distance_miles", "duration_minutes", "load"])
