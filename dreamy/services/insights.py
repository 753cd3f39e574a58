"""Rule-based training insights and the combined coaching context.

Insights look at the trailing month: run frequency, easy/hard balance,
long-run presence, easy-pace progress and the weekly mileage trend. The
coaching context bundles insights with the recovery snapshot and the ACWR
analysis as plain JSON-ready data for prompt builders and dashboards.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Iterable

from dreamy.config import get_settings
from dreamy.logging_config import log_context
from dreamy.services.analytics import weekly_summary, workouts_frame
from dreamy.services.recovery import recovery_status
from dreamy.services.workload import weekly_load_analysis
from dreamy.validators import WorkoutRow, local_naive, parse_workout_rows, window_start

logger = logging.getLogger(__name__)

EASY_CATEGORIES = frozenset({"easy", "recovery"})
HARD_CATEGORIES = frozenset({"tempo", "interval", "threshold", "race", "speed"})
LONG_RUN_MILES = 10


class InsightType(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    SUGGESTION = "suggestion"
    ACHIEVEMENT = "achievement"


@dataclass(frozen=True)
class TrainingInsight:
    type: InsightType
    title: str
    message: str
    metric: str | None = None


def _category(w: WorkoutRow) -> str:
    return w.auto_category or w.zone_dominant or w.workout_type or ""


def _consistency(workouts: list[WorkoutRow], window_days: int) -> TrainingInsight | None:
    unique_days = len({w.day for w in workouts})
    runs_per_week = unique_days / window_days * 7
    if runs_per_week >= 4:
        return TrainingInsight(
            InsightType.SUCCESS, "Great Consistency",
            f"You're averaging {runs_per_week:.1f} runs per week. Consistency is key to improvement!",
            f"{runs_per_week:.1f} runs/week",
        )
    if runs_per_week < 2:
        return TrainingInsight(
            InsightType.SUGGESTION, "Build Consistency",
            "Try to run at least 3 times per week to maintain and build fitness.",
            f"{runs_per_week:.1f} runs/week",
        )
    return None


def _intensity_balance(workouts: list[WorkoutRow]) -> TrainingInsight | None:
    easy = sum(1 for w in workouts if _category(w) in EASY_CATEGORIES)
    hard = sum(1 for w in workouts if _category(w) in HARD_CATEGORIES)
    easy_pct = easy / len(workouts) * 100

    if easy_pct < 70 and hard > 2:
        return TrainingInsight(
            InsightType.WARNING, "Too Much Intensity",
            f"Only {round(easy_pct)}% of your runs are easy. Aim for 80% easy to prevent burnout.",
            f"{round(easy_pct)}% easy",
        )
    if easy_pct >= 75 and hard >= 1:
        return TrainingInsight(
            InsightType.SUCCESS, "Good Intensity Balance",
            "You have a healthy mix of easy and hard efforts.",
            f"{round(easy_pct)}% easy",
        )
    return None


def _long_runs(workouts: list[WorkoutRow]) -> TrainingInsight | None:
    has_long = any(
        w.workout_type == "long" or (w.distance_miles is not None and w.distance_miles >= LONG_RUN_MILES)
        for w in workouts
    )
    if not has_long and len(workouts) > 8:
        return TrainingInsight(
            InsightType.SUGGESTION, "Add a Long Run",
            "Consider adding a weekly long run to build endurance.",
        )
    return None


def _easy_pace_progress(workouts: list[WorkoutRow]) -> TrainingInsight | None:
    easy = sorted(
        (w for w in workouts if w.avg_pace_seconds and w.workout_type == "easy"),
        key=lambda w: w.date,
    )
    if len(easy) < 4:
        return None
    half = len(easy) // 2
    first = sum(w.avg_pace_seconds for w in easy[:half]) / half
    second = sum(w.avg_pace_seconds for w in easy[half:]) / (len(easy) - half)
    improvement = first - second
    if improvement > 5:
        return TrainingInsight(
            InsightType.ACHIEVEMENT, "Getting Faster!",
            f"Your easy pace has improved by {round(improvement)} seconds over the past month.",
            f"-{round(improvement)}s/mi",
        )
    return None


def _mileage_trend(workouts: list[WorkoutRow]) -> TrainingInsight | None:
    weekly = weekly_summary(workouts_frame(workouts))
    if len(weekly) < 3:
        return None
    miles = weekly.sort_values("week", ascending=False)["miles"].tolist()
    recent_avg = sum(miles[:2]) / 2
    previous_avg = sum(miles[2:]) / len(miles[2:])
    if previous_avg <= 0:
        return None

    change = (recent_avg - previous_avg) / previous_avg * 100
    if change > 15:
        return TrainingInsight(
            InsightType.WARNING, "Rapid Mileage Increase",
            f"Weekly mileage up {round(change)}%. Keep increases under 10% to prevent injury.",
            f"+{round(change)}%",
        )
    if 5 <= change <= 15:
        return TrainingInsight(
            InsightType.SUCCESS, "Safe Mileage Build",
            f"Weekly mileage up {round(change)}% - right in the sweet spot.",
            f"+{round(change)}%",
        )
    return None


def training_insights(rows: Iterable[Any], now: datetime | None = None) -> list[TrainingInsight]:
    """Up to `max_insights` observations about the trailing month of training."""
    now = local_naive(now) if now is not None else datetime.now()
    settings = get_settings()
    since = window_start(now, settings.insights_window_days)
    workouts = [w for w in parse_workout_rows(rows) if w.date >= since]

    if not workouts:
        return [TrainingInsight(
            InsightType.SUGGESTION, "Start Tracking",
            "Log your workouts to get personalized training insights.",
        )]

    candidates = [
        _consistency(workouts, settings.insights_window_days),
        _intensity_balance(workouts),
        _long_runs(workouts),
        _easy_pace_progress(workouts),
        _mileage_trend(workouts),
    ]
    insights = [i for i in candidates if i is not None]
    logger.debug(
        "Generated %d insights from %d workouts", len(insights), len(workouts),
        extra=log_context(workouts=len(workouts), insights=[i.title for i in insights]),
    )
    return insights[:settings.max_insights]


def _plain(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    return {k: v.value if isinstance(v, Enum) else v for k, v in pairs}


def coaching_context(rows: Iterable[Any], now: datetime | None = None) -> dict[str, Any]:
    """Recovery, workload and insights as one JSON-serialisable dict."""
    now = local_naive(now) if now is not None else datetime.now()
    workouts = parse_workout_rows(rows)
    return {
        "generated_at": now.isoformat(),
        "recovery": asdict(recovery_status(workouts, now), dict_factory=_plain),
        "weekly_load": asdict(weekly_load_analysis(workouts, now), dict_factory=_plain),
        "insights": [asdict(i, dict_factory=_plain) for i in training_insights(workouts, now)],
    }
