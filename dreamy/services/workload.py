"""Acute:chronic workload ratio (ACWR) over the trailing four weeks.

The acute load is the last 7 days; the chronic load is the 28-day total
averaged per week. Risk bands are the usual sports-science cut-offs and are
fixed domain constants.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from dreamy.config import get_settings
from dreamy.services.training_load import workout_load
from dreamy.validators import local_naive, parse_workout_rows, window_start


class RiskLevel(str, Enum):
    LOW = "low"
    OPTIMAL = "optimal"
    HIGH = "high"
    VERY_HIGH = "very_high"


RISK_RECOMMENDATIONS: Mapping[RiskLevel, str] = MappingProxyType({
    RiskLevel.LOW: "Training load is low. Safe to increase volume or intensity.",
    RiskLevel.OPTIMAL: "Training load is in the optimal zone. Keep it up!",
    RiskLevel.HIGH: "Training load is elevated. Monitor for fatigue and consider backing off.",
    RiskLevel.VERY_HIGH: "Training load is very high. High injury risk - reduce intensity.",
})


@dataclass
class WeeklyLoadAnalysis:
    current_7_day_load: int
    previous_7_day_load: int
    four_week_avg_load: float
    acute_to_chronic_ratio: float
    risk_level: RiskLevel
    recommendation: str


def acute_to_chronic_ratio(acute: float, chronic_weekly_avg: float) -> float:
    """Ratio rounded to 2 places; 1.0 when there is no chronic load."""
    if chronic_weekly_avg > 0:
        return round(acute / chronic_weekly_avg, 2)
    return 1.0


def acwr_risk(ratio: float) -> RiskLevel:
    """Classify ACWR: <0.8 low, <=1.3 optimal, <=1.5 high, else very high."""
    if ratio < 0.8:
        return RiskLevel.LOW
    if ratio <= 1.3:
        return RiskLevel.OPTIMAL
    if ratio <= 1.5:
        return RiskLevel.HIGH
    return RiskLevel.VERY_HIGH


def weekly_load_analysis(rows: Iterable[Any], now: datetime | None = None) -> WeeklyLoadAnalysis:
    """Compare the last week's load against the four-week weekly average."""
    now = local_naive(now) if now is not None else datetime.now()
    settings = get_settings()
    since = window_start(now, settings.load_window_days)
    one_week_ago = now - timedelta(days=7)
    two_weeks_ago = now - timedelta(days=14)

    current = 0.0
    previous = 0.0
    total = 0.0
    for w in parse_workout_rows(rows):
        if w.date < since:
            continue
        load = workout_load(w)
        total += load
        if w.date >= one_week_ago:
            current += load
        elif w.date >= two_weeks_ago:
            previous += load

    four_week_avg = total / 4
    ratio = acute_to_chronic_ratio(current, four_week_avg)
    risk = acwr_risk(ratio)

    return WeeklyLoadAnalysis(
        current_7_day_load=round(current),
        previous_7_day_load=round(previous),
        four_week_avg_load=round(four_week_avg, 1),
        acute_to_chronic_ratio=ratio,
        risk_level=risk,
        recommendation=RISK_RECOMMENDATIONS[risk],
    )
