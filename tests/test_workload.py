from datetime import datetime

import pytest

from dreamy.services.workload import (
    RiskLevel,
    acute_to_chronic_ratio,
    acwr_risk,
    weekly_load_analysis,
)

NOW = datetime(2026, 10, 19, 12, 0, 0)


@pytest.fixture(autouse=True)
def _default_window(monkeypatch):
    monkeypatch.delenv("LOAD_WINDOW_DAYS", raising=False)


def test_weekly_load_analysis_optimal():
    rows = [
        {"date": "2026-10-17", "training_load": 130},
        {"date": "2026-10-09", "training_load": 100},
        {"date": "2026-09-28", "training_load": 170},
        {"date": "2026-09-01", "training_load": 999},
    ]
    snap = weekly_load_analysis(rows, NOW)
    assert snap.current_7_day_load == 130
    assert snap.previous_7_day_load == 100
    assert snap.four_week_avg_load == 100.0
    assert snap.acute_to_chronic_ratio == 1.3
    assert snap.risk_level == RiskLevel.OPTIMAL
    assert snap.recommendation == "Training load is in the optimal zone. Keep it up!"


def test_weekly_load_analysis_spike():
    rows = [
        {"date": "2026-10-18", "training_load": 300},
        {"date": "2026-10-01", "training_load": 100},
    ]
    snap = weekly_load_analysis(rows, NOW)
    # 300 / (400 / 4)
    assert snap.acute_to_chronic_ratio == 3.0
    assert snap.risk_level == RiskLevel.VERY_HIGH
    assert snap.previous_7_day_load == 0


def test_weekly_load_analysis_empty():
    snap = weekly_load_analysis([], NOW)
    assert snap.current_7_day_load == 0
    assert snap.four_week_avg_load == 0.0
    assert snap.acute_to_chronic_ratio == 1.0
    assert snap.risk_level == RiskLevel.OPTIMAL


def test_weekly_load_estimates_missing_loads():
    rows = [{"date": "2026-10-18", "duration_minutes": 60, "workout_type": "interval"}]
    snap = weekly_load_analysis(rows, NOW)
    assert snap.current_7_day_load == 54
    assert snap.four_week_avg_load == 13.5
    assert snap.acute_to_chronic_ratio == 4.0


def test_ratio_zero_chronic():
    assert acute_to_chronic_ratio(50, 0) == 1.0
    assert acute_to_chronic_ratio(0, 0) == 1.0


def test_acwr_risk_bands():
    assert acwr_risk(0.79) == RiskLevel.LOW
    assert acwr_risk(0.8) == RiskLevel.OPTIMAL
    assert acwr_risk(1.3) == RiskLevel.OPTIMAL
    assert acwr_risk(1.31) == RiskLevel.HIGH
    assert acwr_risk(1.5) == RiskLevel.HIGH
    assert acwr_risk(1.51) == RiskLevel.VERY_HIGH
