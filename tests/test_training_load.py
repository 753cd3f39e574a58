"""Tests for training load estimation."""

from __future__ import annotations

import math

import pytest

from dreamy.services.training_load import (
    INTENSITY_FACTORS,
    WorkoutLoadInput,
    calculate_workout_load,
    estimate_load,
    estimate_load_for,
    intensity_factor,
    workout_load,
)
from dreamy.validators import WorkoutRow


def test_estimate_load_interval_and_easy():
    assert estimate_load(60, None, "interval") == 54
    assert estimate_load(60, None, "easy") == 25


def test_estimate_load_missing_duration():
    assert estimate_load(None, 480, "tempo") == 0
    assert estimate_load(0, 480, "tempo") == 0
    assert estimate_load(math.nan, 480, "tempo") == 0


def test_unknown_type_defaults_to_easy():
    assert estimate_load(60, None, "aqua_jogging") == estimate_load(60, None, "easy")
    assert estimate_load(60, None, None) == estimate_load(60, None, "easy")


def test_type_lookup_case_insensitive():
    assert intensity_factor(" TEMPO ") == 0.85
    assert estimate_load(60, None, "Tempo") == 43


def test_load_non_decreasing_in_duration():
    for workout_type in INTENSITY_FACTORS:
        loads = [estimate_load(d, None, workout_type) for d in range(0, 300)]
        assert loads == sorted(loads)


def test_load_increases_with_intensity():
    ordered = sorted(INTENSITY_FACTORS, key=INTENSITY_FACTORS.get)
    loads = [estimate_load(120, None, t) for t in ordered]
    assert all(a < b for a, b in zip(loads, loads[1:]))


def test_intensity_table_is_read_only():
    with pytest.raises(TypeError):
        INTENSITY_FACTORS["easy"] = 1.0  # type: ignore[index]


def test_estimate_load_for_input():
    assert estimate_load_for(WorkoutLoadInput(duration_minutes=60, avg_pace_seconds=None, workout_type="race")) == 60


def test_workout_load_prefers_stored_value():
    row = WorkoutRow(date="2026-10-01", duration_minutes=60, workout_type="race", training_load=80)
    assert workout_load(row) == 80


def test_workout_load_keeps_stored_zero():
    row = WorkoutRow(date="2026-10-01", duration_minutes=60, workout_type="race", training_load=0)
    assert workout_load(row) == 0


def test_workout_load_estimates_when_absent():
    row = WorkoutRow(date="2026-10-01", duration_minutes=60, workout_type="interval")
    assert workout_load(row) == 54


def test_fitness_load_basic():
    assert calculate_workout_load(60, "easy") == 36


def test_fitness_load_long_run_bonus():
    # 90 * 0.65 * (1 + 30 * 0.005)
    assert calculate_workout_load(90, "long") == 67


def test_fitness_load_pace_adjustment():
    # 60 * 0.85 * sqrt(600 / 300)
    assert calculate_workout_load(60, "tempo", distance_miles=12, avg_pace_seconds=300) == 72
    # out-of-range pace is ignored
    assert calculate_workout_load(60, "tempo", distance_miles=4, avg_pace_seconds=1000) == 51


def test_fitness_load_unknown_type_uses_other():
    assert calculate_workout_load(60, "yoga") == 36
    assert calculate_workout_load(0, "race") == 0
