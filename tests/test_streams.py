"""Tests for stream normalisation and lap helpers."""

from __future__ import annotations

import math

import numpy as np
import pytest

from dreamy.services.streams import (
    Lap,
    StreamData,
    clamp_to_common_length,
    count_gps_gaps,
    is_fine_grained_laps,
    laps_from_rows,
    normalize_stream,
    stream_from_strava,
)


def test_normalize_shifts_to_origin_and_drops_noise():
    stream = StreamData(
        distance=[5.0, 5.1, 5.05, math.nan, 5.1, 5.3],
        time=[100, 130, 140, 150, 130, 190],
        heartrate=[150, 151, 152, 153, 154, 155],
    )
    points = normalize_stream(stream)
    assert len(points) == 3
    assert points[0].distance_miles == 0.0
    assert points[0].elapsed_seconds == 0.0
    assert points[1].distance_miles == pytest.approx(0.1)
    assert points[1].elapsed_seconds == 30
    assert points[2].distance_miles == pytest.approx(0.3)
    assert points[2].elapsed_seconds == 90
    assert [p.heart_rate for p in points] == [150, 151, 155]


def test_normalize_drops_time_regression():
    stream = StreamData(distance=[0.0, 0.1, 0.2], time=[0, 30, 20])
    points = normalize_stream(stream)
    assert len(points) == 2


def test_normalize_needs_two_points():
    assert normalize_stream(StreamData(distance=[1.0], time=[0])) == []
    assert normalize_stream(StreamData(distance=[1.0, 1.0], time=[5, 5])) == []


def test_normalize_optional_channels_become_none():
    stream = StreamData(
        distance=[0.0, 0.1, 0.2],
        time=[0, 30, 60],
        heartrate=[150],
        altitude=[math.nan, 100.0, 101.0],
    )
    points = normalize_stream(stream)
    assert points[0].heart_rate == 150
    assert points[1].heart_rate is None
    assert points[0].altitude_feet is None
    assert points[1].altitude_feet == 100.0


def test_normalize_is_monotonic():
    distance = [0.0, 0.05, 0.04, 0.1, 0.2, 0.19, 0.3, 0.35, 0.5, 0.45, 0.6]
    time = [0, 20, 25, 40, 35, 80, 120, 110, 200, 210, 240]
    points = normalize_stream(StreamData(distance=distance, time=time))
    for prev, curr in zip(points, points[1:]):
        assert curr.distance_miles >= prev.distance_miles
        assert curr.elapsed_seconds >= prev.elapsed_seconds


def test_normalize_uses_shorter_of_distance_and_time():
    points = normalize_stream(StreamData(distance=[0.0, 0.1, 0.2, 0.3], time=[0, 30]))
    assert len(points) == 2


def test_clamp_to_common_length():
    stream = StreamData(
        distance=[0, 1, 2, 3, 4],
        time=[0, 1, 2, 3],
        heartrate=[],
        altitude=[10, 11, 12],
    )
    clamped = clamp_to_common_length(stream)
    assert clamped.distance == [0, 1, 2]
    assert clamped.time == [0, 1, 2]
    assert clamped.heartrate == []
    assert clamped.altitude == [10, 11, 12]


def test_clamp_empty_when_time_missing():
    clamped = clamp_to_common_length(StreamData(distance=[0, 1], time=[]))
    assert clamped.distance == []
    assert clamped.time == []


def test_count_gps_gaps():
    distance = [0.0, 0.01, 0.02, 0.5, 0.49]
    time = [0, 1, 5, 6, 7]
    # one time gap, one teleport, one backward jump
    assert count_gps_gaps(distance, time) == 3


def test_count_gps_gaps_short_stream():
    assert count_gps_gaps([0.0], [0]) == 0


def test_stream_from_strava_converts_units():
    raw = {
        "distance": {"data": [0, 1609.34]},
        "time": {"data": [0, 480]},
        "heartrate": {"data": [140, 150]},
        "altitude": {"data": [10, 20]},
    }
    stream = stream_from_strava(raw)
    assert stream.distance == pytest.approx([0.0, 1.0])
    assert stream.time == [0.0, 480.0]
    assert stream.heartrate == [140.0, 150.0]
    assert stream.altitude == pytest.approx([32.8084, 65.6168])


def test_stream_from_strava_flat_lists_and_missing_channels():
    stream = stream_from_strava({"distance": [0, 1609.34], "time": [0, "480"]})
    assert stream.time == [0.0, 480.0]
    assert stream.heartrate == []
    assert stream.altitude == []


def test_laps_from_rows_coerces_and_skips():
    laps = laps_from_rows([
        {"distance_miles": "1.0", "duration_seconds": 480, "avg_heart_rate": 150},
        {"distance_miles": None, "duration_seconds": 300},
        "not a lap",
    ])
    assert len(laps) == 2
    assert laps[0] == Lap(distance_miles=1.0, duration_seconds=480.0, avg_heart_rate=150.0)
    assert laps[1].distance_miles == 0.0
    assert laps[1].elevation_gain_feet is None


def test_single_lap_is_too_coarse():
    assert is_fine_grained_laps([Lap(2.0, 960)]) is False


def test_coarse_laps_rejected():
    assert is_fine_grained_laps([Lap(3.0, 1500), Lap(3.0, 1500)]) is False


def test_mile_laps_accepted():
    assert is_fine_grained_laps([Lap(1.0, 480)] * 3) is True


def test_one_short_lap_rescues_coarse_median():
    assert is_fine_grained_laps([Lap(8.0, 3840), Lap(0.5, 240)]) is True


def test_unmeasurable_laps_ignored_for_granularity():
    assert is_fine_grained_laps([Lap(math.nan, 100), Lap(-1.0, 100), Lap(1.0, 480)]) is False


def test_normalize_accepts_numpy_scalars():
    stream = StreamData(
        distance=list(np.array([0.0, 0.5, 1.0])),
        time=list(np.array([0, 240, 480])),
        heartrate=list(np.array([150, 152, 154])),
        altitude=list(np.array([10, 12, 11])),
    )
    points = normalize_stream(stream)
    assert len(points) == 3
    assert points[2].elapsed_seconds == 480.0
    assert [p.heart_rate for p in points] == [150.0, 152.0, 154.0]
    assert points[1].altitude_feet == 12.0


def test_numpy_lap_distances_count_for_granularity():
    laps = [Lap(np.int64(1), 480.0), Lap(np.int64(1), 490.0)]
    assert is_fine_grained_laps(laps) is True
