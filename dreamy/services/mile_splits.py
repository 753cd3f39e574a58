"""Per-mile splits interpolated from GPS streams or device laps.

Two paths produce the same MileSplit records:

- Stream path: find the elapsed time at each whole-mile boundary by linear
  interpolation between the bracketing samples, then summarise heart rate
  and elevation gain inside each boundary window.
- Lap path: treat each lap as constant pace and pour its distance into a
  running one-mile bucket, splitting a lap across as many mile boundaries as
  it spans.

The stream path is preferred when both inputs are available; laps are the
fallback (see resolve_mile_splits).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from dreamy.logging_config import log_context
from dreamy.services.streams import EPS, Lap, Sample, StreamData, is_fine_grained_laps, normalize_stream

logger = logging.getLogger(__name__)

# Trailing distance below this is rounding residue, not a partial mile.
PARTIAL_MILE_MIN = 1e-4
# A stream shorter than this with no full mile yields no splits.
MIN_STREAM_MILES = 0.2
# Splits within this of one mile are reported as full miles.
FULL_MILE_TOLERANCE = 0.01

# Plausible heart-rate band (exclusive)
HR_FLOOR = 40
HR_CEILING = 240


class LapType(str, Enum):
    MILE_LAP = "interpolated_mile_lap"
    PARTIAL_LAP = "interpolated_partial_lap"
    MILE_STREAM = "interpolated_mile_stream"
    PARTIAL_STREAM = "interpolated_partial_stream"


@dataclass(frozen=True)
class MileSplit:
    lap_number: int
    distance_miles: float
    duration_seconds: int
    avg_pace_seconds: int
    avg_heart_rate: int | None
    max_heart_rate: int | None
    elevation_gain_feet: int | None
    lap_type: LapType


def _round(value: float) -> int:
    """Round half up, so 0.5 s always goes to the slower side."""
    return int(math.floor(value + 0.5))


def _round_distance(distance_miles: float) -> float:
    return _round(distance_miles * 100) / 100


def _positive(value: float | None) -> bool:
    return value is not None and math.isfinite(value) and value > 0


# ---------------------------------------------------------------------------
# Lap path
# ---------------------------------------------------------------------------

class _MileBucket:
    """Accumulates fractional lap contributions until a full mile is reached."""

    def __init__(self) -> None:
        self.distance = 0.0
        self.seconds = 0.0
        self.hr_weighted = 0.0
        self.hr_weight = 0.0
        self.max_hr: float | None = None
        self.elevation = 0.0
        self.has_elevation = False

    def add(self, lap: Lap, take_distance: float, take_seconds: float, portion: float) -> None:
        self.distance += take_distance
        self.seconds += take_seconds
        if _positive(lap.avg_heart_rate):
            self.hr_weighted += lap.avg_heart_rate * take_distance
            self.hr_weight += take_distance
        if _positive(lap.max_heart_rate):
            self.max_hr = lap.max_heart_rate if self.max_hr is None else max(self.max_hr, lap.max_heart_rate)
        if lap.elevation_gain_feet is not None and math.isfinite(lap.elevation_gain_feet):
            self.has_elevation = True
            self.elevation += lap.elevation_gain_feet * portion

    @property
    def is_full(self) -> bool:
        return self.distance >= 1 - EPS

    def to_split(self, mile_number: int, full: bool) -> MileSplit:
        if full:
            distance = 1.0
            pace = self.seconds
        else:
            distance = _round_distance(self.distance)
            pace = self.seconds / self.distance if self.distance > 0 else 0.0
        return MileSplit(
            lap_number=mile_number,
            distance_miles=distance,
            duration_seconds=_round(self.seconds),
            avg_pace_seconds=_round(pace),
            avg_heart_rate=_round(self.hr_weighted / self.hr_weight) if self.hr_weight > 0 else None,
            max_heart_rate=_round(self.max_hr) if self.max_hr is not None else None,
            elevation_gain_feet=_round(self.elevation) if self.has_elevation else None,
            lap_type=LapType.MILE_LAP if full else LapType.PARTIAL_LAP,
        )


def build_mile_splits_from_laps(laps: Sequence[Lap]) -> list[MileSplit]:
    """Interpolate per-mile splits from device laps.

    Returns an empty list when the laps are too coarse (see
    is_fine_grained_laps) to support honest per-mile numbers.
    """
    if not is_fine_grained_laps(laps):
        logger.debug(
            "Laps too coarse for mile interpolation (%d laps)", len(laps),
            extra=log_context(laps=len(laps)),
        )
        return []

    splits: list[MileSplit] = []
    bucket = _MileBucket()
    mile_number = 1

    for lap in laps:
        if not _positive(lap.distance_miles) or not _positive(lap.duration_seconds):
            continue
        lap_distance = float(lap.distance_miles)
        sec_per_mile = lap.duration_seconds / lap_distance
        remaining = lap_distance

        while remaining > EPS:
            needed = max(1 - bucket.distance, 0.0)
            take = min(remaining, needed)
            bucket.add(lap, take, sec_per_mile * take, take / lap_distance)
            remaining -= take

            if bucket.is_full:
                splits.append(bucket.to_split(mile_number, full=True))
                mile_number += 1
                bucket = _MileBucket()

    if bucket.distance > PARTIAL_MILE_MIN:
        splits.append(bucket.to_split(mile_number, full=False))

    return splits


# ---------------------------------------------------------------------------
# Stream path
# ---------------------------------------------------------------------------

def interpolate_time_at_distance(points: Sequence[Sample], target_miles: float) -> float:
    """Elapsed seconds at a distance, clamped to the ends of the stream."""
    if target_miles <= points[0].distance_miles:
        return points[0].elapsed_seconds

    for prev, curr in zip(points, points[1:]):
        if curr.distance_miles + EPS < target_miles:
            continue
        segment = curr.distance_miles - prev.distance_miles
        if segment <= EPS:
            return curr.elapsed_seconds
        ratio = max(0.0, min(1.0, (target_miles - prev.distance_miles) / segment))
        return prev.elapsed_seconds + ratio * (curr.elapsed_seconds - prev.elapsed_seconds)

    return points[-1].elapsed_seconds


def _summarize_heart_rate(points: Sequence[Sample], start: float, end: float) -> tuple[int | None, int | None]:
    values = [
        p.heart_rate for p in points
        if start <= p.elapsed_seconds <= end
        and p.heart_rate is not None
        and HR_FLOOR < p.heart_rate < HR_CEILING
    ]
    if not values:
        return None, None
    return _round(sum(values) / len(values)), _round(max(values))


def _summarize_elevation_gain(points: Sequence[Sample], start: float, end: float) -> int | None:
    gain = 0.0
    has_altitude = False

    for prev, curr in zip(points, points[1:]):
        if curr.elapsed_seconds <= start or prev.elapsed_seconds >= end:
            continue
        if prev.altitude_feet is None or curr.altitude_feet is None:
            continue
        has_altitude = True

        interval = curr.elapsed_seconds - prev.elapsed_seconds
        if interval <= EPS:
            continue
        overlap = min(end, curr.elapsed_seconds) - max(start, prev.elapsed_seconds)
        if overlap <= EPS:
            continue

        delta = curr.altitude_feet - prev.altitude_feet
        if delta > 0:
            gain += delta * (overlap / interval)

    return _round(gain) if has_altitude else None


def build_mile_splits_from_stream(stream: StreamData) -> list[MileSplit]:
    """Interpolate per-mile splits from GPS stream arrays (miles/seconds)."""
    points = normalize_stream(stream)
    if len(points) < 2:
        return []

    total = points[-1].distance_miles
    full_miles = math.floor(total + EPS)
    if full_miles <= 0 and total < MIN_STREAM_MILES:
        return []

    boundaries = [float(m) for m in range(full_miles + 1)]
    if total - full_miles > PARTIAL_MILE_MIN:
        boundaries.append(total)

    splits: list[MileSplit] = []
    for i in range(1, len(boundaries)):
        distance = boundaries[i] - boundaries[i - 1]
        if distance <= EPS:
            continue

        start = interpolate_time_at_distance(points, boundaries[i - 1])
        end = interpolate_time_at_distance(points, boundaries[i])
        duration = end - start
        if duration <= EPS:
            continue
        pace = duration / distance
        if not math.isfinite(pace) or pace <= 0:
            continue

        avg_hr, max_hr = _summarize_heart_rate(points, start, end)
        full = abs(distance - 1) < FULL_MILE_TOLERANCE
        splits.append(MileSplit(
            lap_number=i,
            distance_miles=1.0 if full else _round_distance(distance),
            duration_seconds=_round(duration),
            avg_pace_seconds=_round(pace),
            avg_heart_rate=avg_hr,
            max_heart_rate=max_hr,
            elevation_gain_feet=_summarize_elevation_gain(points, start, end),
            lap_type=LapType.MILE_STREAM if full else LapType.PARTIAL_STREAM,
        ))

    return splits


def resolve_mile_splits(
    stream: StreamData | None = None,
    laps: Sequence[Lap] | None = None,
) -> tuple[list[MileSplit], str | None]:
    """Pick the best available split source.

    Returns (splits, source) where source is "stream", "laps" or None.
    """
    if stream is not None:
        splits = build_mile_splits_from_stream(stream)
        if splits:
            return splits, "stream"
    if laps:
        splits = build_mile_splits_from_laps(laps)
        if splits:
            return splits, "laps"
    return [], None
