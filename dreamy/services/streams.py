"""Stream and lap normalisation ahead of mile-split interpolation.

GPS streams arrive as parallel arrays (distance, time, heart rate,
altitude). Interpolation needs a zero-based sequence in which distance and
time never go backwards, so noisy points that regress are dropped rather
than corrected. Laps are checked for granularity: a single 8-mile auto-lap
cannot be split into honest per-mile numbers.
"""

from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass, field
from statistics import median
from typing import Any, Iterable, Sequence

from pydantic import ValidationError

from dreamy.logging_config import log_context
from dreamy.validators import LapRow

logger = logging.getLogger(__name__)

EPS = 1e-6

METERS_PER_MILE = 1609.34
FEET_PER_METER = 3.28084

# Laps whose median length exceeds this are too coarse to interpolate ...
COARSE_LAP_MEDIAN_MILES = 1.25
# ... unless at least one lap is this short.
SHORT_LAP_MILES = 0.8


@dataclass(frozen=True)
class Sample:
    """One accepted stream point, relative to the start of the run."""
    distance_miles: float
    elapsed_seconds: float
    heart_rate: float | None = None
    altitude_feet: float | None = None


@dataclass
class StreamData:
    """Parallel stream arrays in miles, seconds, bpm and feet."""
    distance: list[float]
    time: list[float]
    heartrate: list[float] = field(default_factory=list)
    altitude: list[float] = field(default_factory=list)


@dataclass(frozen=True)
class Lap:
    """A device lap. Optional metrics are None when the device did not record them."""
    distance_miles: float
    duration_seconds: float
    avg_heart_rate: float | None = None
    max_heart_rate: float | None = None
    elevation_gain_feet: float | None = None


def _is_finite(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and math.isfinite(value)


def _optional_at(values: Sequence[float] | None, i: int) -> float | None:
    if values is None or i >= len(values):
        return None
    v = values[i]
    return float(v) if _is_finite(v) else None


def normalize_stream(stream: StreamData) -> list[Sample]:
    """Build a monotonic, zero-based sample sequence from raw stream arrays.

    Points with non-finite distance/time, points that move backwards in
    distance or time, and exact duplicates are skipped. Returns an empty
    list when fewer than two points survive.
    """
    n = min(len(stream.distance), len(stream.time))
    if n < 2:
        return []

    points: list[Sample] = []
    dropped = 0
    for i in range(n):
        distance = stream.distance[i]
        elapsed = stream.time[i]
        if not _is_finite(distance) or not _is_finite(elapsed):
            dropped += 1
            continue

        if points:
            last = points[-1]
            if distance < last.distance_miles - EPS or elapsed < last.elapsed_seconds - EPS:
                dropped += 1
                continue
            if abs(distance - last.distance_miles) <= EPS and abs(elapsed - last.elapsed_seconds) <= EPS:
                continue

        points.append(Sample(
            distance_miles=float(distance),
            elapsed_seconds=float(elapsed),
            heart_rate=_optional_at(stream.heartrate, i),
            altitude_feet=_optional_at(stream.altitude, i),
        ))

    if dropped:
        logger.debug(
            "Dropped %d of %d stream points", dropped, n,
            extra=log_context(dropped=dropped, points=n),
        )
    if len(points) < 2:
        return []

    start_distance = points[0].distance_miles
    start_time = points[0].elapsed_seconds
    return [
        Sample(
            distance_miles=max(0.0, p.distance_miles - start_distance),
            elapsed_seconds=max(0.0, p.elapsed_seconds - start_time),
            heart_rate=p.heart_rate,
            altitude_feet=p.altitude_feet,
        )
        for p in points
    ]


def clamp_to_common_length(stream: StreamData) -> StreamData:
    """Truncate all populated arrays to the shortest populated length.

    Empty heart-rate or altitude arrays stay empty. When distance or time is
    empty the whole stream comes back empty.
    """
    lengths = [
        len(stream.distance),
        len(stream.time),
        len(stream.heartrate) or len(stream.time),
        len(stream.altitude) or len(stream.time),
    ]
    n = min(lengths)
    if n <= 0:
        return StreamData(distance=[], time=[])
    return StreamData(
        distance=list(stream.distance[:n]),
        time=list(stream.time[:n]),
        heartrate=list(stream.heartrate[:n]),
        altitude=list(stream.altitude[:n]),
    )


def count_gps_gaps(distance: Sequence[float], time: Sequence[float]) -> int:
    """Count suspicious sample pairs: time gaps, teleports and backward jumps."""
    if len(distance) < 2 or len(time) < 2:
        return 0

    gaps = 0
    for i in range(1, min(len(distance), len(time))):
        dt = time[i] - time[i - 1]
        dd = distance[i] - distance[i - 1]
        if not math.isfinite(dt) or not math.isfinite(dd):
            continue
        if dt > 3:
            gaps += 1
        # 0.02 mi/s is 72 mph
        if dt > 0 and dd / dt > 0.02:
            gaps += 1
        if dd < -0.001:
            gaps += 1
    return gaps


def _stream_values(raw: dict[str, Any], key: str) -> list[float]:
    entry = raw.get(key)
    if isinstance(entry, dict):
        entry = entry.get("data")
    if not isinstance(entry, list):
        return []
    values = []
    for v in entry:
        try:
            values.append(float(v))
        except (TypeError, ValueError):
            values.append(math.nan)
    return values


def stream_from_strava(raw: dict[str, Any]) -> StreamData:
    """Convert a Strava streams payload (metres) into miles/feet arrays.

    Accepts both the keyed form (``{"distance": {"data": [...]}}``) and
    flat lists (``{"distance": [...]}``).
    """
    return StreamData(
        distance=[d / METERS_PER_MILE for d in _stream_values(raw, "distance")],
        time=_stream_values(raw, "time"),
        heartrate=_stream_values(raw, "heartrate"),
        altitude=[a * FEET_PER_METER for a in _stream_values(raw, "altitude")],
    )


def laps_from_rows(rows: Iterable[Any]) -> list[Lap]:
    """Coerce lap dict rows into Lap values, skipping rows that cannot be read."""
    laps: list[Lap] = []
    for row in rows:
        if isinstance(row, Lap):
            laps.append(row)
            continue
        try:
            parsed = LapRow.model_validate(row)
        except ValidationError:
            logger.warning("Skipping unreadable lap row", extra=log_context(row=row))
            continue
        laps.append(Lap(
            distance_miles=parsed.distance_miles if parsed.distance_miles is not None else 0.0,
            duration_seconds=parsed.duration_seconds if parsed.duration_seconds is not None else 0.0,
            avg_heart_rate=parsed.avg_heart_rate,
            max_heart_rate=parsed.max_heart_rate,
            elevation_gain_feet=parsed.elevation_gain_feet,
        ))
    return laps


def is_fine_grained_laps(laps: Sequence[Lap]) -> bool:
    """Whether laps are short enough to support per-mile interpolation."""
    distances = sorted(
        lap.distance_miles for lap in laps
        if _is_finite(lap.distance_miles) and lap.distance_miles > 0
    )
    if len(distances) < 2:
        return False
    return bool(median(distances) <= COARSE_LAP_MEDIAN_MILES or any(d <= SHORT_LAP_MILES for d in distances))
