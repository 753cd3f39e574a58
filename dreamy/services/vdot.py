"""VDOT estimation and training pace zones after Jack Daniels' Running Formula.

VDOT is a pseudo-VO2max derived from a race performance using the
Daniels/Gilbert oxygen-cost and drop-off equations. Training paces are
found by solving the oxygen-cost equation for the velocity at a given
fraction of VDOT, and are expressed in seconds per mile.

Reference: Daniels' Running Formula, 3rd Edition (2013).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from math import exp

METERS_PER_MILE = 1609.34

VDOT_MIN = 15.0
VDOT_MAX = 85.0
DEFAULT_VDOT = 30.0

# Condition corrections never remove more than this share of a finish time
MAX_CONDITION_CORRECTION = 0.15


@dataclass(frozen=True)
class PaceZones:
    """Training paces in seconds per mile."""
    vdot: float
    recovery: int
    easy: int
    general_aerobic: int
    marathon: int
    half_marathon: int
    tempo: int
    threshold: int
    vo2max: int
    interval: int
    repetition: int


# Fraction of VDOT each zone is run at
ZONE_FRACTIONS: dict[str, float] = {
    "recovery": 0.55,
    "easy": 0.65,
    "general_aerobic": 0.70,
    "marathon": 0.78,
    "half_marathon": 0.83,
    "tempo": 0.85,
    "threshold": 0.88,
    "vo2max": 0.95,
    "interval": 0.97,
    "repetition": 1.05,
}

# Share of a weather adjustment applied to the faster zones
_WEATHER_SCALE: dict[str, float] = {
    "threshold": 0.8,
    "vo2max": 0.5,
    "interval": 0.5,
    "repetition": 0.5,
}

# Standard race distances in metres
RACE_DISTANCES_M = {
    "Mile": 1609.34,
    "5K": 5000,
    "10K": 10000,
    "15K": 15000,
    "10 Mile": 16093,
    "Half Marathon": 21097,
    "Marathon": 42195,
}


def _vo2_from_velocity(v: float) -> float:
    """Daniels' oxygen cost equation: mL/kg/min from velocity in m/min."""
    return -4.60 + 0.182258 * v + 0.000104 * v * v


def _percent_max(t_min: float) -> float:
    """Fraction of VO2max sustainable for t_min minutes (Daniels' drop-off curve)."""
    return 0.8 + 0.1894393 * exp(-0.012778 * t_min) + 0.2989558 * exp(-0.1932605 * t_min)


def calculate_vdot(distance_m: float, time_seconds: float) -> float:
    """Estimate VDOT from a race distance (m) and finish time (seconds).

    Clamped to [15, 85] and rounded to one decimal. Non-positive inputs
    return the default VDOT of 30.
    """
    if distance_m <= 0 or time_seconds <= 0:
        return DEFAULT_VDOT
    t_min = time_seconds / 60.0
    vo2 = _vo2_from_velocity(distance_m / t_min)
    vdot = vo2 / _percent_max(t_min)
    return round(max(VDOT_MIN, min(VDOT_MAX, vdot)), 1)


def vdot_from_race(distance_label: str, time_seconds: float) -> float:
    """Convenience wrapper: estimate VDOT from a named distance and finish time."""
    dist_m = RACE_DISTANCES_M.get(distance_label)
    if dist_m is None:
        raise ValueError(f"Unknown distance: {distance_label}. Use one of {sorted(RACE_DISTANCES_M)}")
    return calculate_vdot(dist_m, time_seconds)


def elevation_pace_correction(elevation_gain_ft: float, distance_miles: float) -> int:
    """Seconds per mile lost to climbing: ~12 s/mi per 100 ft/mi of gain."""
    if distance_miles <= 0 or elevation_gain_ft <= 0:
        return 0
    return round((elevation_gain_ft / distance_miles) / 100 * 12)


def weather_pace_adjustment(temperature_f: float, humidity_pct: float, dew_point_f: float | None = None) -> int:
    """Seconds per mile to add for weather; 45F is treated as ideal.

    Heat costs 0.4 s/mi per degree up to 70F, 1.0 up to 85F and 1.5 beyond.
    Humidity only matters when it is also warm. Cold below 35F costs
    0.2 s/mi per degree. A dew point above 60F adds 0.3 s/mi per degree.
    """
    optimal = 45
    adjustment = 0.0

    if temperature_f > optimal:
        if temperature_f > 85:
            adjustment += (70 - optimal) * 0.4
            adjustment += (85 - 70) * 1.0
            adjustment += (temperature_f - 85) * 1.5
        elif temperature_f > 70:
            adjustment += (70 - optimal) * 0.4
            adjustment += (temperature_f - 70) * 1.0
        else:
            adjustment += (temperature_f - optimal) * 0.4

        if temperature_f > 65 and humidity_pct > 50:
            adjustment += (humidity_pct - 50) * 0.1
        elif temperature_f > 55 and humidity_pct > 60:
            adjustment += (humidity_pct - 60) * 0.05
    elif temperature_f < 35:
        adjustment += (35 - temperature_f) * 0.2

    if dew_point_f is not None and dew_point_f > 60:
        adjustment += (dew_point_f - 60) * 0.3

    return round(adjustment)


def calculate_adjusted_vdot(
    distance_m: float,
    time_seconds: float,
    temperature_f: float | None = None,
    humidity_pct: float | None = None,
    elevation_gain_ft: float | None = None,
) -> float:
    """VDOT after removing the weather and climbing penalty from the finish time."""
    distance_miles = distance_m / METERS_PER_MILE
    pace_adjustment = 0
    if temperature_f is not None and humidity_pct is not None:
        pace_adjustment += weather_pace_adjustment(temperature_f, humidity_pct)
    if elevation_gain_ft is not None and elevation_gain_ft > 0 and distance_miles > 0:
        pace_adjustment += elevation_pace_correction(elevation_gain_ft, distance_miles)

    if pace_adjustment <= 0:
        return calculate_vdot(distance_m, time_seconds)

    corrected = time_seconds - pace_adjustment * distance_miles
    floor = time_seconds * (1 - MAX_CONDITION_CORRECTION)
    return calculate_vdot(distance_m, max(corrected, floor))


def velocity_from_vdot(vdot: float, fraction: float) -> float:
    """Velocity (m/min) whose oxygen cost is `fraction` of VDOT."""
    a, b = 0.000104, 0.182258
    c = -4.60 - vdot * fraction
    return (-b + math.sqrt(b * b - 4 * a * c)) / (2 * a)


def _pace_per_mile(velocity_m_per_min: float) -> int:
    return round(METERS_PER_MILE / velocity_m_per_min * 60)


def calculate_pace_zones(vdot: float) -> PaceZones:
    """All training paces (sec/mile) for a VDOT."""
    paces = {zone: _pace_per_mile(velocity_from_vdot(vdot, f)) for zone, f in ZONE_FRACTIONS.items()}
    return PaceZones(vdot=vdot, **paces)


def adjust_pace_zones_for_weather(
    zones: PaceZones,
    temperature_f: float,
    humidity_pct: float,
    dew_point_f: float | None = None,
) -> PaceZones:
    """Slow every zone for the conditions; faster zones take a smaller share."""
    adjustment = weather_pace_adjustment(temperature_f, humidity_pct, dew_point_f)
    if adjustment == 0:
        return zones
    changes = {
        zone: getattr(zones, zone) + round(adjustment * _WEATHER_SCALE.get(zone, 1.0))
        for zone in ZONE_FRACTIONS
    }
    return replace(zones, **changes)


def estimate_vdot_from_easy_pace(easy_pace_sec_per_mile: float) -> float:
    """Back out VDOT from an easy pace, taking easy as 65% of VO2max."""
    if easy_pace_sec_per_mile <= 0:
        return DEFAULT_VDOT
    velocity = METERS_PER_MILE / (easy_pace_sec_per_mile / 60)
    return round(_vo2_from_velocity(velocity) / ZONE_FRACTIONS["easy"], 1)


def predict_race_time(vdot: float, distance_m: float) -> int:
    """Predicted finish time (seconds) for a distance at a VDOT."""
    seconds = distance_m / velocity_from_vdot(vdot, 0.80) * 60
    for _ in range(10):
        estimated = calculate_vdot(distance_m, seconds)
        if abs(estimated - vdot) < 0.1:
            break
        seconds = seconds / (vdot / estimated)
    return round(seconds)


def format_pace(total_seconds: float | None) -> str:
    """Format seconds-per-mile as 'M:SS'."""
    if not total_seconds:
        return "--:--"
    # 30+ min/mi is not meaningful pace data
    if total_seconds >= 1800:
        return "-"
    rounded = round(total_seconds)
    return f"{rounded // 60}:{rounded % 60:02d}"
