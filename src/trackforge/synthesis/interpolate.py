"""
Fallback generators for trackpoint fields the source didn't record.

All are stateless functions of the sample index, so a trackpoint can always
be completed even when the input is sparse or degenerate.
"""
import math
import random
from datetime import datetime, timedelta

from trackforge.synthesis.geo import offset_position
from trackforge.tcx.schema import Position

# Elevation wobble: radians per sample
_ALTITUDE_FREQUENCY = 0.1

# Assumed pace for index-based distance
_FALLBACK_SPEED_MPS = 3.0

_BASE_HR = 140
_HR_SWING = 20
_HR_FREQUENCY = 0.05
_HR_NOISE = 10
_MIN_HR = 60


def interpolate_altitude(index: int, base_altitude: float, amplitude: float = 2.0) -> float:
    """Gentle sinusoidal terrain around base_altitude."""
    return base_altitude + amplitude * math.sin(index * _ALTITUDE_FREQUENCY)


def interpolate_time(index: int, base_time: datetime) -> datetime:
    """Uniform 1 Hz sampling from base_time."""
    return base_time + timedelta(seconds=index)


def interpolate_distance(index: int) -> float:
    """Cumulative distance at a constant assumed speed."""
    return index * _FALLBACK_SPEED_MPS


def interpolate_heart_rate(index: int, max_hr: int, rng=random) -> int:
    """Slowly oscillating HR with a little noise, clamped to [60, max_hr]."""
    variation = _HR_SWING * math.sin(index * _HR_FREQUENCY) + (rng.random() - 0.5) * _HR_NOISE
    return max(_MIN_HR, min(max_hr, round(_BASE_HR + variation)))


def interpolate_position(index: int, total_points: int, center: Position, radius_m: float) -> Position:
    """One lap of a circle around `center`, spread evenly over the points."""
    angle = (index / max(total_points, 1)) * 2 * math.pi
    return offset_position(
        center,
        north_m=radius_m * math.sin(angle),
        east_m=radius_m * math.cos(angle),
    )
