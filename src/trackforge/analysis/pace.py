"""Pace conversion helpers."""
from typing import Optional


def pace_from_speed_ms(speed_ms: Optional[float]) -> Optional[float]:
    """
    Convert speed in m/s to pace in seconds per kilometer.

    Returns:
        Pace in seconds/km, or None if speed is missing, zero or negative.
    """
    if speed_ms is None or speed_ms <= 0:
        return None
    return 1000.0 / speed_ms


def pace_min_per_km(speed_ms: Optional[float]) -> Optional[float]:
    """Same as pace_from_speed_ms but in minutes per kilometer."""
    pace = pace_from_speed_ms(speed_ms)
    if pace is None:
        return None
    return pace / 60.0


def cadence_from_speed(speed_ms: float) -> int:
    """Rough running cadence estimate for a synthesized speed (0 when stopped)."""
    if speed_ms <= 0:
        return 0
    return round(75 + speed_ms * 5)
