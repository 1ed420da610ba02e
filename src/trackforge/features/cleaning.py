"""
Per-sample range cleaning and derived metrics.

Values outside the configured bounds are nulled, never rejected: the sample
itself always survives so timing and lap membership stay intact.
"""
from typing import Optional, Tuple

from trackforge.config import ProcessingConfig


def clean_heart_rate(hr: Optional[int], config: ProcessingConfig) -> Optional[int]:
    """Return hr if it lies in [min_heart_rate, max_heart_rate], else None."""
    if hr is None or hr < config.min_heart_rate or hr > config.max_heart_rate:
        return None
    return hr


def clean_speed(speed: Optional[float], config: ProcessingConfig) -> Optional[float]:
    """Return speed if it lies in [min_speed_mps, max_speed_mps], else None."""
    if speed is None or speed < config.min_speed_mps or speed > config.max_speed_mps:
        return None
    return speed


def elevation_metrics(
    altitude: Optional[float],
    previous_altitude: Optional[float],
    time_delta_s: Optional[float],
    distance: Optional[float],
    speed: Optional[float],
) -> Tuple[Optional[float], Optional[float]]:
    """
    Compute (elevation_change_mps, grade_percent) against the previous sample.

    Elevation rate needs both altitudes and a positive time delta. Grade also
    needs the record to carry distance, and uses speed × Δt as the horizontal
    distance; it stays None when that estimate isn't positive.
    """
    if altitude is None or previous_altitude is None:
        return None, None
    if time_delta_s is None or time_delta_s <= 0:
        return None, None

    altitude_change = altitude - previous_altitude
    elevation_rate = altitude_change / time_delta_s

    grade: Optional[float] = None
    if distance is not None:
        horizontal = (speed or 0.0) * time_delta_s
        if horizontal > 0:
            grade = (altitude_change / horizontal) * 100.0

    return elevation_rate, grade


def is_uphill(grade: Optional[float], config: ProcessingConfig) -> Optional[bool]:
    if grade is None:
        return None
    return grade > config.grade_threshold
