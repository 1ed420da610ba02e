"""
Heart rate → running speed model.

Intensity t is the HR's position between the floor and max HR. Speed grows
with t^1.5, so easy efforts stay near walking pace and only high HR reaches
sprint speed. Below the floor the athlete is assumed to be standing on the
sideline and the speed is exactly 0.
"""
import random
from typing import Optional

from trackforge.config import SpeedDistanceConfig

_INTENSITY_EXPONENT = 1.5


def calculate_speed_from_hr(
    hr: Optional[float],
    config: SpeedDistanceConfig,
    rng=random,
) -> float:
    """
    Estimate instantaneous speed (m/s) from heart rate.

    Args:
        hr: heart rate in bpm (None counts as 0)
        config: speed model parameters
        rng: random source exposing random(); pass a seeded random.Random
             for reproducible output

    Returns:
        Speed in m/s, never negative. 0.0 when hr < floor_hr.
    """
    hr = hr or 0
    if hr < config.floor_hr:
        return 0.0

    hr_range = config.max_hr - config.floor_hr
    if hr_range <= 0:
        intensity = 1.0
    else:
        intensity = max(0.0, min(1.0, (hr - config.floor_hr) / hr_range))

    base_speed = config.min_active_speed + (
        config.max_speed - config.min_active_speed
    ) * intensity ** _INTENSITY_EXPONENT

    variability = 1 + (rng.random() - 0.5) * config.speed_variability
    return max(0.0, base_speed * variability)
