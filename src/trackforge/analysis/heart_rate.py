"""
Heart rate zone classification and lap heart-rate summaries.
"""
from statistics import mean
from typing import Iterable, List, Optional

# ─── HR Zone Classification ────────────────────────────────────────────────────

# 5-zone model based on % of max HR
_ZONE_BOUNDARIES = [0.60, 0.70, 0.80, 0.90]  # lower bounds for zones 2-5


def classify_hr_zone(heart_rate: Optional[int], max_hr: Optional[int]) -> Optional[int]:
    """
    Classify a heart rate reading into zones 1-5 using % of max HR.

    Zone 1 (< 60%): very easy, recovery
    Zone 2 (60-70%): aerobic base
    Zone 3 (70-80%): moderate aerobic (tempo)
    Zone 4 (80-90%): threshold
    Zone 5 (>= 90%): max effort / VO2max

    Args:
        heart_rate: current HR in bpm, or None
        max_hr: athlete's maximum heart rate in bpm

    Returns:
        Zone number 1-5, or None when either value is missing or zero.
    """
    if not heart_rate or not max_hr:
        return None
    pct = heart_rate / max_hr
    for zone, boundary in enumerate(_ZONE_BOUNDARIES, start=2):
        if pct < boundary:
            return zone - 1
    return 5


# ─── Lap summaries ─────────────────────────────────────────────────────────────

# HR treated as "no activity" when allocating distance across laps
BASELINE_RESTING_HR = 60


def mean_heart_rate(values: Iterable[Optional[int]]) -> float:
    """
    Mean HR over a lap's points. Missing readings count as 0 so a lap with
    sparse HR is weighted down rather than skipped. Empty input → 0.0.
    """
    hrs: List[int] = [v or 0 for v in values]
    if not hrs:
        return 0.0
    return mean(hrs)


def activity_level(values: Iterable[Optional[int]]) -> float:
    """How far a lap's mean HR sits above resting (never negative)."""
    return max(0.0, mean_heart_rate(values) - BASELINE_RESTING_HR)
