"""
Lap-level distance allocation and statistics.

allocate_lap_distances() splits the activity's target distance across laps in
proportion to how hard each lap was (mean HR above resting). build_lap()
turns a synthesized track plus its source lap into the rebuilt Lap with
recomputed summary fields.
"""
import logging
from datetime import datetime
from statistics import mean
from typing import List, Optional, Sequence, Tuple

from trackforge.analysis.heart_rate import activity_level
from trackforge.synthesis.track import SynthesizedTrack
from trackforge.tcx.schema import Lap, SourceLap

logger = logging.getLogger(__name__)

# Rough calories per meter when the source lap doesn't say
CALORIES_PER_METER = 0.05

DEFAULT_INTENSITY = "Active"
DEFAULT_TRIGGER_METHOD = "Manual"


def allocate_lap_distances(laps: Sequence[SourceLap], total_distance: float) -> List[float]:
    """
    Share total_distance across laps by HR activity level.

    A lap's level is max(0, mean HR - 60). If every lap is at or below
    resting, the distance is split evenly. Allocations sum to total_distance.
    """
    if not laps:
        logger.warning("No laps to allocate distance across")
        return []

    levels = [
        activity_level(tp.heart_rate_value for tp in lap.trackpoints)
        for lap in laps
    ]
    total_level = sum(levels)

    if total_level <= 0:
        return [total_distance / len(laps)] * len(laps)

    return [(level / total_level) * total_distance for level in levels]


def _heart_rate_summary(track: SynthesizedTrack) -> Tuple[int, int]:
    hrs = [tp.heart_rate for tp in track.trackpoints if tp.heart_rate]
    if not hrs:
        return 0, 0
    return round(mean(hrs)), max(hrs)


def build_lap(
    source: SourceLap,
    track: SynthesizedTrack,
    target_distance: float,
    fallback_start: datetime,
) -> Lap:
    """
    Assemble the rebuilt Lap.

    Source values win where present; otherwise they're recomputed from the
    synthesized track (HR, time) or estimated (calories).
    """
    computed_avg_hr, computed_max_hr = _heart_rate_summary(track)

    start_time: Optional[datetime] = source.start_time
    if start_time is None and track.trackpoints:
        start_time = track.trackpoints[0].time

    return Lap(
        start_time=start_time or fallback_start,
        total_time_seconds=source.total_time_seconds or float(len(track.trackpoints)),
        distance_meters=target_distance,
        maximum_speed=track.max_speed,
        calories=source.calories or round(target_distance * CALORIES_PER_METER),
        average_heart_rate=(
            source.average_heart_rate.value if source.average_heart_rate else computed_avg_hr
        ),
        maximum_heart_rate=(
            source.maximum_heart_rate.value if source.maximum_heart_rate else computed_max_hr
        ),
        intensity=source.intensity or DEFAULT_INTENSITY,
        cadence=track.average_cadence,
        trigger_method=source.trigger_method or DEFAULT_TRIGGER_METHOD,
        trackpoints=track.trackpoints,
    )
