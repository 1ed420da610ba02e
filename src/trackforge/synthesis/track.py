"""
Per-lap track synthesis.

synthesize_track() is the main path: it models speed from heart rate,
integrates distance at 1 s spacing, fills missing position/altitude/time,
then rescales distance and speed so the lap ends exactly on its allocated
distance. Relative pacing inside the lap is preserved by the rescale.

fill_missing_fields() is the lenient path: keep whatever the source has and
fill the gaps from the index-based interpolators, without modeling speed.
"""
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from statistics import mean
from typing import List, Optional, Sequence

from trackforge.analysis.pace import cadence_from_speed
from trackforge.config import SpeedDistanceConfig
from trackforge.synthesis.interpolate import (
    interpolate_altitude,
    interpolate_distance,
    interpolate_heart_rate,
    interpolate_position,
    interpolate_time,
)
from trackforge.synthesis.motion import MotionSimulator
from trackforge.synthesis.speed_model import calculate_speed_from_hr
from trackforge.tcx.schema import SourceTrackpoint, Trackpoint

logger = logging.getLogger(__name__)

SAMPLE_INTERVAL_S = 1.0


@dataclass
class SynthesizedTrack:
    trackpoints: List[Trackpoint] = field(default_factory=list)
    max_speed: float = 0.0
    average_cadence: int = 0

    @property
    def total_distance(self) -> float:
        if not self.trackpoints:
            return 0.0
        return self.trackpoints[-1].distance_meters


def _summarize(trackpoints: List[Trackpoint]) -> SynthesizedTrack:
    positive = [tp.speed for tp in trackpoints if tp.speed > 0]
    cadences = [tp.run_cadence for tp in trackpoints]
    return SynthesizedTrack(
        trackpoints=trackpoints,
        max_speed=max(positive) if positive else 0.0,
        average_cadence=round(mean(cadences)) if cadences else 0,
    )


def distance_scale_factor(target_distance: float, actual_distance: float) -> float:
    """target / actual, or 1.0 when either side is not positive."""
    if actual_distance > 0 and target_distance > 0:
        return target_distance / actual_distance
    return 1.0


def synthesize_track(
    points: Sequence[SourceTrackpoint],
    target_distance: float,
    simulator: MotionSimulator,
    speed_config: SpeedDistanceConfig,
    start_time: datetime,
    rng=random,
) -> SynthesizedTrack:
    """
    Build a fully populated track for one lap.

    Args:
        points: source trackpoints for the lap, in order
        target_distance: meters allocated to this lap
        simulator: the activity's motion simulator (stepped once per point)
        speed_config: HR → speed model parameters
        start_time: base time for points without a timestamp
        rng: random source for the speed model and HR fallback

    Returns:
        SynthesizedTrack with trackpoints, max speed and average cadence.
    """
    if not points:
        logger.warning("Lap has no trackpoints; nothing to synthesize")
        return SynthesizedTrack()

    arena = simulator.arena
    cumulative = 0.0
    moving = False
    drafts = []

    for index, point in enumerate(points):
        hr = point.heart_rate_value
        if hr is None:
            hr = interpolate_heart_rate(index, speed_config.max_hr, rng)

        speed = calculate_speed_from_hr(hr, speed_config, rng)
        moving = moving or speed > 0
        if index > 0 and speed > 0:
            cumulative += speed * SAMPLE_INTERVAL_S

        # Step the simulator even when the source has a fix, so the
        # simulated trajectory stays continuous across gaps.
        simulated = simulator.next_position(speed)

        altitude = point.altitude_meters
        if altitude is None:
            altitude = interpolate_altitude(index, arena.center_altitude, arena.altitude_amplitude_m)

        drafts.append((point, index, hr, speed, cumulative, simulated, altitude))

    scale = distance_scale_factor(target_distance, cumulative)

    trackpoints: List[Trackpoint] = []
    for point, index, hr, speed, distance, simulated, altitude in drafts:
        scaled_speed = speed * scale
        trackpoints.append(Trackpoint(
            time=point.time or interpolate_time(index, start_time),
            position=point.position or simulated,
            altitude_meters=altitude,
            distance_meters=distance * scale,
            heart_rate=hr,
            cadence=point.cadence,
            speed=scaled_speed,
            run_cadence=cadence_from_speed(scaled_speed),
        ))

    # Movement only at index 0 integrates to nothing; pin the lap end
    # to its allocation anyway.
    if moving and cumulative == 0 and target_distance > 0:
        trackpoints[-1].distance_meters = target_distance

    return _summarize(trackpoints)


def fill_missing_fields(
    points: Sequence[SourceTrackpoint],
    simulator: MotionSimulator,
    max_hr: int,
    start_time: datetime,
    rng=random,
) -> SynthesizedTrack:
    """
    Complete every trackpoint from index-based fallbacks only.

    Speed is derived from successive distance deltas (1 s spacing).
    The simulator is only used for its arena geometry here.
    """
    if not points:
        logger.warning("Lap has no trackpoints; nothing to fill")
        return SynthesizedTrack()

    arena = simulator.arena
    total = len(points)
    previous_distance: Optional[float] = None
    trackpoints: List[Trackpoint] = []

    for index, point in enumerate(points):
        distance = point.distance_meters
        if distance is None:
            distance = interpolate_distance(index)

        speed = 0.0
        if previous_distance is not None:
            speed = max(0.0, (distance - previous_distance) / SAMPLE_INTERVAL_S)
        previous_distance = distance

        hr = point.heart_rate_value
        if hr is None:
            hr = interpolate_heart_rate(index, max_hr, rng)

        altitude = point.altitude_meters
        if altitude is None:
            altitude = interpolate_altitude(index, arena.center_altitude, arena.altitude_amplitude_m)

        trackpoints.append(Trackpoint(
            time=point.time or interpolate_time(index, start_time),
            position=point.position
            or interpolate_position(index, total, simulator.center, _fill_radius(simulator)),
            altitude_meters=altitude,
            distance_meters=distance,
            heart_rate=hr,
            cadence=point.cadence,
            speed=speed,
            run_cadence=cadence_from_speed(speed),
        ))

    return _summarize(trackpoints)


def _fill_radius(simulator: MotionSimulator) -> float:
    arena = simulator.arena
    if arena.shape == "circle":
        return arena.radius_m / 2
    return min(arena.width_m, arena.height_m) / 4
