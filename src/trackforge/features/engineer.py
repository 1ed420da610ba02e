"""
Feature engineering for the FIT → flat rows pipeline.

Two passes:
  1. build_samples(): one ActivitySample per timestamped record. Cleans HR and
     speed, derives pace, grade, elevation rate, lap number and HR zone:
     everything that only needs the current and previous record.
  2. apply_feature_engineering(): needs the whole activity materialized.
     Speed quartiles → speed zone and interval flag, HR lag features,
     trailing rolling-average speed.

Samples are assumed to be ~1 second apart, so "lag 5s" means "5 samples
earlier" and the smoothing window is counted in samples.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from trackforge.analysis.heart_rate import classify_hr_zone
from trackforge.analysis.pace import pace_min_per_km
from trackforge.config import ProcessingConfig
from trackforge.features.cleaning import (
    clean_heart_rate,
    clean_speed,
    elevation_metrics,
    is_uphill,
)
from trackforge.features.samples import ActivitySample
from trackforge.fit.records import DecodedActivity

logger = logging.getLogger(__name__)

HR_LAG_OFFSETS = (5, 10)


@dataclass(frozen=True)
class SpeedQuartiles:
    q1: float
    q2: float
    q3: float


# ─── Pass 1: per-sample ────────────────────────────────────────────────────────

def build_samples(activity: DecodedActivity, config: ProcessingConfig) -> List[ActivitySample]:
    """
    Convert validated FIT records into ActivitySamples, in decode order.

    Records without a timestamp are dropped. Elapsed seconds are measured
    from the first timestamped record and never decrease.
    """
    records = [r for r in activity.records if r.timestamp is not None]
    if not records:
        logger.warning("Activity %s has no timestamped record messages", activity.activity_id)
        return []

    max_hr = activity.max_heart_rate(config.max_hr_zone)
    start_time = records[0].timestamp

    samples: List[ActivitySample] = []
    previous = None
    elapsed_so_far = 0

    for record in records:
        elapsed = int((record.timestamp - start_time).total_seconds())
        elapsed_so_far = max(elapsed_so_far, elapsed, 0)

        time_delta = None
        previous_altitude = None
        if previous is not None:
            time_delta = (record.timestamp - previous.timestamp).total_seconds()
            previous_altitude = previous.altitude

        elevation_rate, grade = elevation_metrics(
            altitude=record.altitude,
            previous_altitude=previous_altitude,
            time_delta_s=time_delta,
            distance=record.distance,
            speed=record.speed,
        )

        heart_rate = clean_heart_rate(record.heart_rate, config)
        speed = clean_speed(record.speed, config)

        samples.append(ActivitySample(
            timestamp=record.timestamp,
            activity_id=activity.activity_id,
            seconds_into_activity=elapsed_so_far,
            heart_rate=heart_rate,
            speed_mps=speed,
            pace_min_per_km=pace_min_per_km(speed),
            distance_m=record.distance,
            altitude_m=record.altitude,
            grade_percent=grade,
            cadence_rpm=record.cadence,
            power_watts=record.power,
            temperature_c=record.temperature,
            lap_number=activity.lap_number(record.timestamp),
            position_lat=record.latitude,
            position_long=record.longitude,
            hr_zone=classify_hr_zone(heart_rate, max_hr),
            elevation_change_mps=elevation_rate,
            is_uphill=is_uphill(grade, config),
        ))
        previous = record

    return samples


# ─── Pass 2: activity-wide ─────────────────────────────────────────────────────

def calculate_quartiles(values: Sequence[float]) -> Optional[SpeedQuartiles]:
    """
    Nearest-rank quartiles: sorted[floor(n * p)] for p = 0.25, 0.5, 0.75.
    Returns None for an empty sequence.
    """
    if not values:
        return None
    ordered = sorted(values)
    n = len(ordered)
    return SpeedQuartiles(
        q1=ordered[int(n * 0.25)],
        q2=ordered[int(n * 0.50)],
        q3=ordered[int(n * 0.75)],
    )


def speed_zone(speed: float, quartiles: SpeedQuartiles) -> int:
    """Speed zone 1-4 by quartile bucket (upper bounds inclusive)."""
    if speed <= quartiles.q1:
        return 1
    if speed <= quartiles.q2:
        return 2
    if speed <= quartiles.q3:
        return 3
    return 4


def rolling_average(values: Sequence[Optional[float]], index: int, window: int) -> Optional[float]:
    """
    Mean of the non-null values in the trailing window ending at `index`
    (inclusive). None when the window holds no values.
    """
    start = max(0, index - window + 1)
    present = [v for v in values[start:index + 1] if v is not None]
    if not present:
        return None
    return sum(present) / len(present)


def apply_feature_engineering(
    samples: List[ActivitySample],
    config: ProcessingConfig,
) -> List[ActivitySample]:
    """Fill speed zone, interval flag, HR lags and smoothed speed in place."""
    if not samples:
        return samples

    speeds = [s.speed_mps for s in samples]
    quartiles = calculate_quartiles([v for v in speeds if v is not None])
    lag_5, lag_10 = HR_LAG_OFFSETS

    for i, sample in enumerate(samples):
        if sample.speed_mps is not None and quartiles is not None:
            sample.speed_zone = speed_zone(sample.speed_mps, quartiles)
            sample.is_interval = sample.speed_mps > quartiles.q3

        if i >= lag_5:
            sample.hr_lag_5s = samples[i - lag_5].heart_rate
        if i >= lag_10:
            sample.hr_lag_10s = samples[i - lag_10].heart_rate

        sample.speed_smoothed_10s = rolling_average(
            speeds, i, config.smoothing_window_seconds
        )

    return samples


def engineer_features(activity: DecodedActivity, config: ProcessingConfig) -> List[ActivitySample]:
    """Both passes, end to end, for one decoded activity."""
    return apply_feature_engineering(build_samples(activity, config), config)
