"""
ActivitySample: the per-second row of the feature pipeline.

A plain dataclass, built once per timestamped FIT record and then filled in
by the feature engineer. to_row() fixes the output column order.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class ActivitySample:
    timestamp: datetime
    activity_id: str
    seconds_into_activity: int
    heart_rate: Optional[int] = None          # bpm, None if out of range
    speed_mps: Optional[float] = None         # m/s, None if out of range
    pace_min_per_km: Optional[float] = None
    distance_m: Optional[float] = None        # cumulative
    altitude_m: Optional[float] = None
    grade_percent: Optional[float] = None
    cadence_rpm: Optional[int] = None         # steps per minute
    power_watts: Optional[int] = None
    temperature_c: Optional[float] = None
    lap_number: Optional[int] = None          # 1-based
    position_lat: Optional[float] = None      # decimal degrees
    position_long: Optional[float] = None

    # Derived features
    hr_zone: Optional[int] = None             # 1-5
    speed_zone: Optional[int] = None          # 1-4, relative to the activity
    elevation_change_mps: Optional[float] = None
    hr_lag_5s: Optional[int] = None
    hr_lag_10s: Optional[int] = None
    speed_smoothed_10s: Optional[float] = None
    is_uphill: Optional[bool] = None
    is_interval: Optional[bool] = None

    def to_row(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "activity_id": self.activity_id,
            "seconds_into_activity": self.seconds_into_activity,
            "heart_rate": self.heart_rate,
            "speed_mps": self.speed_mps,
            "pace_min_per_km": self.pace_min_per_km,
            "distance_m": self.distance_m,
            "altitude_m": self.altitude_m,
            "grade_percent": self.grade_percent,
            "cadence_rpm": self.cadence_rpm,
            "power_watts": self.power_watts,
            "temperature_c": self.temperature_c,
            "lap_number": self.lap_number,
            "position_lat": self.position_lat,
            "position_long": self.position_long,
            "hr_zone": self.hr_zone,
            "speed_zone": self.speed_zone,
            "elevation_change_mps": self.elevation_change_mps,
            "hr_lag_5s": self.hr_lag_5s,
            "hr_lag_10s": self.hr_lag_10s,
            "speed_smoothed_10s": self.speed_smoothed_10s,
            "is_uphill": self.is_uphill,
            "is_interval": self.is_interval,
        }
