"""
Validated FIT message schema.

Raw fitparse dicts are open-ended key/value bags. DecodedActivity.from_messages
converts them once into typed models so the feature pipeline never has to
guess at field names or types.

Field mapping from FIT to our schema:
  FIT field                     → our field
  timestamp                     → timestamp
  heart_rate                    → heart_rate (bpm)
  enhanced_speed / speed        → speed (m/s, enhanced preferred)
  enhanced_altitude / altitude  → altitude (m, enhanced preferred)
  distance                      → distance (cumulative m)
  cadence                       → cadence (steps/min)
  power                         → power (W)
  temperature                   → temperature (°C)
  position_lat / position_long  → latitude / longitude (degrees, from semicircles)
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, model_validator

# Garmin stores lat/lon as 32-bit signed integers in "semicircles"
# Degrees = semicircles * (180 / 2^31)
_SEMICIRCLE_TO_DEGREES = 180.0 / (2**31)


def semicircles_to_degrees(value: Optional[int]) -> Optional[float]:
    if value is None:
        return None
    return value * _SEMICIRCLE_TO_DEGREES


class FitRecord(BaseModel):
    """One FIT 'record' message."""

    model_config = ConfigDict(extra="ignore")

    timestamp: Optional[datetime] = None
    heart_rate: Optional[int] = None
    speed: Optional[float] = None
    distance: Optional[float] = None
    altitude: Optional[float] = None
    cadence: Optional[int] = None
    power: Optional[int] = None
    temperature: Optional[float] = None
    position_lat: Optional[int] = None
    position_long: Optional[int] = None

    @model_validator(mode="before")
    @classmethod
    def _prefer_enhanced_fields(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        values = dict(values)
        if values.get("enhanced_speed") is not None:
            values["speed"] = values["enhanced_speed"]
        if values.get("enhanced_altitude") is not None:
            values["altitude"] = values["enhanced_altitude"]
        return values

    @property
    def latitude(self) -> Optional[float]:
        return semicircles_to_degrees(self.position_lat)

    @property
    def longitude(self) -> Optional[float]:
        return semicircles_to_degrees(self.position_long)


class FitSession(BaseModel):
    model_config = ConfigDict(extra="ignore")

    max_heart_rate: Optional[int] = None


class FitLap(BaseModel):
    model_config = ConfigDict(extra="ignore")

    start_time: Optional[datetime] = None
    timestamp: Optional[datetime] = None

    def contains(self, moment: datetime) -> bool:
        if self.start_time is None or self.timestamp is None:
            return False
        return self.start_time <= moment <= self.timestamp


class DecodedActivity(BaseModel):
    """All messages of one decoded FIT file, validated."""

    activity_id: str
    records: List[FitRecord] = []
    sessions: List[FitSession] = []
    laps: List[FitLap] = []

    @classmethod
    def from_messages(
        cls, activity_id: str, messages: Dict[str, List[Dict[str, Any]]]
    ) -> "DecodedActivity":
        return cls(
            activity_id=activity_id,
            records=[FitRecord.model_validate(m) for m in messages.get("record", [])],
            sessions=[FitSession.model_validate(m) for m in messages.get("session", [])],
            laps=[FitLap.model_validate(m) for m in messages.get("lap", [])],
        )

    def max_heart_rate(self, fallback: int) -> int:
        """First positive session max HR, else the configured fallback."""
        for session in self.sessions:
            if session.max_heart_rate and session.max_heart_rate > 0:
                return session.max_heart_rate
        return fallback

    def lap_number(self, moment: datetime) -> Optional[int]:
        """1-based index of the first lap whose window contains `moment`."""
        for index, lap in enumerate(self.laps, start=1):
            if lap.contains(moment):
                return index
        return None
