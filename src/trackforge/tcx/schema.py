"""
TCX document models.

Source side (Source*): what we accept from a TCX export. The XML reader
produces a nested dict keyed by TCX element names; SourceTcxDocument
validates it once, so the enhancer only ever sees typed values. Aliases are
the TCX element/attribute names.

Target side: the rebuilt Garmin-flavoured document. Every field is
populated; the writer serializes these models to XML.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

GARMIN_TCX_NS = "http://www.garmin.com/xmlschemas/TrainingCenterDatabase/v2"
ACTIVITY_EXTENSION_NS = "http://www.garmin.com/xmlschemas/ActivityExtension/v2"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
GARMIN_SCHEMA_LOCATION = (
    "http://www.garmin.com/xmlschemas/TrainingCenterDatabase/v2 "
    "http://www.garmin.com/xmlschemas/TrainingCenterDatabasev2.xsd"
)


class Position(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    latitude_degrees: float = Field(alias="LatitudeDegrees")
    longitude_degrees: float = Field(alias="LongitudeDegrees")


class HeartRateBpm(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    value: int = Field(alias="Value")


# ─── Source document ──────────────────────────────────────────────────────────

class SourceTrackpoint(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    time: Optional[datetime] = Field(default=None, alias="Time")
    position: Optional[Position] = Field(default=None, alias="Position")
    altitude_meters: Optional[float] = Field(default=None, alias="AltitudeMeters")
    distance_meters: Optional[float] = Field(default=None, alias="DistanceMeters")
    heart_rate: Optional[HeartRateBpm] = Field(default=None, alias="HeartRateBpm")
    cadence: Optional[int] = Field(default=None, alias="Cadence")
    sensor_state: Optional[str] = Field(default=None, alias="SensorState")

    @property
    def heart_rate_value(self) -> Optional[int]:
        return self.heart_rate.value if self.heart_rate else None


class SourceLap(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    start_time: Optional[datetime] = Field(default=None, alias="StartTime")
    total_time_seconds: Optional[float] = Field(default=None, alias="TotalTimeSeconds")
    distance_meters: Optional[float] = Field(default=None, alias="DistanceMeters")
    calories: Optional[int] = Field(default=None, alias="Calories")
    average_heart_rate: Optional[HeartRateBpm] = Field(default=None, alias="AverageHeartRateBpm")
    maximum_heart_rate: Optional[HeartRateBpm] = Field(default=None, alias="MaximumHeartRateBpm")
    intensity: Optional[str] = Field(default=None, alias="Intensity")
    trigger_method: Optional[str] = Field(default=None, alias="TriggerMethod")
    # Trackpoints of every <Track> in the lap, flattened in document order
    trackpoints: List[SourceTrackpoint] = Field(default_factory=list, alias="Track")


class SourceActivity(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="Id", min_length=1)
    sport: str = Field(default="Running", alias="Sport")
    laps: List[SourceLap] = Field(default_factory=list, alias="Lap")


class SourceTcxDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    activities: List[SourceActivity] = Field(alias="Activities")

    @field_validator("activities")
    @classmethod
    def _exactly_one_activity(cls, value: List[SourceActivity]) -> List[SourceActivity]:
        if len(value) != 1:
            raise ValueError(f"expected exactly one Activity, found {len(value)}")
        return value

    @property
    def activity(self) -> SourceActivity:
        return self.activities[0]


# ─── Target document ──────────────────────────────────────────────────────────

class Trackpoint(BaseModel):
    time: datetime
    position: Position
    altitude_meters: float
    distance_meters: float
    heart_rate: Optional[int] = None
    cadence: Optional[int] = None
    # ns3:TPX extension
    speed: float = 0.0
    run_cadence: int = 0


class Lap(BaseModel):
    start_time: datetime
    total_time_seconds: float
    distance_meters: float
    maximum_speed: float
    calories: int
    average_heart_rate: int
    maximum_heart_rate: int
    intensity: str = "Active"
    cadence: int = 0
    trigger_method: str = "Manual"
    trackpoints: List[Trackpoint] = Field(default_factory=list)


class Version(BaseModel):
    version_major: int
    version_minor: int
    build_major: int = 0
    build_minor: int = 0


class Creator(BaseModel):
    name: str = "Forerunner 645 Music"
    unit_id: int = 3966577896
    product_id: int = 2888
    version: Version = Field(default_factory=lambda: Version(version_major=7, version_minor=20))


class Author(BaseModel):
    name: str = "Connect Api"
    version: Version = Field(default_factory=lambda: Version(version_major=25, version_minor=13))
    lang_id: str = "en"
    part_number: str = "006-D2449-00"


class Activity(BaseModel):
    id: str
    sport: str = "Running"
    laps: List[Lap] = Field(default_factory=list)
    creator: Creator = Field(default_factory=Creator)


class TcxDocument(BaseModel):
    activity: Activity
    author: Author = Field(default_factory=Author)
