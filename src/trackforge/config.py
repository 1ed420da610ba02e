"""
Configuration: environment-backed Settings plus the typed config objects the
pipelines take as explicit parameters.

Settings is read once at the CLI edge. Everything below it receives a
ProcessingConfig / SpeedDistanceConfig / ArenaConfig / total distance value
instead of looking anything up in the environment.
"""
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings

METERS_PER_MILE = 1609.344

# ~6 miles, used when no target distance is configured
DEFAULT_TOTAL_DISTANCE_M = 9656.06


class ProcessingConfig(BaseModel):
    """Feature pipeline thresholds (FIT → flat rows)."""

    model_config = ConfigDict(frozen=True)

    min_heart_rate: int = 60
    max_heart_rate: int = 220
    max_hr_zone: int = 220  # fallback max HR when the session has none
    min_speed_mps: float = 0.5
    max_speed_mps: float = 15.0
    smoothing_window_seconds: int = Field(default=10, ge=1)
    grade_threshold: float = 2.0  # percent


class SpeedDistanceConfig(BaseModel):
    """Heart-rate → speed model parameters."""

    model_config = ConfigDict(frozen=True)

    resting_hr: int = 50
    max_hr: int = 196
    floor_hr: int = 130  # below this the athlete is on the sideline
    max_speed: float = 8.5  # m/s, ~19 mph sprint
    min_active_speed: float = 1.5  # m/s, ~3.4 mph walk
    speed_variability: float = Field(default=0.3, ge=0.0, le=1.0)


class ArenaConfig(BaseModel):
    """Playing area the motion simulator keeps positions inside."""

    model_config = ConfigDict(frozen=True)

    center_latitude: float = 44.970814
    center_longitude: float = -93.292994
    center_altitude: float = 252.0
    shape: Literal["rectangle", "circle"] = "rectangle"
    width_m: float = Field(default=70.0, gt=0)
    height_m: float = Field(default=100.0, gt=0)
    radius_m: float = Field(default=40.0, gt=0)
    sideline_offset_m: float = -30.0
    altitude_amplitude_m: float = 2.0


class Settings(BaseSettings):
    # Feature pipeline
    min_heart_rate: int = 60
    max_heart_rate: int = 220
    max_hr_zone: int = 220
    min_speed_mps: float = 0.5
    max_speed_mps: float = 15.0
    smoothing_window_seconds: int = 10
    grade_threshold: float = 2.0

    # Speed model
    resting_hr: int = 50
    max_hr: int = 196
    floor_hr: int = 130
    max_speed: float = 8.5
    min_active_speed: float = 1.5
    speed_variability: float = 0.3

    # Motion simulator
    latitude: float = 44.970814
    longitude: float = -93.292994
    altitude: float = 252.0
    arena_shape: Literal["rectangle", "circle"] = "rectangle"
    arena_width_m: float = 70.0
    arena_height_m: float = 100.0
    arena_radius_m: float = 40.0

    # Lap allocator: total activity distance in miles
    distance: Optional[float] = None

    # Strava
    strava_access_token: str = ""
    strava_tcx_output_dir: str = "./strava_tcx_data"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    def processing_config(self) -> ProcessingConfig:
        return ProcessingConfig(
            min_heart_rate=self.min_heart_rate,
            max_heart_rate=self.max_heart_rate,
            max_hr_zone=self.max_hr_zone,
            min_speed_mps=self.min_speed_mps,
            max_speed_mps=self.max_speed_mps,
            smoothing_window_seconds=self.smoothing_window_seconds,
            grade_threshold=self.grade_threshold,
        )

    def speed_config(self) -> SpeedDistanceConfig:
        return SpeedDistanceConfig(
            resting_hr=self.resting_hr,
            max_hr=self.max_hr,
            floor_hr=self.floor_hr,
            max_speed=self.max_speed,
            min_active_speed=self.min_active_speed,
            speed_variability=self.speed_variability,
        )

    def arena_config(self) -> ArenaConfig:
        return ArenaConfig(
            center_latitude=self.latitude,
            center_longitude=self.longitude,
            center_altitude=self.altitude,
            shape=self.arena_shape,
            width_m=self.arena_width_m,
            height_m=self.arena_height_m,
            radius_m=self.arena_radius_m,
        )

    def total_distance_meters(self) -> float:
        """Target activity distance in meters (DISTANCE is given in miles)."""
        if self.distance is None or self.distance <= 0:
            return DEFAULT_TOTAL_DISTANCE_M
        return self.distance * METERS_PER_MILE


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
