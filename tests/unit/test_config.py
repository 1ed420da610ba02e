"""Tests for environment-backed settings and the config objects derived from them."""
import pytest
from pydantic import ValidationError

from trackforge.config import (
    DEFAULT_TOTAL_DISTANCE_M,
    ArenaConfig,
    ProcessingConfig,
    Settings,
    SpeedDistanceConfig,
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("DISTANCE", "MAX_HR", "FLOOR_HR", "ARENA_SHAPE", "LATITUDE", "MIN_HEART_RATE"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    def test_defaults(self, clean_env):
        settings = Settings(_env_file=None)
        assert settings.processing_config() == ProcessingConfig()
        assert settings.speed_config() == SpeedDistanceConfig()
        assert settings.arena_config() == ArenaConfig()

    def test_environment_overrides(self, clean_env):
        clean_env.setenv("MAX_HR", "188")
        clean_env.setenv("FLOOR_HR", "120")
        clean_env.setenv("ARENA_SHAPE", "circle")
        clean_env.setenv("MIN_HEART_RATE", "45")
        settings = Settings(_env_file=None)

        assert settings.speed_config().max_hr == 188
        assert settings.speed_config().floor_hr == 120
        assert settings.arena_config().shape == "circle"
        assert settings.processing_config().min_heart_rate == 45

    def test_env_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("LATITUDE=51.5\nDISTANCE=3\n")
        settings = Settings(_env_file=str(env_file))
        assert settings.arena_config().center_latitude == 51.5
        assert settings.total_distance_meters() == pytest.approx(3 * 1609.344)


class TestTotalDistance:
    def test_default_is_about_six_miles(self, clean_env):
        assert Settings(_env_file=None).total_distance_meters() == DEFAULT_TOTAL_DISTANCE_M

    def test_miles_converted(self, clean_env):
        assert Settings(_env_file=None, distance=2).total_distance_meters() == pytest.approx(3218.688)

    def test_non_positive_falls_back(self, clean_env):
        assert Settings(_env_file=None, distance=0).total_distance_meters() == DEFAULT_TOTAL_DISTANCE_M


class TestConfigObjects:
    def test_frozen(self):
        config = SpeedDistanceConfig()
        with pytest.raises(ValidationError):
            config.max_hr = 200

    def test_arena_dimensions_must_be_positive(self):
        with pytest.raises(ValidationError):
            ArenaConfig(width_m=0)

    def test_unknown_shape_rejected(self):
        with pytest.raises(ValidationError):
            ArenaConfig(shape="hexagon")
