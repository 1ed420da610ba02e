"""Tests for the FIT feature pipeline: cleaning, per-sample derivation and activity-wide features."""
import random
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

import pytest

from trackforge.config import ProcessingConfig
from trackforge.features.cleaning import clean_heart_rate, clean_speed, elevation_metrics, is_uphill
from trackforge.features.engineer import (
    apply_feature_engineering,
    build_samples,
    calculate_quartiles,
    engineer_features,
    rolling_average,
    speed_zone,
)
from trackforge.fit.records import DecodedActivity

START = datetime(2024, 5, 4, 9, 30, 0, tzinfo=timezone.utc)
CONFIG = ProcessingConfig()


# ─── Helpers ──────────────────────────────────────────────────────────────────

def make_records(n: int, **overrides) -> List[Dict[str, Any]]:
    """n one-second FIT record dicts with a steady effort; overrides map field → list of values."""
    records = []
    for i in range(n):
        record = {
            "timestamp": START + timedelta(seconds=i),
            "heart_rate": 120 + i % 40,
            "speed": 2.0 + (i % 10) * 0.3,
            "distance": i * 3.0,
            "altitude": 250.0 + i * 0.1,
            "cadence": 85,
        }
        for field, values in overrides.items():
            record[field] = values[i]
        records.append(record)
    return records


def make_activity(records, sessions=None, laps=None) -> DecodedActivity:
    return DecodedActivity.from_messages(
        "run_1",
        {"record": records, "session": sessions or [], "lap": laps or []},
    )


# ─── Range cleaning ───────────────────────────────────────────────────────────

class TestRangeCleaning:
    @pytest.mark.parametrize("hr", [60, 61, 150, 219, 220])
    def test_in_range_hr_unchanged(self, hr):
        assert clean_heart_rate(hr, CONFIG) == hr
        assert clean_heart_rate(clean_heart_rate(hr, CONFIG), CONFIG) == hr

    @pytest.mark.parametrize("hr", [None, 0, 30, 59, 221, 255])
    def test_out_of_range_hr_is_null(self, hr):
        assert clean_heart_rate(hr, CONFIG) is None

    @pytest.mark.parametrize("speed", [0.5, 1.0, 4.2, 15.0])
    def test_in_range_speed_unchanged(self, speed):
        assert clean_speed(speed, CONFIG) == speed

    @pytest.mark.parametrize("speed", [None, 0.0, 0.49, 15.01, 65.5])
    def test_out_of_range_speed_is_null(self, speed):
        assert clean_speed(speed, CONFIG) is None

    def test_zero_kept_when_minimum_is_zero(self):
        config = ProcessingConfig(min_speed_mps=0.0, min_heart_rate=0)
        assert clean_speed(0.0, config) == 0.0
        assert clean_heart_rate(0, config) == 0
        assert clean_speed(None, config) is None


class TestElevationMetrics:
    def test_rate_and_grade(self):
        rate, grade = elevation_metrics(
            altitude=102.0, previous_altitude=100.0, time_delta_s=2.0, distance=50.0, speed=5.0,
        )
        assert rate == pytest.approx(1.0)
        assert grade == pytest.approx(20.0)

    def test_missing_previous_altitude(self):
        assert elevation_metrics(100.0, None, 1.0, 10.0, 3.0) == (None, None)

    def test_non_positive_time_delta(self):
        assert elevation_metrics(101.0, 100.0, 0.0, 10.0, 3.0) == (None, None)

    def test_grade_needs_distance(self):
        rate, grade = elevation_metrics(101.0, 100.0, 1.0, None, 3.0)
        assert rate == pytest.approx(1.0)
        assert grade is None

    def test_grade_needs_horizontal_movement(self):
        assert elevation_metrics(101.0, 100.0, 1.0, 10.0, 0.0)[1] is None

    def test_uphill_threshold(self):
        assert is_uphill(2.5, CONFIG) is True
        assert is_uphill(2.0, CONFIG) is False
        assert is_uphill(None, CONFIG) is None


# ─── Quartiles and zones ──────────────────────────────────────────────────────

class TestQuartiles:
    def test_nearest_rank(self):
        q = calculate_quartiles([4.0, 1.0, 3.0, 2.0])
        assert (q.q1, q.q2, q.q3) == (2.0, 3.0, 4.0)

    def test_empty(self):
        assert calculate_quartiles([]) is None

    def test_single_value(self):
        q = calculate_quartiles([3.3])
        assert q.q1 == q.q2 == q.q3 == 3.3

    @pytest.mark.parametrize("seed", range(10))
    def test_quartiles_monotonic(self, seed):
        rng = random.Random(seed)
        speeds = rng.sample([x / 10 for x in range(5, 150)], rng.randint(1, 100))
        q = calculate_quartiles(speeds)
        assert q.q1 <= q.q2 <= q.q3

    @pytest.mark.parametrize("seed", range(5))
    def test_speed_zone_monotonic(self, seed):
        rng = random.Random(seed)
        speeds = sorted(rng.uniform(0.5, 15.0) for _ in range(60))
        q = calculate_quartiles(speeds)
        zones = [speed_zone(s, q) for s in speeds]
        assert zones == sorted(zones)
        assert set(zones) <= {1, 2, 3, 4}


class TestRollingAverage:
    def test_trailing_window(self):
        values = [1.0, 2.0, 3.0, 4.0, 5.0]
        assert rolling_average(values, 4, 3) == pytest.approx(4.0)

    def test_short_history(self):
        assert rolling_average([2.0, 4.0], 1, 10) == pytest.approx(3.0)

    def test_nulls_skipped(self):
        assert rolling_average([None, 2.0, None], 2, 3) == pytest.approx(2.0)

    def test_all_null(self):
        assert rolling_average([None, None], 1, 10) is None


# ─── Per-sample pass ──────────────────────────────────────────────────────────

class TestBuildSamples:
    def test_one_sample_per_timestamped_record(self):
        records = make_records(10)
        records.append({"heart_rate": 150})  # no timestamp
        assert len(build_samples(make_activity(records), CONFIG)) == 10

    def test_no_records_returns_empty(self):
        assert build_samples(make_activity([]), CONFIG) == []

    def test_seconds_into_activity(self):
        samples = build_samples(make_activity(make_records(5)), CONFIG)
        assert [s.seconds_into_activity for s in samples] == [0, 1, 2, 3, 4]

    def test_out_of_range_values_nulled_but_sample_kept(self):
        records = make_records(3, heart_rate=[150, 250, 40], speed=[3.0, 0.0, 20.0])
        samples = build_samples(make_activity(records), CONFIG)
        assert [s.heart_rate for s in samples] == [150, None, None]
        assert [s.speed_mps for s in samples] == [3.0, None, None]
        assert samples[1].pace_min_per_km is None

    def test_pace_from_clean_speed(self):
        samples = build_samples(make_activity(make_records(1, speed=[1000 / 300])), CONFIG)
        assert samples[0].pace_min_per_km == pytest.approx(5.0)

    def test_grade_uses_raw_speed_and_previous_altitude(self):
        # Raw speed 20 m/s is out of range for the cleaned column but still drives grade
        records = make_records(2, altitude=[100.0, 101.0], speed=[3.0, 20.0])
        samples = build_samples(make_activity(records), CONFIG)
        assert samples[0].grade_percent is None
        assert samples[1].grade_percent == pytest.approx(5.0)
        assert samples[1].elevation_change_mps == pytest.approx(1.0)
        assert samples[1].is_uphill is True

    def test_enhanced_fields_preferred(self):
        records = make_records(1)
        records[0].update({"enhanced_speed": 4.0, "enhanced_altitude": 300.0})
        sample = build_samples(make_activity(records), CONFIG)[0]
        assert sample.speed_mps == 4.0
        assert sample.altitude_m == 300.0

    def test_lap_numbers_from_lap_windows(self):
        laps = [
            {"start_time": START, "timestamp": START + timedelta(seconds=4)},
            {"start_time": START + timedelta(seconds=5), "timestamp": START + timedelta(seconds=9)},
        ]
        samples = build_samples(make_activity(make_records(12), laps=laps), CONFIG)
        assert [s.lap_number for s in samples] == [1] * 5 + [2] * 5 + [None] * 2

    def test_hr_zone_uses_session_max(self):
        records = make_records(1, heart_rate=[171])
        with_session = build_samples(make_activity(records, sessions=[{"max_heart_rate": 180}]), CONFIG)
        without = build_samples(make_activity(records), CONFIG)
        assert with_session[0].hr_zone == 5  # 95% of 180
        assert without[0].hr_zone == 3  # 78% of 220

    def test_positions_converted_from_semicircles(self):
        records = make_records(1)
        records[0].update({"position_lat": 2**30, "position_long": -(2**30)})
        sample = build_samples(make_activity(records), CONFIG)[0]
        assert sample.position_lat == pytest.approx(90.0)
        assert sample.position_long == pytest.approx(-90.0)


# ─── Activity-wide pass ───────────────────────────────────────────────────────

class TestApplyFeatureEngineering:
    def test_hr_lags_are_causal(self):
        samples = engineer_features(make_activity(make_records(40)), CONFIG)
        for i, sample in enumerate(samples):
            if i >= 5:
                assert sample.hr_lag_5s == samples[i - 5].heart_rate
            else:
                assert sample.hr_lag_5s is None
            if i >= 10:
                assert sample.hr_lag_10s == samples[i - 10].heart_rate
            else:
                assert sample.hr_lag_10s is None

    def test_interval_flag_above_q3(self):
        samples = engineer_features(make_activity(make_records(40)), CONFIG)
        q = calculate_quartiles([s.speed_mps for s in samples if s.speed_mps is not None])
        for sample in samples:
            assert sample.is_interval == (sample.speed_mps > q.q3)
            assert sample.speed_zone == speed_zone(sample.speed_mps, q)

    def test_null_speed_has_no_zone(self):
        records = make_records(20, speed=[0.0] + [3.0] * 19)
        samples = engineer_features(make_activity(records), CONFIG)
        assert samples[0].speed_zone is None
        assert samples[0].is_interval is None

    def test_smoothed_speed_window(self):
        config = ProcessingConfig(smoothing_window_seconds=3)
        records = make_records(5, speed=[1.0, 2.0, 3.0, 4.0, 5.0])
        samples = engineer_features(make_activity(records), config)
        assert samples[0].speed_smoothed_10s == pytest.approx(1.0)
        assert samples[4].speed_smoothed_10s == pytest.approx(4.0)

    def test_empty_samples(self):
        assert apply_feature_engineering([], CONFIG) == []

    def test_rows_have_fixed_columns(self):
        samples = engineer_features(make_activity(make_records(3)), CONFIG)
        row = samples[0].to_row()
        assert list(row)[:4] == ["timestamp", "activity_id", "seconds_into_activity", "heart_rate"]
        assert row["activity_id"] == "run_1"
        assert row["timestamp"] == START.isoformat()
