"""Shared test fixtures."""
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

START = datetime(2024, 5, 4, 9, 30, 0, tzinfo=timezone.utc)


class FixedRandom:
    """Stand-in for random.Random whose random() always returns the same value."""

    def __init__(self, value: float = 0.5):
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture(name="fixed_rng")
def fixed_rng_fixture() -> FixedRandom:
    """random() == 0.5, which makes every ±noise term exactly zero."""
    return FixedRandom(0.5)


def tcx_trackpoint(
    seconds: int,
    hr: Optional[int] = None,
    distance: Optional[float] = None,
    position: Optional[tuple] = None,
) -> str:
    parts = [f"<Time>{(START + timedelta(seconds=seconds)).strftime('%Y-%m-%dT%H:%M:%S.000Z')}</Time>"]
    if position is not None:
        parts.append(
            f"<Position><LatitudeDegrees>{position[0]}</LatitudeDegrees>"
            f"<LongitudeDegrees>{position[1]}</LongitudeDegrees></Position>"
        )
    if distance is not None:
        parts.append(f"<DistanceMeters>{distance}</DistanceMeters>")
    if hr is not None:
        parts.append(f"<HeartRateBpm><Value>{hr}</Value></HeartRateBpm>")
    return "<Trackpoint>" + "".join(parts) + "</Trackpoint>"


def tcx_document(laps: List[List[str]], activity_id: str = "2024-05-04T09:30:00.000Z", activities: int = 1) -> str:
    """A minimal Strava-style TCX export: one <Lap> per entry of trackpoint strings."""
    lap_xml = "".join(
        f'<Lap StartTime="{START.strftime("%Y-%m-%dT%H:%M:%S.000Z")}">'
        f"<TotalTimeSeconds>{len(points)}</TotalTimeSeconds>"
        f"<Track>{''.join(points)}</Track></Lap>"
        for points in laps
    )
    activity = f'<Activity Sport="Running"><Id>{activity_id}</Id>{lap_xml}</Activity>'
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<TrainingCenterDatabase xmlns="http://www.garmin.com/xmlschemas/TrainingCenterDatabase/v2" '
        'xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">'
        f"<Activities>{activity * activities}</Activities>"
        "</TrainingCenterDatabase>"
    )


@pytest.fixture(name="sample_tcx")
def sample_tcx_fixture() -> str:
    """Two laps, 30 s each. Lap 2 is harder; some points lack HR."""
    lap1 = [tcx_trackpoint(i, hr=140 if i % 5 else None) for i in range(30)]
    lap2 = [tcx_trackpoint(30 + i, hr=170) for i in range(30)]
    return tcx_document([lap1, lap2])


@pytest.fixture(name="make_tcx")
def make_tcx_fixture():
    return tcx_document


@pytest.fixture(name="make_tcx_trackpoint")
def make_tcx_trackpoint_fixture():
    return tcx_trackpoint
