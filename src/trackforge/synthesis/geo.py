"""
Small-area geometry helpers.

Meter ↔ degree conversion uses the flat-Earth approximation
(111 km per degree of latitude, scaled by cos(lat) for longitude), which is
accurate to well under a meter over a playing field. Great-circle distances
use the haversine formula with one Earth radius constant everywhere.
"""
import math
from dataclasses import dataclass

from trackforge.tcx.schema import Position

METERS_PER_DEGREE = 111_000.0
EARTH_RADIUS_M = 6_371_000.0


@dataclass(frozen=True)
class Vector:
    """2D direction in (north, east) components."""

    lat: float
    lon: float

    @property
    def magnitude(self) -> float:
        return math.hypot(self.lat, self.lon)

    def normalized(self) -> "Vector":
        mag = self.magnitude
        if mag == 0:
            return Vector(0.0, 0.0)
        return Vector(self.lat / mag, self.lon / mag)

    def blend(self, other: "Vector", weight: float) -> "Vector":
        """(1 - weight) * self + weight * other"""
        return Vector(
            self.lat * (1 - weight) + other.lat * weight,
            self.lon * (1 - weight) + other.lon * weight,
        )


def meters_to_lat_degrees(meters: float) -> float:
    return meters / METERS_PER_DEGREE


def meters_to_lon_degrees(meters: float, latitude: float) -> float:
    return meters / (METERS_PER_DEGREE * math.cos(math.radians(latitude)))


def offset_position(origin: Position, north_m: float, east_m: float) -> Position:
    """Shift a position by meters north and east."""
    return Position(
        latitude_degrees=origin.latitude_degrees + meters_to_lat_degrees(north_m),
        longitude_degrees=origin.longitude_degrees
        + meters_to_lon_degrees(east_m, origin.latitude_degrees),
    )


def haversine_distance(a: Position, b: Position) -> float:
    """Great-circle distance in meters."""
    lat1 = math.radians(a.latitude_degrees)
    lat2 = math.radians(b.latitude_degrees)
    d_lat = lat2 - lat1
    d_lon = math.radians(b.longitude_degrees - a.longitude_degrees)

    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(h), math.sqrt(1 - h))
