"""
Motion simulator: turns a stream of instantaneous speeds into a continuous
GPS track that stays inside a bounded arena (a field or a court).

Behaviour per 1-second sample:
  - Moving (speed > 0): step speed × U(0.9, 1.1) meters in a direction that
    blends a random heading with a pull toward a wandering target waypoint.
    The pull grows with distance from the arena center (capped), jitter adds
    noise, and momentum from the previous heading keeps the path smooth.
    Positions outside the arena are clamped back onto its boundary.
  - Idle for up to 3 samples: hold position with sub-meter jitter.
  - Idle for more than 3 samples: walk to the sideline, a fixed offset from
    the center, and stand there (±1 m) until speed returns.

State lives on the MotionSimulator instance, so each activity conversion
gets its own trajectory. Create one per activity (or call reset()).
"""
import math
import random
from dataclasses import dataclass
from typing import Optional, Tuple

from trackforge.config import ArenaConfig
from trackforge.synthesis.geo import (
    METERS_PER_DEGREE,
    Vector,
    haversine_distance,
    meters_to_lat_degrees,
    meters_to_lon_degrees,
    offset_position,
)
from trackforge.tcx.schema import Position

# Consecutive zero-speed samples before heading to the sideline
SIDELINE_IDLE_THRESHOLD = 3

# Dynamic target lifetime: replaced after 8-20 samples
TARGET_MIN_TTL = 8
TARGET_TTL_SPREAD = 12
TARGET_REACHED_M = 15.0
# Targets fall within 60-90% of the arena extent
TARGET_MIN_EXTENT = 0.6
TARGET_EXTENT_SPREAD = 0.3

MAX_CENTER_BIAS = 0.3
CENTER_BIAS_EXPONENT = 1.5
DIRECTION_JITTER = 0.4
MOMENTUM_WEIGHT = 0.3
SPEED_VARIATION_MIN = 0.9
SPEED_VARIATION_SPREAD = 0.2

SIDELINE_SPREAD_M = 10.0   # anchor drawn within ±5 m along the sideline
SIDELINE_JITTER_M = 2.0    # ±1 m while standing
IDLE_JITTER_M = 0.5        # ±0.25 m while briefly stopped


@dataclass
class MotionState:
    current_position: Position
    dynamic_target: Position
    on_sideline: bool = False
    sideline_position: Optional[Position] = None
    movement_direction: Vector = Vector(0.0, 1.0)
    momentum: Vector = Vector(0.0, 0.0)
    stationary_count: int = 0
    target_change_counter: int = 0


class MotionSimulator:
    """Per-activity position generator driven by instantaneous speed."""

    def __init__(
        self,
        arena: Optional[ArenaConfig] = None,
        rng: Optional[random.Random] = None,
        start: Optional[Position] = None,
    ):
        self.arena = arena or ArenaConfig()
        self.rng = rng or random.Random()
        self.center = Position(
            latitude_degrees=self.arena.center_latitude,
            longitude_degrees=self.arena.center_longitude,
        )
        self.state = self._initial_state(start)

    def reset(self, start: Optional[Position] = None) -> None:
        """Start a fresh trajectory (e.g. before a new activity)."""
        self.state = self._initial_state(start)

    def _initial_state(self, start: Optional[Position]) -> MotionState:
        origin = self._clamp(start) if start is not None else self.center
        return MotionState(current_position=origin, dynamic_target=self._random_target())

    # ─── Public API ───────────────────────────────────────────────────────────

    def next_position(self, speed: float) -> Position:
        """Advance one second at `speed` m/s and return the new position."""
        state = self.state

        state.target_change_counter += 1
        if state.target_change_counter > TARGET_MIN_TTL + self.rng.random() * TARGET_TTL_SPREAD:
            state.dynamic_target = self._random_target()
            state.target_change_counter = 0

        if speed > 0:
            state.stationary_count = 0
        else:
            state.stationary_count += 1

        if speed <= 0 and state.stationary_count > SIDELINE_IDLE_THRESHOLD:
            if not state.on_sideline:
                state.on_sideline = True
                state.sideline_position = self._random_sideline_position()
                return state.sideline_position
            return self._jitter(state.sideline_position, SIDELINE_JITTER_M)

        if state.on_sideline:
            # Back on the field, entering from where we stood
            state.on_sideline = False
            state.current_position = self._clamp(state.sideline_position)
            state.sideline_position = None
            state.dynamic_target = self._random_target()

        if speed > 0:
            return self._move(speed)

        return self._clamp(self._jitter(state.current_position, IDLE_JITTER_M))

    def is_in_arena(self, position: Position, tolerance_m: float = 0.0) -> bool:
        if self.arena.shape == "circle":
            return haversine_distance(position, self.center) <= self.arena.radius_m + tolerance_m
        north_m, east_m = self._offset_from_center(position)
        return (
            abs(north_m) <= self.arena.height_m / 2 + tolerance_m
            and abs(east_m) <= self.arena.width_m / 2 + tolerance_m
        )

    def is_in_sideline_zone(self, position: Position, tolerance_m: float = 0.0) -> bool:
        north_m, east_m = self._offset_from_center(position)
        half_spread = (SIDELINE_SPREAD_M + SIDELINE_JITTER_M) / 2
        return (
            abs(north_m) <= half_spread + tolerance_m
            and abs(east_m - self.arena.sideline_offset_m) <= SIDELINE_JITTER_M / 2 + tolerance_m
        )

    # ─── Movement ─────────────────────────────────────────────────────────────

    def _move(self, speed: float) -> Position:
        state = self.state

        if haversine_distance(state.current_position, state.dynamic_target) < TARGET_REACHED_M:
            state.dynamic_target = self._random_target()

        direction = self._movement_direction()
        state.momentum = direction.blend(state.momentum, MOMENTUM_WEIGHT)
        state.movement_direction = direction

        step_m = speed * 1.0 * (SPEED_VARIATION_MIN + self.rng.random() * SPEED_VARIATION_SPREAD)
        candidate = offset_position(
            state.current_position,
            north_m=step_m * direction.lat,
            east_m=step_m * direction.lon,
        )

        position, hit_boundary = self._constrain(candidate)
        if hit_boundary:
            state.dynamic_target = self._random_target()

        state.current_position = position
        return position

    def _movement_direction(self) -> Vector:
        state = self.state
        distance_from_center = haversine_distance(state.current_position, self.center)

        target_north, target_east = self._offset_between(state.current_position, state.dynamic_target)
        toward_target = Vector(target_north, target_east).normalized()

        center_bias = min(
            MAX_CENTER_BIAS,
            (distance_from_center / self._max_extent()) ** CENTER_BIAS_EXPONENT,
        )

        angle = self.rng.random() * 2 * math.pi
        random_direction = Vector(math.sin(angle), math.cos(angle))

        blended = random_direction.blend(toward_target, center_bias)
        blended = Vector(
            blended.lat + (self.rng.random() - 0.5) * DIRECTION_JITTER,
            blended.lon + (self.rng.random() - 0.5) * DIRECTION_JITTER,
        )
        blended = blended.blend(state.momentum, MOMENTUM_WEIGHT)
        return blended.normalized()

    # ─── Arena geometry ───────────────────────────────────────────────────────

    def _max_extent(self) -> float:
        if self.arena.shape == "circle":
            return self.arena.radius_m
        return math.hypot(self.arena.width_m, self.arena.height_m) / 2

    def _offset_between(self, origin: Position, point: Position) -> Tuple[float, float]:
        """(north, east) meters from origin to point, flat-Earth."""
        north_m = (point.latitude_degrees - origin.latitude_degrees) * METERS_PER_DEGREE
        east_m = (
            (point.longitude_degrees - origin.longitude_degrees)
            * METERS_PER_DEGREE
            * math.cos(math.radians(origin.latitude_degrees))
        )
        return north_m, east_m

    def _offset_from_center(self, position: Position) -> Tuple[float, float]:
        return self._offset_between(self.center, position)

    def _constrain(self, position: Position) -> Tuple[Position, bool]:
        """Pull a position back onto the arena boundary. Returns (position, was_outside)."""
        if self.arena.shape == "circle":
            distance = haversine_distance(position, self.center)
            if distance <= self.arena.radius_m:
                return position, False
            scale = self.arena.radius_m / distance
            return Position(
                latitude_degrees=self.center.latitude_degrees
                + (position.latitude_degrees - self.center.latitude_degrees) * scale,
                longitude_degrees=self.center.longitude_degrees
                + (position.longitude_degrees - self.center.longitude_degrees) * scale,
            ), True

        lat_diff = position.latitude_degrees - self.center.latitude_degrees
        lon_diff = position.longitude_degrees - self.center.longitude_degrees
        max_lat_diff = meters_to_lat_degrees(self.arena.height_m / 2)
        max_lon_diff = meters_to_lon_degrees(self.arena.width_m / 2, self.center.latitude_degrees)

        if abs(lat_diff) <= max_lat_diff and abs(lon_diff) <= max_lon_diff:
            return position, False

        return Position(
            latitude_degrees=self.center.latitude_degrees
            + math.copysign(min(abs(lat_diff), max_lat_diff), lat_diff),
            longitude_degrees=self.center.longitude_degrees
            + math.copysign(min(abs(lon_diff), max_lon_diff), lon_diff),
        ), True

    def _clamp(self, position: Position) -> Position:
        return self._constrain(position)[0]

    # ─── Random draws ─────────────────────────────────────────────────────────

    def _random_target(self) -> Position:
        rng = self.rng
        if self.arena.shape == "circle":
            reach = (TARGET_MIN_EXTENT + rng.random() * TARGET_EXTENT_SPREAD) * self.arena.radius_m
            distance = reach * math.sqrt(rng.random())
            angle = rng.random() * 2 * math.pi
            return offset_position(
                self.center,
                north_m=distance * math.sin(angle),
                east_m=distance * math.cos(angle),
            )

        target_width = (TARGET_MIN_EXTENT + rng.random() * TARGET_EXTENT_SPREAD) * self.arena.width_m
        target_height = (TARGET_MIN_EXTENT + rng.random() * TARGET_EXTENT_SPREAD) * self.arena.height_m
        return offset_position(
            self.center,
            north_m=(rng.random() - 0.5) * target_height,
            east_m=(rng.random() - 0.5) * target_width,
        )

    def _random_sideline_position(self) -> Position:
        along_sideline = (self.rng.random() - 0.5) * SIDELINE_SPREAD_M
        return offset_position(
            self.center,
            north_m=along_sideline,
            east_m=self.arena.sideline_offset_m,
        )

    def _jitter(self, position: Position, spread_m: float) -> Position:
        return offset_position(
            position,
            north_m=(self.rng.random() - 0.5) * spread_m,
            east_m=(self.rng.random() - 0.5) * spread_m,
        )
