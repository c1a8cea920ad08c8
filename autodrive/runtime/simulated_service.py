from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from autodrive.runtime.courses import Zone, get_course
from autodrive.runtime.types import CommandType, RoadState, SpeedLimit, SpeedLimitAhead, VehicleState

logger = logging.getLogger(__name__)

_ACTIONS = {command_type.value for command_type in CommandType if command_type is not CommandType.DELAY}
_VELOCITY_DECIMALS = 9
# Positions this close to a boundary count as past it.
_BOUNDARY_TOLERANCE_M = 1e-6


@dataclass(slots=True)
class SimulatedCarService:
    """In-process stand-in for the remote car and road service.

    The vehicle moves with constant acceleration between calls; its state is
    advanced lazily to `clock.now()` whenever the service is queried. Each
    call first waits `request_latency_s` on the clock to mimic a round trip.
    """

    clock: Any
    request_latency_s: float = 0.0
    zones: tuple[Zone, ...] = ()
    token: str | None = None
    ignition: str = 'Off'
    position_m: float = 0.0
    velocity: float = 0.0
    acceleration: float = 0.0
    total_time_s: float = 0.0
    action_log: list[dict[str, Any]] = field(default_factory=list)
    _boundaries: np.ndarray = field(default_factory=lambda: np.zeros(0))
    _last_update_s: float = 0.0

    def register(self, *, course_layout: int, name: str) -> str:
        self.zones = get_course(course_layout)
        self._boundaries = np.cumsum([zone.length_m for zone in self.zones])
        self.token = f'{course_layout}:{name}'
        self.ignition = 'Off'
        self.position_m = 0.0
        self.velocity = 0.0
        self.acceleration = 0.0
        self.total_time_s = 0.0
        self.action_log = []
        self._last_update_s = float(self.clock.now())
        logger.info('Registered %s on course %s (%.1f m)', name, course_layout, self.course_length_m)
        return self.token

    @property
    def course_length_m(self) -> float:
        return float(self._boundaries[-1]) if len(self._boundaries) else 0.0

    def _require_registration(self) -> None:
        if self.token is None:
            raise RuntimeError('register() must be called before using the service')

    def _round_trip(self) -> None:
        self._require_registration()
        self.clock.sleep(self.request_latency_s)
        self._advance()

    def _advance(self) -> None:
        now = float(self.clock.now())
        dt = now - self._last_update_s
        self._last_update_s = now
        if dt <= 0:
            return
        self.total_time_s += dt

        acceleration = self.acceleration if self.ignition == 'On' else 0.0
        new_velocity = self.velocity + acceleration * dt
        if new_velocity < 0:
            # Braking halts the vehicle; it does not reverse.
            time_to_stop = -self.velocity / acceleration
            self.position_m += self.velocity * time_to_stop / 2
            self.velocity = 0.0
            return
        self.position_m += dt * (self.velocity + new_velocity) / 2
        # Settle float residue so a velocity reached exactly reads back exactly.
        self.velocity = round(float(new_velocity), _VELOCITY_DECIMALS)

    def get_car(self) -> VehicleState:
        self._round_trip()
        if self.ignition != 'On':
            engine_state = 'Off'
        elif self.acceleration == 0:
            engine_state = 'Idling'
        else:
            engine_state = 'Running'
        return VehicleState(
            current_velocity=self.velocity,
            ignition=self.ignition,
            engine_state=engine_state,
            total_distance_travelled=self.position_m,
            total_time_travelled=self.total_time_s,
        )

    def get_road(self) -> RoadState:
        self._round_trip()
        zone_index = int(
            np.searchsorted(self._boundaries, self.position_m + _BOUNDARY_TOLERANCE_M, side='right')
        )
        if zone_index >= len(self.zones):
            # Past the finish line.
            return RoadState(current_speed_limit=SpeedLimit(0.0, 0.0), speed_limit_ahead=SpeedLimitAhead())

        zone = self.zones[zone_index]
        remaining = float(self._boundaries[zone_index]) - self.position_m
        if zone_index + 1 < len(self.zones):
            next_zone = self.zones[zone_index + 1]
            ahead = SpeedLimitAhead(next_zone.min_speed, next_zone.max_speed, remaining)
        else:
            ahead = SpeedLimitAhead(0.0, 0.0, remaining)
        return RoadState(
            current_speed_limit=SpeedLimit(zone.min_speed, zone.max_speed),
            speed_limit_ahead=ahead,
        )

    def do_action(self, action: dict[str, Any]) -> None:
        self._round_trip()
        name = action.get('action')
        if name not in _ACTIONS:
            raise ValueError(f'Unsupported action: {name!r}')
        force = action.get('force')

        if name == CommandType.IGNITION_ON.value:
            self.ignition = 'On'
        elif name == CommandType.IGNITION_OFF.value:
            self.ignition = 'Off'
            self.acceleration = 0.0
        else:
            if not isinstance(force, int) or force < 0:
                raise ValueError(f'{name} requires a non-negative integer force, got {force!r}')
            self.acceleration = float(force) if name == CommandType.ACCELERATE.value else -float(force)
        self.action_log.append({'time_s': self.total_time_s, **action})
