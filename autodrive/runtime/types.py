from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class CommandType(Enum):
    ACCELERATE = 'Accelerate'
    BRAKE = 'Brake'
    IGNITION_OFF = 'IgnitionOff'
    IGNITION_ON = 'IgnitionOn'
    # Issued as a zero-force accelerate.
    DELAY = 'Delay'


@dataclass(frozen=True, slots=True)
class VehicleState:
    current_velocity: float | None = None
    ignition: str = 'Off'
    engine_state: str = 'Idling'
    total_distance_travelled: float = 0.0
    total_time_travelled: float = 0.0


@dataclass(frozen=True, slots=True)
class SpeedLimit:
    min: float | None = None
    max: float | None = None


@dataclass(frozen=True, slots=True)
class SpeedLimitAhead:
    min: float | None = None
    max: float | None = None
    remaining_distance_to_enforcement: float | None = None


@dataclass(frozen=True, slots=True)
class RoadState:
    current_speed_limit: SpeedLimit = field(default_factory=SpeedLimit)
    speed_limit_ahead: SpeedLimitAhead = field(default_factory=SpeedLimitAhead)


@dataclass(frozen=True, slots=True)
class Command:
    """One timed instruction.

    `delay_s` is the wait after the previous command was issued before this
    one is issued. `force` is a non-negative magnitude; a brake force acts as
    negative acceleration.
    """

    command_type: CommandType
    delay_s: float = 0.0
    force: int | None = None
