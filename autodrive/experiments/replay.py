from __future__ import annotations

import argparse
import json
from dataclasses import asdict, dataclass
from typing import Iterable

from autodrive.planner.state_processor import plan_actions
from autodrive.runtime.types import Command, CommandType, RoadState, SpeedLimit, SpeedLimitAhead, VehicleState


@dataclass(frozen=True, slots=True)
class ReplayResult:
    min_velocity: float
    max_velocity: float
    distance: float
    duration: float


def simulate_commands(initial_velocity: float, commands: Iterable[Command]) -> ReplayResult:
    """Integrate constant-acceleration motion over a command timeline.

    Each delay elapses under the acceleration set by the previous command.
    """

    velocity = float(initial_velocity)
    acceleration = 0.0
    distance = 0.0
    duration = 0.0
    min_velocity = velocity
    max_velocity = velocity
    for command in commands:
        delay_s = command.delay_s
        if delay_s != 0:
            distance += velocity * delay_s + acceleration / 2 * delay_s * delay_s
            velocity += acceleration * delay_s
            duration += delay_s
            min_velocity = min(min_velocity, velocity)
            max_velocity = max(max_velocity, velocity)
        if command.command_type is CommandType.ACCELERATE:
            acceleration = float(command.force or 0)
        elif command.command_type is CommandType.BRAKE:
            acceleration = -float(command.force or 0)
    return ReplayResult(
        min_velocity=min_velocity,
        max_velocity=max_velocity,
        distance=distance,
        duration=duration,
    )


def main() -> int:
    parser = argparse.ArgumentParser(description='Plan one road block and replay the resulting commands.')
    parser.add_argument('--velocity', type=float, default=0.0)
    parser.add_argument('--current-max', type=float, default=24.0)
    parser.add_argument('--ahead-max', type=float, default=None)
    parser.add_argument('--distance', type=float, default=None, help='Remaining distance to the next zone.')
    parser.add_argument('--latency-ms', type=int, default=0)
    args = parser.parse_args()

    vehicle = VehicleState(current_velocity=args.velocity, ignition='On')
    road = RoadState(
        current_speed_limit=SpeedLimit(0.0, args.current_max),
        speed_limit_ahead=SpeedLimitAhead(None, args.ahead_max, args.distance),
    )
    commands = plan_actions(vehicle, road, args.latency_ms / 1000.0)
    summary = {
        'commands': [
            {'action': command.command_type.value, 'force': command.force, 'delay_s': command.delay_s}
            for command in commands
        ],
        'replay': asdict(simulate_commands(args.velocity, commands)),
    }
    print(json.dumps(summary, indent=2))
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
