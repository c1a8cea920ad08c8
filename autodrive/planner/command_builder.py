from __future__ import annotations

from autodrive.runtime.types import Command, CommandType


def build_car_action(command: Command) -> dict[str, str | int | None]:
    if command.command_type is CommandType.DELAY:
        return {'action': CommandType.ACCELERATE.value, 'force': 0}
    if command.command_type in {CommandType.IGNITION_ON, CommandType.IGNITION_OFF}:
        return {'action': command.command_type.value}
    return {'action': command.command_type.value, 'force': command.force}
