from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from autodrive.planner.command_builder import build_car_action
from autodrive.planner.config import DEFAULT_CONFIG, PlannerConfig
from autodrive.planner.state_processor import plan_actions
from autodrive.runtime.types import Command, CommandType

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class IssuedCommand:
    section: int
    time_s: float
    command_type: str
    force: int | None
    delay_s: float


@dataclass(slots=True)
class DriveResult:
    token: str
    sections: int = 0
    actions_issued: int = 0
    completed: bool = False
    issued: list[IssuedCommand] = field(default_factory=list)


@dataclass(slots=True)
class AutoDriver:
    """Replays planned commands against the car service, one road block at a time.

    `service` must offer `register`, `get_car`, `get_road` and `do_action`;
    `clock` must offer `now()` and `sleep(seconds)`.
    """

    service: Any
    clock: Any
    config: PlannerConfig = DEFAULT_CONFIG
    max_sections: int | None = None

    def _wait(self, command: Command) -> None:
        delay_s = command.delay_s
        if delay_s < 0:
            logger.warning('Clamping negative delay %.3f s before %s', delay_s, command.command_type.value)
            delay_s = 0.0
        self.clock.sleep(delay_s)

    def drive(self, *, course: int, user: str, latency_compensation_ms: int = 50) -> DriveResult:
        token = self.service.register(course_layout=course, name=user)
        result = DriveResult(token=token)
        safety_margin = latency_compensation_ms / 1000.0

        self.service.get_car()
        self.service.do_action(build_car_action(Command(CommandType.IGNITION_ON)))
        car = self.service.get_car()
        road = self.service.get_road()

        while car.ignition == 'On' or road.speed_limit_ahead.remaining_distance_to_enforcement is not None:
            if self.max_sections is not None and result.sections >= self.max_sections:
                logger.warning('Stopping after %d sections without reaching the end of the course.', result.sections)
                return result

            logger.info(
                'Section: %d, Current Speed: %s, CurrentLimit: %s, FutureLimit: %s, EnforceDistance: %s',
                result.sections,
                car.current_velocity,
                road.current_speed_limit.max,
                road.speed_limit_ahead.max,
                road.speed_limit_ahead.remaining_distance_to_enforcement,
            )
            for command in plan_actions(car, road, safety_margin, config=self.config):
                self._wait(command)
                if command.command_type is CommandType.DELAY:
                    continue
                logger.info('Taking action: %s with force %s', command.command_type.value, command.force)
                self.service.do_action(build_car_action(command))
                result.actions_issued += 1
                result.issued.append(
                    IssuedCommand(
                        section=result.sections,
                        time_s=float(self.clock.now()),
                        command_type=command.command_type.value,
                        force=command.force,
                        delay_s=command.delay_s,
                    )
                )
            result.sections += 1

            started = self.clock.now()
            car = self.service.get_car()
            road = self.service.get_road()
            logger.info('Refreshing car and road took %.0f ms', (self.clock.now() - started) * 1000)

        result.completed = True
        return result
