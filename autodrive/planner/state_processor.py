from __future__ import annotations

import logging
import math

from autodrive.kinematics import laws_of_motion
from autodrive.planner.config import DEFAULT_CONFIG, PlannerConfig
from autodrive.runtime.types import Command, CommandType, RoadState, VehicleState

logger = logging.getLogger(__name__)

NO_BRAKING = (math.inf, math.inf)


def is_end_of_the_road(vehicle: VehicleState, road: RoadState) -> bool:
    return (
        (vehicle.current_velocity or 0.0) == 0
        and road.speed_limit_ahead.remaining_distance_to_enforcement is None
    )


def calculate_acceleration_needed(
    velocity_delta: float, *, config: PlannerConfig = DEFAULT_CONFIG
) -> tuple[float, float]:
    """Return `(acceleration_force, acceleration_duration)` for a speed change.

    The force is floored because the command interface only accepts whole
    numbers.
    """

    acceleration_force = float(math.floor(min(velocity_delta, config.max_acceleration)))
    if acceleration_force == 0:
        return 0.0, 0.0
    return acceleration_force, velocity_delta / acceleration_force


def calculate_braking_needed(
    *,
    current_velocity: float,
    acceleration_force: float,
    max_velocity: float,
    distance_before_enforcement: float,
    enforcement_target_speed: float,
    config: PlannerConfig = DEFAULT_CONFIG,
) -> tuple[float, float]:
    """Return `(braking_start, braking_end)` in seconds from now.

    Both are infinite when `max_velocity` already respects the target.
    """

    if max_velocity <= enforcement_target_speed:
        return NO_BRAKING

    braking_force = config.braking_force
    full_acceleration_time = (
        0.0 if acceleration_force == 0 else (max_velocity - current_velocity) / acceleration_force
    )
    distance_accelerating = laws_of_motion.distance_travelled(
        current_velocity, max_velocity, full_acceleration_time
    )
    distance_decelerating = laws_of_motion.distance_travelled(
        max_velocity,
        enforcement_target_speed,
        (max_velocity - enforcement_target_speed) / braking_force,
    )

    if distance_accelerating + distance_decelerating > distance_before_enforcement:
        # Full acceleration would overshoot: cut it short and brake from the switch point.
        distance_until_braking = laws_of_motion.distance_to_braking_point(
            current_velocity,
            acceleration_force,
            -braking_force,
            enforcement_target_speed,
            distance_before_enforcement,
        )
        time_accelerating = laws_of_motion.time_elapsed_during_acceleration(
            distance_until_braking, current_velocity, acceleration_force
        )
        speed_before_braking = laws_of_motion.final_velocity(
            current_velocity, acceleration_force, time_accelerating
        )
        time_decelerating = laws_of_motion.time_elapsed_during_acceleration(
            distance_before_enforcement - distance_until_braking,
            speed_before_braking,
            -braking_force,
        )
        return time_accelerating, time_accelerating + time_decelerating

    # Phases do not overlap; coast in between.
    acceleration_time = (
        0.0
        if acceleration_force == 0
        else laws_of_motion.time_elapsed_during_acceleration(
            distance_accelerating, current_velocity, acceleration_force
        )
    )
    deceleration_time = laws_of_motion.time_elapsed_during_acceleration(
        distance_decelerating, max_velocity, -braking_force
    )
    coasting_time = (
        distance_before_enforcement - (distance_accelerating + distance_decelerating)
    ) / max_velocity
    return (
        acceleration_time + coasting_time,
        acceleration_time + deceleration_time + coasting_time,
    )


def plan_actions(
    vehicle: VehicleState | None,
    road: RoadState | None,
    safety_margin: float = 0.0,
    *,
    config: PlannerConfig = DEFAULT_CONFIG,
) -> list[Command]:
    """Plan between 1 and 4 timed commands for the current road block.

    `safety_margin` (seconds) pulls transitions earlier to absorb the
    latency of issuing each command.
    """

    if vehicle is None or road is None or is_end_of_the_road(vehicle, road):
        logger.info('Executing vehicle shutdown.')
        return [Command(CommandType.IGNITION_OFF)]

    braking_force = int(config.braking_force)
    ahead = road.speed_limit_ahead
    remaining_distance = ahead.remaining_distance_to_enforcement
    current_max = road.current_speed_limit.max or 0.0
    initial_velocity = vehicle.current_velocity or 0.0

    velocity_delta = current_max - initial_velocity
    if ahead.max is None:
        # Nothing known ahead: come to a stop.
        velocity_delta = -initial_velocity

    if velocity_delta < 0:
        logger.warning('Overspeed at %s vs max of %s', initial_velocity, current_max)
        return [
            Command(CommandType.BRAKE, 0.0, braking_force),
            Command(
                CommandType.ACCELERATE,
                abs(velocity_delta / config.braking_force) - safety_margin,
                0,
            ),
        ]

    if velocity_delta == 0 and initial_velocity == 0:
        logger.info('Stop detected, proceeding from full stop.')
        velocity_delta = ahead.max or 0.0

    commands: list[Command] = []
    if (
        initial_velocity != 0
        and remaining_distance is not None
        and remaining_distance / initial_velocity < config.boundary_guard_s
    ):
        logger.warning(
            'Assessed the state with %s distance remaining at %s, timing may be incorrect.',
            remaining_distance,
            initial_velocity,
        )
        commands.append(Command(CommandType.ACCELERATE, remaining_distance / initial_velocity, 0))

    acceleration_force, acceleration_end = calculate_acceleration_needed(velocity_delta, config=config)
    # No boundary counts as zero distance, so coasting delays below can go negative.
    distance_before_enforcement = remaining_distance or 0.0
    enforcement_target_speed = ahead.max or config.safe_braking_speed
    max_speed = laws_of_motion.final_velocity(initial_velocity, acceleration_force, acceleration_end)
    braking_start, braking_end = calculate_braking_needed(
        current_velocity=initial_velocity,
        acceleration_force=acceleration_force,
        max_velocity=max_speed,
        distance_before_enforcement=distance_before_enforcement,
        enforcement_target_speed=enforcement_target_speed,
        config=config,
    )

    delay_offset = 0.0
    if acceleration_force > 0:
        commands.append(Command(CommandType.ACCELERATE, 0.0, int(acceleration_force)))
        if acceleration_end < braking_start:
            # Stop accelerating once the top speed is reached.
            commands.append(Command(CommandType.ACCELERATE, acceleration_end - safety_margin, 0))
            delay_offset = acceleration_end

    if braking_start < math.inf:
        commands.append(Command(CommandType.BRAKE, braking_start - delay_offset, braking_force))
        commands.append(Command(CommandType.ACCELERATE, braking_end - braking_start + safety_margin, 0))
    elif acceleration_force != 0:
        acceleration_distance = laws_of_motion.distance_travelled(
            initial_velocity, max_speed, acceleration_end
        )
        coasting_time = (distance_before_enforcement - acceleration_distance) / max_speed
        commands.append(Command(CommandType.ACCELERATE, coasting_time + safety_margin, 0))
    elif initial_velocity == 0:
        # Stationary with nothing to reach: hold and re-sample.
        commands.append(Command(CommandType.DELAY, config.boundary_guard_s))
    else:
        commands.append(
            Command(
                CommandType.ACCELERATE,
                distance_before_enforcement / initial_velocity + safety_margin,
                0,
            )
        )

    logger.debug('Planned %d commands: %s', len(commands), commands)
    return commands
