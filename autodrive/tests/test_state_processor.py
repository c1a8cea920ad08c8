from __future__ import annotations

import itertools
import math
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from autodrive.experiments.replay import simulate_commands
from autodrive.kinematics.laws_of_motion import time_elapsed_during_acceleration, time_to_zero_velocity
from autodrive.planner.command_builder import build_car_action
from autodrive.planner.config import PlannerConfig
from autodrive.planner.state_processor import (
    calculate_acceleration_needed,
    calculate_braking_needed,
    plan_actions,
)
from autodrive.runtime.types import Command, CommandType, RoadState, SpeedLimit, SpeedLimitAhead, VehicleState


def _car(velocity: float | None = 0.0) -> VehicleState:
    return VehicleState(current_velocity=velocity, ignition='On', engine_state='Idling')


def _road(
    current_min: float = 0.0,
    current_max: float = 0.0,
    distance: float | None = None,
    ahead_min: float | None = None,
    ahead_max: float | None = None,
) -> RoadState:
    return RoadState(
        current_speed_limit=SpeedLimit(current_min, current_max),
        speed_limit_ahead=SpeedLimitAhead(ahead_min, ahead_max, distance),
    )


def _assert_command(command: Command, command_type: CommandType, force: int | None, delay_s: float) -> None:
    assert command.command_type is command_type
    assert command.force == force
    assert command.delay_s == pytest.approx(delay_s)


def test_accelerates_to_speed_from_start() -> None:
    # 4 s accelerating to 24 covers 48, then 2 s coasting at 24 covers the rest.
    result = plan_actions(_car(0.0), _road(20, 24, 96, 20, 24))

    assert len(result) == 3
    _assert_command(result[0], CommandType.ACCELERATE, 6, 0.0)
    _assert_command(result[1], CommandType.ACCELERATE, 0, 4.0)
    _assert_command(result[2], CommandType.ACCELERATE, 0, 2.0)
    assert simulate_commands(0.0, result).distance == pytest.approx(96.0)


def test_no_zone_ahead_while_stopped_switches_off_ignition() -> None:
    result = plan_actions(_car(0.0), _road(20, 24, None, 20, 24))

    assert result == [Command(CommandType.IGNITION_OFF)]
    assert result[0].force is None
    assert result[0].delay_s == 0.0


@pytest.mark.parametrize('vehicle, road', [(None, _road(0, 24, 100, 0, 24)), (_car(10.0), None), (None, None)])
def test_missing_state_switches_off_ignition(vehicle: VehicleState | None, road: RoadState | None) -> None:
    assert plan_actions(vehicle, road) == [Command(CommandType.IGNITION_OFF)]


def test_unknown_velocity_is_treated_as_stopped() -> None:
    assert plan_actions(_car(None), _road(20, 24)) == [Command(CommandType.IGNITION_OFF)]


def test_no_zone_ahead_while_moving_brakes_to_a_stop() -> None:
    result = plan_actions(_car(6.0), _road(20, 24))

    assert len(result) == 2
    _assert_command(result[0], CommandType.BRAKE, 6, 0.0)
    _assert_command(result[1], CommandType.ACCELERATE, 0, 1.0)


def test_unknown_limit_ahead_with_distance_brakes_to_a_stop() -> None:
    result = plan_actions(_car(12.0), _road(0, 24, 300, None, None))

    _assert_command(result[0], CommandType.BRAKE, 6, 0.0)
    _assert_command(result[1], CommandType.ACCELERATE, 0, 2.0)
    assert simulate_commands(12.0, result).min_velocity == pytest.approx(0.0)


def test_already_at_ideal_speed_coasts() -> None:
    result = plan_actions(_car(24.0), _road(20, 24, 24, 20, 24))

    assert len(result) == 1
    _assert_command(result[0], CommandType.ACCELERATE, 0, 1.0)
    assert simulate_commands(24.0, result).distance == pytest.approx(24.0)


def test_approaching_stop_slows_to_safe_braking_speed() -> None:
    # A zero limit ahead targets the safe braking speed (24) instead of a full stop.
    result = plan_actions(_car(48.0), _road(20, 48, 300, 0, 0))

    assert len(result) == 2
    _assert_command(result[0], CommandType.BRAKE, 6, 3.25)
    _assert_command(result[1], CommandType.ACCELERATE, 0, 4.0)
    replay = simulate_commands(48.0, result)
    assert replay.distance == pytest.approx(300.0)
    assert replay.min_velocity == pytest.approx(24.0)


def test_safe_braking_speed_comes_from_config() -> None:
    config = PlannerConfig(safe_braking_speed=12.0)
    result = plan_actions(_car(48.0), _road(20, 48, 300, 0, 0), config=config)

    assert simulate_commands(48.0, result).min_velocity == pytest.approx(12.0)


def test_cannot_reach_max_speed_brakes_to_proper_speed() -> None:
    result = plan_actions(_car(12.0), _road(40, 40, 140, 35, 35))

    assert [command.command_type for command in result] == [
        CommandType.ACCELERATE,
        CommandType.BRAKE,
        CommandType.ACCELERATE,
    ]
    _assert_command(result[0], CommandType.ACCELERATE, 6, 0.0)
    assert result[1].force == 6
    replay = simulate_commands(12.0, result)
    assert replay.distance == pytest.approx(140.0)
    assert replay.min_velocity >= 12.0
    assert 20.0 < replay.max_velocity <= 40.0


def test_cannot_reach_max_speed_slows_to_a_much_lower_limit() -> None:
    result = plan_actions(_car(12.0), _road(40, 40, 140, 15, 15))

    assert len(result) == 3
    replay = simulate_commands(12.0, result)
    assert replay.distance == pytest.approx(140.0)
    assert replay.min_velocity >= 12.0
    assert replay.max_velocity > 20.0


def test_short_road_speeds_up_and_brakes_halfway() -> None:
    result = plan_actions(_car(30.0), _road(60, 60, 180, 30, 30))
    time_per_half = time_elapsed_during_acceleration(90.0, 30.0, 6.0)

    assert len(result) == 3
    _assert_command(result[0], CommandType.ACCELERATE, 6, 0.0)
    _assert_command(result[1], CommandType.BRAKE, 6, time_per_half)
    _assert_command(result[2], CommandType.ACCELERATE, 0, time_per_half)
    assert simulate_commands(30.0, result[:2]).distance == pytest.approx(90.0)
    assert simulate_commands(30.0, result).distance == pytest.approx(180.0)


def test_entering_stop_zone_stops_fully() -> None:
    result = plan_actions(_car(24.0), _road(0, 0, 50, 30, 25))

    assert len(result) == 2
    _assert_command(result[0], CommandType.BRAKE, 6, 0.0)
    _assert_command(result[1], CommandType.ACCELERATE, 0, time_to_zero_velocity(24.0, -6.0))


def test_in_stop_zone_accelerates_to_exit() -> None:
    result = plan_actions(_car(0.0), _road(0, 0, 180, 25, 30))

    assert len(result) == 3
    _assert_command(result[0], CommandType.ACCELERATE, 6, 0.0)
    _assert_command(result[1], CommandType.ACCELERATE, 0, 5.0)
    _assert_command(result[2], CommandType.ACCELERATE, 0, 3.5)
    assert simulate_commands(0.0, result).distance == pytest.approx(180.0)


def test_stationary_in_stop_zone_facing_stop_zone_holds() -> None:
    result = plan_actions(_car(0.0), _road(0, 0, 100, 0, 0))

    assert result == [Command(CommandType.DELAY, PlannerConfig().boundary_guard_s)]


def test_boundary_timing_guard_adds_pass_through_command() -> None:
    result = plan_actions(_car(24.0), _road(0, 24, 6, 0, 24))

    assert len(result) == 2
    _assert_command(result[0], CommandType.ACCELERATE, 0, 0.25)
    _assert_command(result[1], CommandType.ACCELERATE, 0, 0.25)


def test_safety_margin_shifts_transitions() -> None:
    result = plan_actions(_car(0.0), _road(20, 24, 96, 20, 24), 0.05)

    _assert_command(result[1], CommandType.ACCELERATE, 0, 3.95)
    _assert_command(result[2], CommandType.ACCELERATE, 0, 2.05)

    overspeed = plan_actions(_car(6.0), _road(20, 24), 0.05)
    _assert_command(overspeed[1], CommandType.ACCELERATE, 0, 0.95)

    braking = plan_actions(_car(48.0), _road(20, 48, 300, 0, 0), 0.05)
    _assert_command(braking[0], CommandType.BRAKE, 6, 3.25)
    _assert_command(braking[1], CommandType.ACCELERATE, 0, 4.05)


def test_planning_is_idempotent() -> None:
    car = _car(12.0)
    road = _road(40, 40, 140, 35, 35)
    assert plan_actions(car, road, 0.05) == plan_actions(car, road, 0.05)


def test_calculate_acceleration_needed_floors_and_caps_force() -> None:
    assert calculate_acceleration_needed(24.0) == (6.0, 4.0)
    assert calculate_acceleration_needed(4.5) == (4.0, pytest.approx(1.125))
    assert calculate_acceleration_needed(0.6) == (0.0, 0.0)
    assert calculate_acceleration_needed(0.0) == (0.0, 0.0)


def test_calculate_braking_needed_without_braking_is_infinite() -> None:
    start, end = calculate_braking_needed(
        current_velocity=0.0,
        acceleration_force=6.0,
        max_velocity=24.0,
        distance_before_enforcement=96.0,
        enforcement_target_speed=24.0,
    )
    assert math.isinf(start) and math.isinf(end)


def test_braking_force_must_be_whole() -> None:
    with pytest.raises(ValueError):
        PlannerConfig(braking_force=4.5)

    commands = plan_actions(_car(30.0), _road(0, 24, 100, 0, 24), config=PlannerConfig(braking_force=5.0))
    _assert_command(commands[0], CommandType.BRAKE, 5, 0.0)


def test_unknown_boundary_distance_plans_from_zero_distance() -> None:
    # Accelerating: the coast after reaching top speed is scheduled in the past.
    commands = plan_actions(_car(12.0), _road(0, 24, None, 0, 24))
    assert len(commands) == 3
    _assert_command(commands[0], CommandType.ACCELERATE, 6, 0.0)
    _assert_command(commands[1], CommandType.ACCELERATE, 0, 2.0)
    _assert_command(commands[2], CommandType.ACCELERATE, 0, -1.5)

    # Cruising: only the safety margin remains.
    commands = plan_actions(_car(24.0), _road(0, 24, None, 0, 24), 0.05)
    assert len(commands) == 1
    _assert_command(commands[0], CommandType.ACCELERATE, 0, 0.05)


def test_build_car_action_maps_commands() -> None:
    assert build_car_action(Command(CommandType.DELAY, 1.0)) == {'action': 'Accelerate', 'force': 0}
    assert build_car_action(Command(CommandType.IGNITION_ON)) == {'action': 'IgnitionOn'}
    assert build_car_action(Command(CommandType.IGNITION_OFF)) == {'action': 'IgnitionOff'}
    assert build_car_action(Command(CommandType.BRAKE, 0.0, 6)) == {'action': 'Brake', 'force': 6}
    assert build_car_action(Command(CommandType.ACCELERATE, 2.0, 0)) == {'action': 'Accelerate', 'force': 0}


def _has_room(velocity: float, current_max: float, ahead_max: float, distance: float) -> bool:
    target = ahead_max or 24.0
    peak = current_max
    accelerating = (peak * peak - velocity * velocity) / 12.0
    braking = max(peak * peak - target * target, 0.0) / 12.0
    return accelerating + braking <= distance


@pytest.mark.parametrize('safety_margin', [0.0, 0.05])
def test_plan_properties_over_valid_inputs(safety_margin: float) -> None:
    velocities = [0.0, 6.0, 12.0, 24.0]
    current_maxima = [12.0, 24.0, 40.0]
    ahead_maxima = [0.0, 15.0, 24.0, 35.0]
    distances = [60.0, 150.0, 400.0]

    checked = 0
    for velocity, current_max, ahead_max, distance in itertools.product(
        velocities, current_maxima, ahead_maxima, distances
    ):
        if velocity > current_max:
            continue
        car = _car(velocity)
        road = _road(0.0, current_max, distance, 0.0, ahead_max)
        result = plan_actions(car, road, safety_margin)

        assert 1 <= len(result) <= 4
        assert result == plan_actions(car, road, safety_margin)
        if not _has_room(velocity, current_max, ahead_max, distance):
            continue
        checked += 1
        assert all(command.delay_s >= -1e-9 for command in result)
        replay = simulate_commands(velocity, result)
        assert replay.min_velocity >= -1e-9
        assert replay.max_velocity <= max(current_max, ahead_max) + 1e-9
        if safety_margin == 0.0:
            assert replay.distance == pytest.approx(distance)

    assert checked > 0
