from __future__ import annotations

import math

# Relative slack on the quadratic discriminant before it is treated as invalid input.
_DISCRIMINANT_TOLERANCE = 1e-9


class KinematicsError(ValueError):
    """Raised when inputs cannot describe real constant-acceleration motion."""


def final_velocity(initial_velocity: float, acceleration: float, elapsed_time: float) -> float:
    # v = u + a*t
    return initial_velocity + acceleration * elapsed_time


def time_to_zero_velocity(initial_velocity: float, acceleration: float) -> float:
    """t = (0 - u) / a. Returns a non-finite value when `acceleration` is 0."""

    return time_to_velocity(initial_velocity, acceleration, 0.0)


def time_to_velocity(initial_velocity: float, acceleration: float, target_velocity: float) -> float:
    # t = (v - u) / a
    delta = float(target_velocity) - float(initial_velocity)
    if acceleration == 0:
        if delta == 0:
            return math.nan
        return math.copysign(math.inf, delta)
    return delta / acceleration


def distance_travelled(initial_velocity: float, final_velocity: float, elapsed_time: float) -> float:
    # s = t * (u + v) / 2
    return elapsed_time * (initial_velocity + final_velocity) / 2


def distance_to_braking_point(
    initial_velocity: float,
    acceleration_rate: float,
    deceleration_rate: float,
    final_velocity: float,
    total_distance: float,
) -> float:
    """Distance at which to switch from accelerating to decelerating.

    Solves the two-phase motion where the vehicle accelerates at
    `acceleration_rate` from `initial_velocity`, then immediately decelerates
    at `deceleration_rate` (negative) so that it reaches `final_velocity`
    exactly at `total_distance`. Both phases follow v^2 = u^2 + 2*a*s.

    Returns NaN when both rates are equal: no switch point exists.
    """

    if acceleration_rate == deceleration_rate:
        return math.nan
    numerator = (
        2 * deceleration_rate * total_distance
        + initial_velocity * initial_velocity
        - final_velocity * final_velocity
    )
    return -(numerator / (2 * acceleration_rate - 2 * deceleration_rate))


def time_elapsed_during_acceleration(distance: float, initial_velocity: float, acceleration: float) -> float:
    """Invert s = u*t + a*t^2/2 for t.

    Returns 0 when `distance` or `acceleration` is 0. Of the two roots the
    smaller one is returned when both are positive (the first time the
    distance is reached), otherwise the larger one.
    """

    if distance == 0 or acceleration == 0:
        return 0.0

    discriminant = 2 * acceleration * distance + initial_velocity * initial_velocity
    if discriminant < 0:
        scale = max(1.0, initial_velocity * initial_velocity, abs(2 * acceleration * distance))
        if discriminant < -_DISCRIMINANT_TOLERANCE * scale:
            raise KinematicsError(
                f'distance {distance} is unreachable from velocity {initial_velocity} '
                f'at acceleration {acceleration}'
            )
        discriminant = 0.0

    root = math.sqrt(discriminant)
    root_1 = -((root + initial_velocity) / acceleration)
    root_2 = (root - initial_velocity) / acceleration
    if root_1 > 0 and root_2 > 0:
        return min(root_1, root_2)
    return max(root_1, root_2)
