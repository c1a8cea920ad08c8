from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Zone:
    length_m: float
    min_speed: float
    max_speed: float


# Stop zones (max 0) are long enough to halt from the safe braking speed.
COURSES: dict[int, tuple[Zone, ...]] = {
    1: (
        Zone(200.0, 0.0, 24.0),
        Zone(150.0, 20.0, 35.0),
        Zone(120.0, 0.0, 15.0),
        Zone(260.0, 30.0, 40.0),
    ),
    2: (
        Zone(180.0, 0.0, 30.0),
        Zone(80.0, 0.0, 0.0),
        Zone(220.0, 10.0, 25.0),
        Zone(140.0, 0.0, 20.0),
        Zone(300.0, 25.0, 45.0),
    ),
    3: (
        Zone(96.0, 0.0, 24.0),
        Zone(400.0, 30.0, 50.0),
        Zone(80.0, 0.0, 0.0),
        Zone(300.0, 35.0, 40.0),
        Zone(90.0, 0.0, 12.0),
        Zone(250.0, 20.0, 36.0),
    ),
}


def get_course(course_layout: int) -> tuple[Zone, ...]:
    if course_layout not in COURSES:
        raise ValueError(f'Unknown course layout: {course_layout} (expected one of {sorted(COURSES)})')
    return COURSES[course_layout]
