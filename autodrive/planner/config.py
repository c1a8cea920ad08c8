from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(frozen=True, slots=True)
class PlannerConfig:
    braking_force: float = 6.0
    max_acceleration: float = 6.0
    # Braking at 6 from this speed covers less than 50 distance units.
    safe_braking_speed: float = 24.0
    boundary_guard_s: float = 0.5

    def __post_init__(self) -> None:
        if self.braking_force <= 0 or self.max_acceleration <= 0:
            raise ValueError('braking_force and max_acceleration must be > 0')
        if not float(self.braking_force).is_integer():
            # Brake commands carry whole-number forces only.
            raise ValueError(f'braking_force must be a whole number, got {self.braking_force}')
        if self.safe_braking_speed < 0:
            raise ValueError('safe_braking_speed must be >= 0')
        if self.boundary_guard_s < 0:
            raise ValueError('boundary_guard_s must be >= 0')

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


DEFAULT_CONFIG = PlannerConfig()
