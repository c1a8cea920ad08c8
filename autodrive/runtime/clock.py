from __future__ import annotations

import time
from dataclasses import dataclass


@dataclass(slots=True)
class VirtualClock:
    """Deterministic clock: `sleep` advances `now` instantly."""

    now_s: float = 0.0

    def now(self) -> float:
        return self.now_s

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            self.now_s += float(seconds)


@dataclass(slots=True)
class WallClock:
    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)
