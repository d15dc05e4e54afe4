"""Time sources for driving a simulation.

The simulation itself never reads a clock; callers pass ``now`` to
``Simulation.step``. These classes supply that value, either from a manual
counter (deterministic batch runs and tests) or from the wall clock.
"""

import time
from abc import ABC, abstractmethod


class Clock(ABC):
    """Source of the current time in milliseconds."""

    @property
    @abstractmethod
    def now(self) -> float:
        """Current time in milliseconds."""

    @abstractmethod
    def advance(self, ms: float) -> None:
        """Move time forward by ``ms`` milliseconds."""


class ManualClock(Clock):
    def __init__(self, start: float = 0.0):
        self._current_time = float(start)

    @property
    def now(self) -> float:
        return self._current_time

    def update(self, time_ms: float) -> None:
        if time_ms < self._current_time:
            raise ValueError(f"clock cannot go backwards: {time_ms} < {self._current_time}")
        self._current_time = float(time_ms)

    def advance(self, ms: float) -> None:
        self.update(self._current_time + ms)


class WallClock(Clock):
    """Monotonic wall time in milliseconds since the clock was created."""

    def __init__(self):
        self._origin = time.monotonic()

    @property
    def now(self) -> float:
        return (time.monotonic() - self._origin) * 1000.0

    def advance(self, ms: float) -> None:
        time.sleep(ms / 1000.0)
