"""Deadlines measured from the start of a run."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field

__all__ = ["Deadline"]


@dataclass
class Deadline:
    """A time limit of ``duration`` seconds, counted from when it is created."""

    duration: float
    clock: Callable[[], float] = time.monotonic
    start: float = field(init=False)

    def __post_init__(self) -> None:
        self.start = self.clock()

    def _remaining(self) -> float:
        return self.duration - (self.clock() - self.start)

    def expired(self) -> bool:
        """Return whether the whole duration has passed."""
        return self._remaining() <= 0

    def remaining_seconds(self) -> int:
        """Whole seconds left, truncated towards zero (negative once past)."""
        return int(self._remaining())

    def remaining_micros(self) -> int:
        """Microseconds left, truncated towards zero (negative once past)."""
        return int(self._remaining() * 1e6)