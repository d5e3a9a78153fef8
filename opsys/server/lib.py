"""The simulated work performed for each request."""

from __future__ import annotations

import sys
import threading
import time
from collections.abc import Callable
from typing import TextIO

__all__ = ["DEFAULT_DELAY_MS", "TaskRunner"]

DEFAULT_DELAY_MS = 100
_STEP = 10


class TaskRunner:
    """Runs tasks of a given level and hands out increasing results."""

    def __init__(
        self,
        delay_ms: int = DEFAULT_DELAY_MS,
        *,
        err: TextIO | None = None,
        sleep: Callable[[float], object] = time.sleep,
    ) -> None:
        self.delay_ms = delay_ms
        self.err = err
        self.sleep = sleep
        self._lock = threading.Lock()
        self._counter = 0

    def run(self, level: int) -> int:
        """Wait for the fixed delay and a time set by ``level``; return the result."""
        err = self.err if self.err is not None else sys.stderr
        self.sleep(self.delay_ms / 1000)
        print(f"[lib] a {level} task is starting (with {self.delay_ms} delay)", file=err)
        self.sleep(level / 100)
        print(f"[lib] a {level} task has finished", file=err)
        with self._lock:
            self._counter += _STEP
            return self._counter