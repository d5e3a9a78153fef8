"""Event log written while permissions are being changed."""

from __future__ import annotations

import enum
import os
import sys
import time
from collections.abc import Iterable, Mapping, MutableMapping
from dataclasses import dataclass

from opsys.xmod.options import format_mode

__all__ = [
    "LOG_VARIABLE",
    "CLOCK_VARIABLE",
    "Event",
    "EventLog",
    "start_clock",
    "log_path_from_env",
]

LOG_VARIABLE = "LOG_FILENAME"
CLOCK_VARIABLE = "START_CLOCK"


class Event(enum.Enum):
    """Kinds of entries written to the event log."""

    PROC_CREAT = "PROC_CREAT"
    PROC_EXIT = "PROC_EXIT"
    SIGNAL_RECV = "SIGNAL_RECV"
    SIGNAL_SENT = "SIGNAL_SENT"
    FILE_MODF = "FILE_MODF"


def start_clock(env: MutableMapping[str, str]) -> int:
    """Store the start time in ``env`` unless already there, and return it.

    The value is a monotonic clock reading in nanoseconds, shared by every
    process of one run through the environment.
    """
    if CLOCK_VARIABLE not in env:
        env[CLOCK_VARIABLE] = str(time.monotonic_ns())
    return int(env[CLOCK_VARIABLE])


def log_path_from_env(env: Mapping[str, str]) -> str:
    """Return the log file named by ``LOG_FILENAME``; raise ``KeyError`` if unset."""
    try:
        return env[LOG_VARIABLE]
    except KeyError:
        raise KeyError(f"{LOG_VARIABLE} doesn't exist.") from None


def _report(exc: OSError) -> None:
    print(f"ERROR: {exc.strerror or exc}", file=sys.stderr)


@dataclass
class EventLog:
    """Appends timed event lines to a log file."""

    path: str
    start: int

    @classmethod
    def open(cls, env: MutableMapping[str, str], truncate: bool = True) -> EventLog:
        """Create the log named in ``env``, emptying it when ``truncate`` is set."""
        path = log_path_from_env(env)
        start = start_clock(env)
        flags = os.O_CREAT | os.O_RDWR | (os.O_TRUNC if truncate else 0)
        try:
            os.close(os.open(path, flags, 0o777))
        except OSError as exc:
            _report(exc)
        return cls(path, start)

    def elapsed_ms(self) -> float:
        """Milliseconds since the start of the run."""
        return (time.monotonic_ns() - self.start) / 1e6

    def _write(self, line: str) -> None:
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_WRONLY | os.O_APPEND, 0o777)
        except OSError as exc:
            _report(exc)
            return
        try:
            os.write(fd, line.encode())
        finally:
            os.close(fd)

    def _record(self, event: Event, pid: int, detail: str, precise: bool = True) -> None:
        elapsed = self.elapsed_ms()
        stamp = f"{elapsed:4.5f}" if precise else f"{elapsed:f}"
        self._write(f"{stamp} ms; {pid}; {event.value}; {detail}\n")

    def record_creation(self, pid: int, argv: Iterable[str]) -> None:
        """Log the start of a process with its command line."""
        self._record(Event.PROC_CREAT, pid, "".join(f"{arg};" for arg in argv), precise=False)

    def record_modification(self, pid: int, path: str, before: int, after: int) -> None:
        """Log a permission change of ``path``."""
        self._record(
            Event.FILE_MODF, pid, f"{path} : {format_mode(before)} : {format_mode(after)};"
        )

    def record_exit(self, pid: int, code: int) -> None:
        """Log the end of a process and its exit code."""
        self._record(Event.PROC_EXIT, pid, str(code))

    def record_signal_received(self, pid: int, signo: int) -> None:
        """Log that ``pid`` received signal ``signo``."""
        self._record(Event.SIGNAL_RECV, pid, str(signo))

    def record_signal_sent(self, sender: int, signo: int, target: int) -> None:
        """Log that ``sender`` sent signal ``signo`` to ``target``."""
        self._record(Event.SIGNAL_SENT, sender, f"{signo} : {target}")