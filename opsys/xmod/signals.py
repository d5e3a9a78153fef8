"""Signal handling: pausing a run on interrupt and logging received signals."""

from __future__ import annotations

import os
import signal
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TextIO

from opsys.xmod.events import EventLog

__all__ = ["Progress", "SignalManager"]

_OTHER_SIGNALS = (
    signal.SIGHUP,
    signal.SIGQUIT,
    signal.SIGUSR1,
    signal.SIGSEGV,
    signal.SIGUSR2,
    signal.SIGPIPE,
    signal.SIGALRM,
    signal.SIGCHLD,
)


@dataclass
class Progress:
    """The file or directory a process works on and its counters."""

    path: str
    total: int = 0
    modified: int = 0


def _is_group_leader() -> bool:
    return os.getpid() == os.getpgrp()


def _read_answer() -> str:
    return input()


@dataclass
class SignalManager:
    """Signal handlers that log events and pause the run on interrupt."""

    log: EventLog
    progress: Progress
    out: TextIO = field(default_factory=lambda: sys.stdout)
    ask: Callable[[], str] = _read_answer
    kill: Callable[[int, int], None] = os.kill
    pause: Callable[[], Any] = signal.pause
    is_leader: Callable[[], bool] = _is_group_leader

    def install(self) -> dict[int, Any]:
        """Install the handlers and return the ones they replaced."""
        previous = {signum: signal.signal(signum, self.on_other) for signum in _OTHER_SIGNALS}
        previous[signal.SIGINT] = signal.signal(signal.SIGINT, self.on_interrupt)
        return previous

    def _status(self) -> str:
        return (
            f"pid: {os.getpid()}; fich/dir: {self.progress.path}; "
            f"nftot: {self.progress.total}; nfmod: {self.progress.modified}\n"
        )

    def _log_sent_and_received(self, signum: int) -> int:
        pid = os.getpid()
        self.log.record_signal_sent(pid, signum, pid)
        self.log.record_signal_received(pid, signum)
        return pid

    def on_interrupt(self, signum: int, frame: Any) -> None:
        """Pause: the group leader asks whether to go on, the others wait."""
        pid = self._log_sent_and_received(signum)
        if not self.is_leader():
            self.out.write(self._status())
            self.out.flush()
            signal.signal(signal.SIGCONT, self.on_continue)
            signal.signal(signal.SIGTERM, self.on_terminate)
            self.pause()
            return

        self.out.write("\n Programmed paused...\n")
        self.out.write(self._status())
        self.out.write("Would you like to continue? Enter y or n: \n")
        self.out.flush()
        try:
            answer = self.ask().strip()[:1]
        except EOFError:
            answer = ""
        if answer == "y":
            self.kill(0, signal.SIGCONT)
            self.log.record_exit(pid, 0)
            return
        self.kill(0, signal.SIGTERM)
        self.log.record_exit(pid, 0)
        sys.exit(0)

    def on_continue(self, signum: int, frame: Any) -> None:
        """Log the continue signal."""
        self._log_sent_and_received(signum)

    def on_terminate(self, signum: int, frame: Any) -> None:
        """Log the terminate signal and end the process."""
        pid = self._log_sent_and_received(signum)
        self.log.record_exit(pid, 0)
        sys.exit(0)

    def on_other(self, signum: int, frame: Any) -> None:
        """Log any other signal."""
        self.log.record_signal_received(os.getpid(), signum)