"""Command line of the permission changer."""

from __future__ import annotations

import os
import signal
import sys
from collections.abc import Sequence
from typing import Any

from opsys.xmod.events import LOG_VARIABLE, EventLog
from opsys.xmod.options import has_recursive
from opsys.xmod.process import PROGRAM_NAME, process_recursive, process_single
from opsys.xmod.signals import Progress, SignalManager

__all__ = ["main"]

USAGE = "usage: xmod [OPTIONS] MODE FILE/DIR"


def _restore(previous: dict[int, Any]) -> None:
    for signum, handler in previous.items():
        if handler is not None:
            signal.signal(signum, handler)


def main(argv: Sequence[str] | None = None) -> int:
    """Change the mode of a file or tree; return the exit code."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) < 2:
        print(USAGE)
        return 0

    pid = os.getpid()
    try:
        log = EventLog.open(os.environ, truncate=pid == os.getpgrp())
    except KeyError:
        print(f"{LOG_VARIABLE} doesn't exist.")
        return 1

    log.record_creation(pid, [PROGRAM_NAME, *args])
    progress = Progress(args[-1])
    previous = SignalManager(log, progress).install()
    try:
        runner = process_recursive if has_recursive(args) else process_single
        try:
            code = runner(args, log, progress, sys.stdout)
        except OSError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            code = 1
        log.record_exit(pid, code)
    finally:
        sys.stdout.flush()
        _restore(previous)
    return code


if __name__ == "__main__":
    raise SystemExit(main())