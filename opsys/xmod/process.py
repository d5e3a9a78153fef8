"""Changing the permissions of one file or of a whole tree."""

from __future__ import annotations

import contextlib
import os
import stat
import sys
from collections.abc import Sequence
from typing import TextIO

from opsys.xmod.events import EventLog
from opsys.xmod.modes import InvalidModeError, apply_mode, compute_mode
from opsys.xmod.options import describe_change, has_changes, has_verbose
from opsys.xmod.signals import Progress

__all__ = ["PROGRAM_NAME", "process_single", "process_recursive"]

PROGRAM_NAME = "xmod"


def process_single(
    args: Sequence[str], log: EventLog, progress: Progress, out: TextIO
) -> int:
    """Apply the mode in ``args[-2]`` to the path in ``args[-1]``; return the exit code."""
    path, spec = args[-1], args[-2]
    before = os.lstat(path).st_mode
    try:
        target = compute_mode(spec, path)
    except InvalidModeError:
        out.write("ERROR: can't change permissions\n")
        return 1

    try:
        apply_mode(path, target)
    except OSError:
        out.write("Can't change Permissions!\n")

    after = os.lstat(path).st_mode
    progress.total += 1
    if after != before:
        progress.modified += 1

    message = describe_change(path, before, after, has_verbose(args), has_changes(args))
    if message is not None:
        out.write(message + "\n")
    log.record_modification(os.getpid(), path, before, after)
    return 0


def _in_child_process(
    args: list[str], log: EventLog, progress: Progress, out: TextIO
) -> None:
    """Handle a subdirectory in a child process, as a fresh run of the program."""
    for stream in (out, sys.stdout, sys.stderr):
        stream.flush()
    pid = os.fork()
    if pid:
        os.waitpid(pid, 0)
        return

    code = 0
    try:
        child = os.getpid()
        log.record_creation(child, [PROGRAM_NAME, *args])
        progress.path, progress.total, progress.modified = args[-1], 0, 0
        code = process_recursive(args, log, progress, out)
        log.record_exit(child, code)
    except SystemExit as exc:
        code = exc.code if isinstance(exc.code, int) else 0
    except BaseException as exc:  # the child must never return into the parent's code
        print(f"ERROR: {exc}", file=sys.stderr)
        code = 1
    finally:
        with contextlib.suppress(Exception):
            out.flush()
            sys.stdout.flush()
            sys.stderr.flush()
        os._exit(code)


def process_recursive(
    args: Sequence[str], log: EventLog, progress: Progress, out: TextIO
) -> int:
    """Apply the mode to a path and, if it is a directory, to everything below it."""
    process_single(args, log, progress, out)
    root = args[-1]
    if not os.path.isdir(root):
        return 0

    verbose = has_verbose(args)
    with os.scandir(root) as entries:
        for entry in entries:
            child = os.path.join(root, entry.name)
            child_args = [*args[:-1], child]
            try:
                mode = os.lstat(child).st_mode
            except OSError as exc:
                out.write(f"{child}\n")
                print(f"ERROR: {exc.strerror or exc}", file=sys.stderr)
                continue
            if stat.S_ISLNK(mode):
                if verbose:
                    out.write(f"neither symbolic link {child} nor referent has been changed\n")
            elif not stat.S_ISDIR(mode):
                process_single(child_args, log, progress, out)
            else:
                _in_child_process(child_args, log, progress, out)
    return 0