"""Command-line flags and the messages printed for verbose and change modes."""

from __future__ import annotations

import stat
from collections.abc import Iterable

from opsys.xmod.modes import octal_digits

__all__ = [
    "has_flag",
    "has_recursive",
    "has_verbose",
    "has_changes",
    "permission_string",
    "format_mode",
    "describe_change",
]

_PERMISSION_BITS = (
    (stat.S_IRUSR, "r"),
    (stat.S_IWUSR, "w"),
    (stat.S_IXUSR, "x"),
    (stat.S_IRGRP, "r"),
    (stat.S_IWGRP, "w"),
    (stat.S_IXGRP, "x"),
    (stat.S_IROTH, "r"),
    (stat.S_IWOTH, "w"),
    (stat.S_IXOTH, "x"),
)


def has_flag(args: Iterable[str], letter: str) -> bool:
    """Return whether any argument starting with ``-`` contains ``letter``."""
    return any(arg.startswith("-") and letter in arg for arg in args)


def has_recursive(args: Iterable[str]) -> bool:
    """Return whether the ``-R`` option is present."""
    return has_flag(args, "R")


def has_verbose(args: Iterable[str]) -> bool:
    """Return whether the ``-v`` option is present."""
    return has_flag(args, "v")


def has_changes(args: Iterable[str]) -> bool:
    """Return whether the ``-c`` option is present."""
    return has_flag(args, "c")


def permission_string(mode: int) -> str:
    """Return the ``rwxrwxrwx`` form of the permission bits of ``mode``."""
    return "".join(char if mode & bit else "-" for bit, char in _PERMISSION_BITS)


def format_mode(mode: int) -> str:
    """Return the mode as printed in messages, a ``0`` followed by its octal digits."""
    return f"0{octal_digits(mode)}"


def _describe(mode: int) -> str:
    return f"{format_mode(mode)} ({permission_string(mode)})"


def describe_change(
    path: str, before: int, after: int, verbose: bool, changes: bool
) -> str | None:
    """Return the line to print for a mode change, or ``None`` when nothing is due."""
    if verbose and after == before:
        return f"mode of '{path}' retained as {_describe(after)}"
    if (verbose or changes) and after != before:
        return f"mode of '{path}' changed from {_describe(before)} to {_describe(after)}"
    return None