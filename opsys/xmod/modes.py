"""Parsing of permission modes and applying them to files."""

from __future__ import annotations

import os
import stat

__all__ = [
    "InvalidModeError",
    "octal_digits",
    "parse_symbolic",
    "parse_octal",
    "compute_mode",
    "apply_mode",
]

_CLASS_BITS = {
    "u": {"r": stat.S_IRUSR, "w": stat.S_IWUSR, "x": stat.S_IXUSR},
    "g": {"r": stat.S_IRGRP, "w": stat.S_IWGRP, "x": stat.S_IXGRP},
    "o": {"r": stat.S_IROTH, "w": stat.S_IWOTH, "x": stat.S_IXOTH},
}
_CLASS_BITS["a"] = {
    perm: _CLASS_BITS["u"][perm] | _CLASS_BITS["g"][perm] | _CLASS_BITS["o"][perm]
    for perm in "rwx"
}

_WHO = "ugoa"
_OPERATORS = "+-="
_PERMISSIONS = "rwx"
_OCTAL_DIGITS = "1234567"


class InvalidModeError(ValueError):
    """Raised when a mode specification cannot be understood."""


def octal_digits(mode: int) -> int:
    """Return the last three octal digits of ``mode`` read as a decimal number."""
    return int(format(mode & 0o777, "o"))


def _class_mask(who: str) -> int:
    bits = 0
    for value in _CLASS_BITS[who].values():
        bits |= value
    return bits


def parse_symbolic(spec: str, mode: int) -> int:
    """Apply a symbolic specification such as ``u+x`` or ``a=rw`` to ``mode``."""
    who: str | None = None
    operator: str | None = None
    permissions: list[str] = []
    for char in spec:
        if char in _WHO:
            who = char
        elif char in _OPERATORS:
            operator = char
        elif char in _PERMISSIONS:
            permissions.append(char)
        else:
            raise InvalidModeError(f"invalid character {char!r} in mode {spec!r}")
    if who is None or operator is None:
        raise InvalidModeError(f"incomplete mode {spec!r}")

    if operator == "=":
        mode = 0 if who == "a" else mode & ~_class_mask(who)

    for perm in permissions:
        bits = _CLASS_BITS[who][perm]
        if operator == "-":
            mode &= ~bits
        else:
            mode |= bits
    return mode


def parse_octal(spec: str) -> int:
    """Parse an octal specification such as ``0755`` into permission bits.

    Only the three digits after the leading character are used, and each must
    be between 1 and 7.
    """
    digits = spec[1:4]
    if len(digits) < 3:
        raise InvalidModeError(f"octal mode {spec!r} is too short")
    mode = 0
    for shift, digit in zip((6, 3, 0), digits):
        if digit not in _OCTAL_DIGITS:
            raise InvalidModeError(f"invalid digit {digit!r} in mode {spec!r}")
        mode |= int(digit) << shift
    return mode


def compute_mode(spec: str, path: str | os.PathLike[str]) -> int:
    """Return the mode that ``spec`` gives the file at ``path``."""
    if spec.startswith("0"):
        return parse_octal(spec)
    return parse_symbolic(spec, os.stat(path).st_mode)


def apply_mode(path: str | os.PathLike[str], mode: int) -> None:
    """Set the permission bits of ``path``; raises ``OSError`` on failure."""
    os.chmod(path, stat.S_IMODE(mode))