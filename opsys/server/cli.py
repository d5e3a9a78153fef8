"""Command line of the server."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from dataclasses import dataclass

from opsys.server.fifo import create_public_fifo
from opsys.server.tasks import DEFAULT_CAPACITY, Server

__all__ = ["USAGE", "ServerOptions", "parse_args", "main"]

USAGE = "usage: s <-t nsecs> [-l bufsz] fifoname"


@dataclass(frozen=True)
class ServerOptions:
    """Run time in seconds, public FIFO path and reply queue capacity."""

    duration: float
    fifo: str
    capacity: int = DEFAULT_CAPACITY


def parse_args(argv: Sequence[str]) -> ServerOptions:
    """Parse ``-t nsecs [-l bufsz] fifoname``; raise ``ValueError`` if malformed."""
    args = list(argv)
    if len(args) not in (3, 5) or args[0] != "-t":
        raise ValueError(USAGE)
    try:
        duration = float(args[1])
    except ValueError:
        raise ValueError(f"invalid time {args[1]!r}") from None
    if len(args) == 3:
        return ServerOptions(duration, args[2])
    if args[2] != "-l":
        raise ValueError(USAGE)
    try:
        capacity = int(args[3])
    except ValueError:
        raise ValueError(f"invalid buffer size {args[3]!r}") from None
    if capacity < 1:
        raise ValueError("buffer size must be at least 1")
    return ServerOptions(duration, args[4], capacity)


def main(argv: Sequence[str] | None = None) -> int:
    """Create the public FIFO and serve requests until the time is up."""
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        options = parse_args(args)
    except ValueError:
        print(USAGE)
        return 0
    try:
        create_public_fifo(options.fifo)
    except OSError as exc:
        print(f"ERROR: {exc.strerror or exc}", file=sys.stderr)
    Server(options.fifo, options.duration, options.capacity).run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())