"""The client's FIFOs: the server's public one and its own private ones."""

from __future__ import annotations

import os
import time

from opsys.timing import Deadline

__all__ = ["open_public_fifo", "create_private_fifo", "remove_private_fifo"]

_RETRY = 0.01


def open_public_fifo(path: str, deadline: Deadline) -> int:
    """Open the server's FIFO for writing, retrying until ``deadline``.

    Returns a blocking descriptor; raises ``TimeoutError`` if no server
    opened the FIFO in time.
    """
    while True:
        try:
            fd = os.open(path, os.O_WRONLY | os.O_NONBLOCK)
        except OSError:
            if deadline.expired():
                raise TimeoutError(f"could not open {path!r} in time") from None
            time.sleep(_RETRY)
            continue
        os.set_blocking(fd, True)
        return fd


def create_private_fifo(path: str) -> None:
    """Create a private FIFO for a reply; raise ``OSError`` if that fails."""
    os.mkfifo(path, 0o666)


def remove_private_fifo(path: str) -> None:
    """Remove a private FIFO; raise ``OSError`` if that fails."""
    os.unlink(path)