"""Creation and removal of the server's public FIFO."""

from __future__ import annotations

import os

__all__ = ["create_public_fifo", "remove_public_fifo"]


def create_public_fifo(path: str | os.PathLike[str]) -> None:
    """Create the public FIFO at ``path``; raise ``OSError`` if that fails."""
    os.mkfifo(path, 0o666)


def remove_public_fifo(path: str | os.PathLike[str]) -> None:
    """Remove the public FIFO at ``path``; raise ``OSError`` if that fails."""
    os.unlink(path)