"""Lines printed by the server for each step a request goes through."""

from __future__ import annotations

import os
import sys
import threading
import time
from typing import TextIO

from opsys.message import Message

__all__ = ["format_event", "register_message"]

_write_lock = threading.Lock()


def format_event(
    message: Message,
    operation: str,
    pid: int | None = None,
    tid: int | None = None,
    now: int | None = None,
) -> str:
    """Return the log line for ``message`` at ``operation``, without a newline.

    ``pid``, ``tid`` and ``now`` default to the current process, thread and time.
    """
    pid = os.getpid() if pid is None else pid
    tid = threading.get_ident() if tid is None else tid
    now = int(time.time()) if now is None else now
    return (
        f"{now} ; {message.rid} ; {pid} ; {tid} ; "
        f"{message.tskload} ; {message.tskres} ; {operation}"
    )


def register_message(message: Message, operation: str, out: TextIO | None = None) -> str:
    """Write the log line for ``message`` to ``out`` (standard output) and return it."""
    stream = sys.stdout if out is None else out
    line = format_event(message, operation)
    with _write_lock:
        stream.write(line + "\n")
        stream.flush()
    return line