"""Reading requests from the public FIFO and sending replies to clients."""

from __future__ import annotations

import os
import select
import sys
from typing import TextIO

from opsys.message import NO_RESULT, Message
from opsys.server.log import register_message
from opsys.timing import Deadline

__all__ = ["receive_message", "send_reply"]


def _report(prefix: str, exc: OSError) -> None:
    print(f"{prefix}: {exc.strerror or exc}", file=sys.stderr)


def receive_message(fd: int, deadline: Deadline, out: TextIO | None = None) -> Message | None:
    """Wait for one request on ``fd`` and return it, or ``None`` if none arrived.

    The wait lasts for the whole seconds left before ``deadline``, or one
    second once less than that is left. A received request is logged as RECVD.
    """
    seconds = deadline.remaining_seconds()
    timeout = seconds if seconds >= 1 else 1
    try:
        readable, _, _ = select.select([fd], [], [], timeout)
    except OSError as exc:
        _report("ERROR - select", exc)
        return None
    if not readable:
        return None
    try:
        data = os.read(fd, Message.SIZE)
    except OSError:
        return None
    if len(data) != Message.SIZE:
        return None
    message = Message.unpack(data)
    register_message(message, "RECVD", out)
    return message


def send_reply(message: Message, path: str, out: TextIO | None = None) -> str:
    """Write ``message`` to the private FIFO at ``path`` and log the outcome.

    Returns the logged operation: FAILD when the FIFO cannot be written,
    2LATE for a reply without a result, TSKDN otherwise.
    """
    try:
        fd = os.open(path, os.O_WRONLY | os.O_NONBLOCK)
    except OSError:
        operation = "FAILD"
    else:
        try:
            if not os.path.exists(path):
                operation = "FAILD"
            else:
                os.write(fd, message.pack())
                operation = "2LATE" if message.tskres == NO_RESULT else "TSKDN"
        except OSError:
            operation = "FAILD"
        finally:
            os.close(fd)
    register_message(message, operation, out)
    return operation