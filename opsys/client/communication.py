"""Sending requests to the server and waiting for its replies."""

from __future__ import annotations

import os
import random
import select
import sys
import threading
import time
from typing import Any, TextIO

from opsys.message import FIFO_DIRECTORY, NO_RESULT, Message
from opsys.server.log import format_event
from opsys.timing import Deadline

__all__ = ["generate_message", "send_message", "receive_reply"]

_RETRY = 0.02
_write_lock = threading.Lock()


def _emit(out: TextIO | None, line: str) -> None:
    stream = sys.stdout if out is None else out
    with _write_lock:
        stream.write(line + "\n")
        stream.flush()


def generate_message(rid: int, rng: Any = None) -> Message:
    """Build a request from this process and thread with a random load of 1 to 9."""
    source = random if rng is None else rng
    return Message(
        rid=rid,
        pid=os.getpid(),
        tid=threading.get_ident(),
        tskload=source.randint(1, 9),
        tskres=NO_RESULT,
    )


def send_message(
    fd: int, message: Message, deadline: Deadline, out: TextIO | None = None
) -> bool:
    """Write ``message`` to the server unless time is up; return whether it was sent."""
    if deadline.expired():
        return False
    try:
        written = os.write(fd, message.pack())
    except OSError:
        return False
    if written <= 0:
        return False
    _emit(out, format_event(message, "IWANT", pid=message.pid, tid=message.tid))
    return True


def receive_reply(
    message: Message,
    deadline: Deadline,
    out: TextIO | None = None,
) -> str | None:
    """Wait on the private FIFO for the reply to ``message``.

    Returns GOTRS for a result, CLOSD when the server has closed, GAVUP when
    no reply came in time, and ``None`` if the FIFO could not be opened.
    """
    path = message.fifo_path(FIFO_DIRECTORY)
    while True:
        try:
            fd = os.open(path, os.O_RDONLY | os.O_NONBLOCK)
            break
        except OSError:
            if deadline.expired():
                return None
            time.sleep(_RETRY)

    try:
        seconds = deadline.remaining_seconds()
        timeout = seconds if seconds >= 1 else max(deadline.remaining_micros(), 0) / 1e6
        try:
            readable, _, _ = select.select([fd], [], [], timeout)
        except OSError as exc:
            print(f"ERROR - select: {exc.strerror or exc}", file=sys.stderr)
            return None

        data = b""
        if readable:
            try:
                data = os.read(fd, Message.SIZE)
            except OSError as exc:
                print(f"ERROR - read: {exc.strerror or exc}", file=sys.stderr)
        if len(data) != Message.SIZE:
            _emit(out, format_event(message, "GAVUP", pid=message.pid, tid=message.tid))
            return "GAVUP"

        answer = Message.unpack(data)
        operation = "GOTRS" if answer.tskres != NO_RESULT else "CLOSD"
        _emit(out, format_event(answer, operation, pid=message.pid, tid=message.tid))
        return operation
    finally:
        os.close(fd)