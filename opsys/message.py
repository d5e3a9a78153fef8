"""The request and reply record exchanged between clients and the server."""

from __future__ import annotations

import os
import struct
from dataclasses import dataclass
from typing import ClassVar

__all__ = ["NO_RESULT", "FINISH", "FIFO_DIRECTORY", "Message", "private_fifo_path"]

NO_RESULT = -1
FINISH = -9999
FIFO_DIRECTORY = "/tmp"


def private_fifo_path(pid: int, tid: int, directory: str = FIFO_DIRECTORY) -> str:
    """Return the path of the private FIFO of thread ``tid`` in process ``pid``."""
    return os.path.join(directory, f"{pid}.{tid}")


@dataclass
class Message:
    """One request or reply: ids of the request, process and thread, load and result."""

    rid: int
    pid: int
    tid: int
    tskload: int
    tskres: int = NO_RESULT

    FORMAT: ClassVar[struct.Struct] = struct.Struct("=iiQii")
    SIZE: ClassVar[int] = FORMAT.size

    def pack(self) -> bytes:
        """Return the fixed-size binary form written to a FIFO."""
        try:
            return self.FORMAT.pack(self.rid, self.pid, self.tid, self.tskload, self.tskres)
        except struct.error as exc:
            raise ValueError(f"cannot encode {self!r}: {exc}") from None

    @classmethod
    def unpack(cls, data: bytes) -> Message:
        """Build a message from its binary form; raise ``ValueError`` on a bad length."""
        if len(data) != cls.SIZE:
            raise ValueError(f"message must be {cls.SIZE} bytes, got {len(data)}")
        return cls(*cls.FORMAT.unpack(data))

    def fifo_path(self, directory: str = FIFO_DIRECTORY) -> str:
        """Return the path of the private FIFO the reply goes to."""
        return private_fifo_path(self.pid, self.tid, directory)