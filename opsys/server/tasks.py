"""The server: reads requests, runs their tasks and sends the replies."""

from __future__ import annotations

import os
import sys
import threading
import time
from typing import TextIO

from opsys.message import FIFO_DIRECTORY, FINISH, NO_RESULT, Message
from opsys.server.communication import receive_message, send_reply
from opsys.server.fifo import remove_public_fifo
from opsys.server.lib import TaskRunner
from opsys.server.log import register_message
from opsys.server.queue import BoundedQueue
from opsys.timing import Deadline

__all__ = ["DEFAULT_CAPACITY", "Server"]

DEFAULT_CAPACITY = 10
_IDLE = 0.005
_POLL = 0.001


class Server:
    """Serves requests arriving on a public FIFO until its time runs out.

    One thread per request runs the task and queues the reply; a single
    consumer thread takes replies from the bounded queue and delivers them.
    """

    def __init__(
        self,
        fifo_path: str,
        duration: float,
        capacity: int = DEFAULT_CAPACITY,
        *,
        runner: TaskRunner | None = None,
        out: TextIO | None = None,
        fifo_directory: str = FIFO_DIRECTORY,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.fifo_path = fifo_path
        self.duration = duration
        self.capacity = capacity
        self.runner = runner if runner is not None else TaskRunner()
        self.out = out
        self.fifo_directory = fifo_directory
        self._queue: BoundedQueue[Message] = BoundedQueue(capacity)
        self._lock = threading.Lock()
        self._empty = threading.Semaphore(capacity)
        self._full = threading.Semaphore(0)

    def run(self) -> int:
        """Serve until the deadline passes; return 0, or 1 if the FIFO cannot be opened."""
        deadline = Deadline(self.duration)
        self._queue = BoundedQueue(self.capacity)
        self._empty = threading.Semaphore(self.capacity)
        self._full = threading.Semaphore(0)
        try:
            fd = os.open(self.fifo_path, os.O_RDONLY | os.O_NONBLOCK)
        except OSError as exc:
            print(f"ERROR - open: {exc.strerror or exc}", file=sys.stderr)
            return 1

        consumer = threading.Thread(target=self._consume, name="server-consumer")
        consumer.start()
        producers: list[threading.Thread] = []
        try:
            while True:
                message = receive_message(fd, deadline, self.out)
                if message is None:
                    if deadline.expired():
                        break
                    time.sleep(_IDLE)
                    continue
                producer = threading.Thread(target=self._produce, args=(message, deadline))
                producer.start()
                producers.append(producer)
        finally:
            os.close(fd)
            for producer in producers:
                producer.join()
            self._insert(Message(0, 0, 0, 0, FINISH))
            consumer.join()

        try:
            remove_public_fifo(self.fifo_path)
        except OSError as exc:
            print(f"ERROR: {exc.strerror or exc}", file=sys.stderr)
        return 0

    def _insert(self, message: Message) -> None:
        self._empty.acquire()
        with self._lock:
            self._queue.insert(message)
        self._full.release()

    def _produce(self, message: Message, deadline: Deadline) -> None:
        message.tskres = self.runner.run(message.tskload)
        register_message(message, "TSKEX", self.out)
        if deadline.expired():
            message.tskres = NO_RESULT
        self._insert(message)

    def _deliver(self, message: Message) -> None:
        path = message.fifo_path(self.fifo_directory)
        send_reply(message, path, self.out)
        while os.path.exists(path):
            time.sleep(_POLL)

    def _consume(self) -> None:
        while True:
            self._full.acquire()
            with self._lock:
                message = self._queue.pop()
            self._empty.release()
            if message.tskres == FINISH:
                break
            self._deliver(message)

        while True:
            with self._lock:
                if self._queue.is_empty():
                    break
                message = self._queue.pop()
            self._deliver(message)