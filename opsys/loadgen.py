"""Load generator: floods the server with requests until its time runs out."""

from __future__ import annotations

import getopt
import os
import random
import re
import select
import sys
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, TextIO

from opsys.client.fifo import open_public_fifo
from opsys.message import FIFO_DIRECTORY, NO_RESULT, Message
from opsys.timing import Deadline

__all__ = ["USAGE", "LoadOptions", "LoadClient", "parse_options", "main"]

USAGE = "Usage: loadgen <-t nsecs> <fifoname>"
_POLL = 0.05
_BUSY_WAIT = 0.001
_INTEGER = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class LoadOptions:
    """Run time in whole seconds and the server's public FIFO."""

    timeout: int
    fifo: str


def _atoi(text: str) -> int:
    match = _INTEGER.match(text)
    return int(match.group(1)) if match else 0


def parse_options(argv: Sequence[str]) -> LoadOptions:
    """Parse ``-t nsecs fifoname``; raise ``ValueError`` if malformed.

    A time that is not a number counts as zero, so it is caught as a missing
    timeout by the caller.
    """
    args = list(argv)
    if len(args) < 2:
        raise ValueError(USAGE)
    try:
        options, rest = getopt.getopt(args, "t:")
    except getopt.GetoptError as exc:
        raise ValueError(f"{USAGE} ({exc.msg})") from None
    timeout = 0
    for _, value in options:
        timeout = _atoi(value)
    if len(rest) != 1:
        raise ValueError(USAGE)
    return LoadOptions(timeout, rest[0])


class LoadClient:
    """Launches a request thread every 10 to 20 ms until the timeout.

    Each request waits for its reply on a private FIFO; requests still
    waiting when time is up give up, and their FIFOs are removed.
    """

    def __init__(
        self,
        fifo_path: str,
        timeout: float,
        *,
        out: TextIO | None = None,
        err: TextIO | None = None,
        rng: Any = None,
        fifo_directory: str = FIFO_DIRECTORY,
        sleep: Callable[[float], object] = time.sleep,
    ) -> None:
        self.fifo_path = fifo_path
        self.timeout = timeout
        self.out = out
        self.err = err
        self.rng = rng if rng is not None else random.Random()
        self.fifo_directory = fifo_directory
        self.sleep = sleep
        self._print_lock = threading.Lock()
        self._fd_lock = threading.Lock()
        self._counter_lock = threading.Lock()
        self._stop = threading.Event()
        self._counter = 0
        self._server_fd: int | None = None
        self._deadline = Deadline(timeout)

    # output -----------------------------------------------------------------

    def _emit(self, line: str) -> None:
        stream = sys.stdout if self.out is None else self.out
        with self._print_lock:
            stream.write(line + "\n")
            stream.flush()

    def _note(self, line: str) -> None:
        stream = sys.stderr if self.err is None else self.err
        with self._print_lock:
            stream.write(line + "\n")
            stream.flush()

    def _event(self, request: Message, result: int, operation: str) -> None:
        self._emit(
            f"{int(time.time())} ; {request.rid} ; {request.tskload} ; {request.pid} ; "
            f"{request.tid} ; {result}; {operation}"
        )

    # state ------------------------------------------------------------------

    def _finished(self) -> bool:
        if not self._stop.is_set() and self._deadline.expired():
            self._stop.set()
            self._note(f"[client] timeout reached: {int(time.time())}")
        return self._stop.is_set()

    def _next_rid(self) -> int:
        with self._counter_lock:
            rid = self._counter
            self._counter += 1
        return rid

    def _write_request(self, request: Message) -> None:
        with self._fd_lock:
            if self._server_fd is None:
                raise BrokenPipeError("server FIFO is closed")
            os.write(self._server_fd, request.pack())

    # request thread ---------------------------------------------------------

    def _request(self) -> None:
        pid = os.getpid()
        tid = threading.get_ident()
        request = Message(self._next_rid(), pid, tid, self.rng.randint(1, 9), NO_RESULT)
        path = request.fifo_path(self.fifo_directory)
        try:
            os.mkfifo(path, 0o666)
        except OSError as exc:
            self._note(f"mkfifo clientfifoname: {exc.strerror or exc}")
            return
        self._note(f"[client] created client fifo {path}")
        try:
            reader = os.open(path, os.O_RDONLY | os.O_NONBLOCK)
        except OSError as exc:
            self._note(f"open clientfifo: {exc.strerror or exc}")
            self._event(request, request.tskres, "GAVUP")
            self._unlink(path)
            return
        try:
            try:
                self._write_request(request)
            except OSError as exc:
                if isinstance(exc, BrokenPipeError):
                    self._stop.set()
                    self._note("[client] server pipe closed")
                self._note(f"[client] write serverfifo: {exc.strerror or exc}")
                return
            self._event(request, request.tskres, "IWANT")
            self._await_reply(request, reader)
        finally:
            os.close(reader)
            self._unlink(path)

    def _await_reply(self, request: Message, reader: int) -> None:
        while True:
            if self._stop.is_set():
                self._note("[Client] Called clean-up handler")
                self._event(request, request.tskres, "GAVUP")
                return
            readable, _, _ = select.select([reader], [], [], _POLL)
            if not readable:
                continue
            try:
                data = os.read(reader, Message.SIZE)
            except BlockingIOError:
                continue
            except OSError as exc:
                self._note(f"[client] read(clientfifo): {exc.strerror or exc}")
                self._event(request, request.tskres, "GAVUP")
                return
            if len(data) != Message.SIZE:
                self._note("[client] server closed client fifo")
                self._event(request, request.tskres, "GAVUP")
                return
            answer = Message.unpack(data)
            operation = "CLOSD" if answer.tskres < 0 else "GOTRS"
            self._event(request, answer.tskres, operation)
            return

    @staticmethod
    def _unlink(path: str) -> None:
        try:
            os.unlink(path)
        except FileNotFoundError:
            pass

    # main loop --------------------------------------------------------------

    def _launch(self, threads: list[threading.Thread]) -> bool:
        """Start one request thread; return False if time ran out meanwhile."""
        while True:
            thread = threading.Thread(target=self._request)
            try:
                thread.start()
            except RuntimeError as exc:
                self._note(f"[client] server thread: {exc}")
                self.sleep(0.010 + self.rng.randint(0, 9999) / 1e6)
                if self._finished():
                    return False
                continue
            threads.append(thread)
            return True

    def _reconnect(self) -> bool:
        """Wait for the server to recreate its FIFO and reopen it."""
        with self._fd_lock:
            if self._server_fd is not None:
                os.close(self._server_fd)
                self._server_fd = None
        while not os.path.exists(self.fifo_path):
            if self._finished():
                return False
            self.sleep(_BUSY_WAIT)
        try:
            fd = open_public_fifo(self.fifo_path, self._deadline)
        except TimeoutError:
            self._note("[client] client, open serverfifo: timed out")
            return False
        with self._fd_lock:
            self._server_fd = fd
        return True

    def _generate(self, threads: list[threading.Thread]) -> None:
        while True:
            if not self._launch(threads):
                return
            self.sleep(0.010 + self.rng.randint(0, 9999) / 1e6)
            if not os.path.exists(self.fifo_path) and not self._reconnect():
                return
            if self._finished():
                return

    def _sweep(self) -> None:
        prefix = f"{os.getpid()}."
        try:
            names = os.listdir(self.fifo_directory)
        except OSError as exc:
            self._note(f"opendir: {exc.strerror or exc}")
            return
        for name in names:
            if name.startswith(prefix):
                self._unlink(os.path.join(self.fifo_directory, name))

    def run(self) -> int:
        """Send requests until the timeout; return 0."""
        self._deadline = Deadline(self.timeout)
        self._stop.clear()
        self._counter = 0
        try:
            fd = open_public_fifo(self.fifo_path, self._deadline)
        except TimeoutError:
            self._note("[client] client, open serverfifo: timed out")
            return 0
        with self._fd_lock:
            self._server_fd = fd

        threads: list[threading.Thread] = []
        try:
            self._generate(threads)
        finally:
            self._stop.set()
            self._note("[client] stopped creating requests")
            for thread in threads:
                thread.join()
            self._sweep()
            with self._fd_lock:
                if self._server_fd is not None:
                    os.close(self._server_fd)
                    self._server_fd = None
            self._note("[client] main terminating")
        return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Parse the command line and generate load; return the exit code."""
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        options = parse_options(args)
    except ValueError:
        print(USAGE, file=sys.stderr)
        return 1
    if options.timeout == 0:
        print("[server] no timeout set - exiting", file=sys.stderr)
        return 1
    now = int(time.time())
    print(
        f"Initial time: {now}, expected final time: {now + options.timeout}",
        file=sys.stderr,
    )
    print(f"\nGot: nsecs={options.timeout}, fifoname={options.fifo}", file=sys.stderr)
    return LoadClient(options.fifo, options.timeout).run()


if __name__ == "__main__":
    raise SystemExit(main())