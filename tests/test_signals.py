import io
import os
import signal

import pytest

from opsys.xmod.events import EventLog
from opsys.xmod.signals import Progress, SignalManager

WATCHED = (
    signal.SIGINT, signal.SIGCONT, signal.SIGTERM, signal.SIGHUP, signal.SIGQUIT,
    signal.SIGUSR1, signal.SIGSEGV, signal.SIGUSR2, signal.SIGPIPE, signal.SIGALRM,
    signal.SIGCHLD,
)


@pytest.fixture
def restore_signals():
    saved = {signum: signal.getsignal(signum) for signum in WATCHED}
    yield
    for signum, handler in saved.items():
        if handler is not None:
            signal.signal(signum, handler)


@pytest.fixture
def log(tmp_path):
    return EventLog.open({"LOG_FILENAME": str(tmp_path / "events.log")})


def events(log):
    with open(log.path, encoding="utf-8") as fh:
        return [line.split("; ")[2].strip() for line in fh]


def details(log):
    with open(log.path, encoding="utf-8") as fh:
        return [line.rstrip("\n").split("; ", 3)[3] for line in fh]


def test_on_other_logs_received(log):
    SignalManager(log, Progress("f")).on_other(signal.SIGUSR1, None)
    assert events(log) == ["SIGNAL_RECV"]
    assert details(log) == [str(int(signal.SIGUSR1))]


def test_on_continue_logs_sent_and_received(log):
    SignalManager(log, Progress("f")).on_continue(signal.SIGCONT, None)
    assert events(log) == ["SIGNAL_SENT", "SIGNAL_RECV"]


def test_on_terminate_exits(log):
    with pytest.raises(SystemExit) as info:
        SignalManager(log, Progress("f")).on_terminate(signal.SIGTERM, None)
    assert info.value.code == 0
    assert events(log) == ["SIGNAL_SENT", "SIGNAL_RECV", "PROC_EXIT"]


def test_leader_continues_on_yes(log):
    kills = []
    out = io.StringIO()
    manager = SignalManager(
        log, Progress("target", total=2, modified=1), out=out,
        ask=lambda: "y", kill=lambda pid, sig: kills.append((pid, sig)),
        is_leader=lambda: True,
    )
    manager.on_interrupt(signal.SIGINT, None)
    assert kills == [(0, signal.SIGCONT)]
    assert f"pid: {os.getpid()}; fich/dir: target; nftot: 2; nfmod: 1\n" in out.getvalue()
    assert events(log) == ["SIGNAL_SENT", "SIGNAL_RECV", "PROC_EXIT"]


@pytest.mark.parametrize("answer", ["n", "", "no"])
def test_leader_terminates_otherwise(log, answer):
    kills = []
    manager = SignalManager(
        log, Progress("target"), out=io.StringIO(), ask=lambda: answer,
        kill=lambda pid, sig: kills.append((pid, sig)), is_leader=lambda: True,
    )
    with pytest.raises(SystemExit):
        manager.on_interrupt(signal.SIGINT, None)
    assert kills == [(0, signal.SIGTERM)]


def test_leader_end_of_input_terminates(log):
    kills = []

    def closed():
        raise EOFError

    manager = SignalManager(
        log, Progress("target"), out=io.StringIO(), ask=closed,
        kill=lambda pid, sig: kills.append((pid, sig)), is_leader=lambda: True,
    )
    with pytest.raises(SystemExit):
        manager.on_interrupt(signal.SIGINT, None)
    assert kills == [(0, signal.SIGTERM)]


def test_child_waits_with_handlers(log, restore_signals):
    paused = []
    out = io.StringIO()
    manager = SignalManager(
        log, Progress("sub"), out=out, pause=lambda: paused.append(True),
        is_leader=lambda: False,
    )
    manager.on_interrupt(signal.SIGINT, None)
    assert paused == [True]
    assert signal.getsignal(signal.SIGCONT) == manager.on_continue
    assert signal.getsignal(signal.SIGTERM) == manager.on_terminate
    assert "fich/dir: sub" in out.getvalue()


def test_install_routes_signals(log, restore_signals):
    manager = SignalManager(log, Progress("f"))
    previous = manager.install()
    assert signal.SIGINT in previous and signal.SIGCHLD in previous
    assert signal.getsignal(signal.SIGINT) == manager.on_interrupt
    os.kill(os.getpid(), signal.SIGUSR1)
    assert details(log) == [str(int(signal.SIGUSR1))]