import os
import signal
import stat
import time

import pytest

from opsys.xmod.cli import main


@pytest.fixture
def log_path(tmp_path, monkeypatch):
    path = tmp_path / "events.log"
    monkeypatch.setenv("LOG_FILENAME", str(path))
    monkeypatch.setenv("START_CLOCK", str(time.monotonic_ns()))
    return path


def make_file(path, mode):
    path.write_text("data")
    os.chmod(path, mode)
    return path


def mode_of(path):
    return stat.S_IMODE(os.lstat(path).st_mode)


def test_usage(capsys):
    assert main(["0755"]) == 0
    assert capsys.readouterr().out == "usage: xmod [OPTIONS] MODE FILE/DIR\n"


def test_missing_log_variable(tmp_path, monkeypatch, capsys):
    monkeypatch.delenv("LOG_FILENAME", raising=False)
    target = make_file(tmp_path / "f", 0o644)
    assert main(["0755", str(target)]) == 1
    assert "LOG_FILENAME doesn't exist." in capsys.readouterr().out
    assert mode_of(target) == 0o644


def test_verbose_change(tmp_path, log_path, capsys):
    target = make_file(tmp_path / "fileForTests", 0o444)
    assert main(["-v", "0755", str(target)]) == 0
    assert mode_of(target) == 0o755
    assert capsys.readouterr().out == (
        f"mode of '{target}' changed from 0444 (r--r--r--) to 0755 (rwxr-xr-x)\n"
    )
    lines = log_path.read_text().splitlines()
    assert f"PROC_CREAT; xmod;-v;0755;{target};" in lines[0]
    assert lines[-1].endswith("PROC_EXIT; 0")


def test_verbose_retained(tmp_path, log_path, capsys):
    target = make_file(tmp_path / "fileForTests", 0o444)
    assert main(["-v", "a=r", str(target)]) == 0
    assert capsys.readouterr().out == f"mode of '{target}' retained as 0444 (r--r--r--)\n"


def test_invalid_mode(tmp_path, log_path, capsys):
    target = make_file(tmp_path / "f", 0o644)
    assert main(["u+q", str(target)]) == 1
    assert "ERROR: can't change permissions" in capsys.readouterr().out
    assert log_path.read_text().splitlines()[-1].endswith("PROC_EXIT; 1")


def test_missing_target(tmp_path, log_path, capsys):
    assert main(["0755", str(tmp_path / "nope")]) == 1
    assert "ERROR" in capsys.readouterr().err


def test_signal_handlers_restored(tmp_path, log_path):
    target = make_file(tmp_path / "f", 0o644)
    before = signal.getsignal(signal.SIGINT)
    assert main(["0755", str(target)]) == 0
    assert mode_of(target) == 0o755
    assert signal.getsignal(signal.SIGINT) == before


def test_recursive(tmp_path, log_path):
    tree = tmp_path / "tree"
    sub = tree / "sub"
    sub.mkdir(parents=True)
    deep = make_file(sub / "b.txt", 0o644)
    assert main(["-R", "0775", str(tree)]) == 0
    assert mode_of(deep) == 0o775
    assert mode_of(sub) == 0o775
    created = [line for line in log_path.read_text().splitlines() if "PROC_CREAT" in line]
    assert len(created) == 2