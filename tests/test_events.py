import os
import re
import time

import pytest

from opsys.xmod.events import CLOCK_VARIABLE, EventLog, log_path_from_env, start_clock


@pytest.fixture
def log(tmp_path):
    env = {"LOG_FILENAME": str(tmp_path / "events.log")}
    return EventLog.open(env, truncate=True)


def lines(log):
    with open(log.path, encoding="utf-8") as fh:
        return fh.readlines()


def test_log_path_from_env_reads_variable():
    assert log_path_from_env({"LOG_FILENAME": "/tmp/x.log"}) == "/tmp/x.log"


def test_log_path_from_env_missing():
    with pytest.raises(KeyError):
        log_path_from_env({"HOME": "/home"})


def test_start_clock_sets_once():
    env = {}
    first = start_clock(env)
    assert env[CLOCK_VARIABLE] == str(first)
    assert start_clock(env) == first


def test_start_clock_keeps_existing_value():
    env = {CLOCK_VARIABLE: "123"}
    assert start_clock(env) == 123
    assert env[CLOCK_VARIABLE] == "123"


def test_open_truncates(tmp_path):
    path = tmp_path / "events.log"
    path.write_text("old\n")
    EventLog.open({"LOG_FILENAME": str(path)}, truncate=True)
    assert path.read_text() == ""


def test_open_keeps_content_without_truncate(tmp_path):
    path = tmp_path / "events.log"
    path.write_text("old\n")
    EventLog.open({"LOG_FILENAME": str(path)}, truncate=False)
    assert path.read_text() == "old\n"


def test_open_in_missing_directory_reports(tmp_path, capsys):
    log = EventLog.open({"LOG_FILENAME": str(tmp_path / "no" / "x.log")})
    log.record_exit(1, 0)
    assert "ERROR" in capsys.readouterr().err


def test_elapsed_grows(log):
    first = log.elapsed_ms()
    time.sleep(0.01)
    second = log.elapsed_ms()
    assert 0 <= first < second


def test_record_creation(log):
    log.record_creation(42, ["xmod", "-v", "0755", "f"])
    written = lines(log)
    assert len(written) == 1
    match = re.fullmatch(r"(\d+\.\d{6}) ms; (.*)\n", written[0])
    assert match.group(2) == "42; PROC_CREAT; xmod;-v;0755;f;"
    assert float(match.group(1)) >= 0


def test_record_modification(log):
    log.record_modification(42, "f", 0o100644, 0o100755)
    written = lines(log)
    assert len(written) == 1
    match = re.fullmatch(r"(\d+\.\d{5}) ms; (.*)\n", written[0])
    assert match.group(2) == "42; FILE_MODF; f : 0644 : 0755;"
    assert float(match.group(1)) >= 0


def test_record_exit_and_signals(log):
    log.record_exit(7, 3)
    log.record_signal_received(7, 10)
    log.record_signal_sent(7, 2, 9)
    parts = [line.split("; ", 2)[1:] for line in lines(log)]
    assert parts == [
        ["7", "PROC_EXIT; 3\n"],
        ["7", "SIGNAL_RECV; 10\n"],
        ["7", "SIGNAL_SENT; 2 : 9\n"],
    ]


def test_records_append_in_order(log):
    for code in range(3):
        log.record_exit(os.getpid(), code)
    assert [line.rstrip("\n").rsplit("; ", 1)[1] for line in lines(log)] == ["0", "1", "2"]