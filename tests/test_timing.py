import pytest

from opsys.timing import Deadline


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


def test_not_expired_at_start():
    clock = FakeClock()
    deadline = Deadline(5, clock=clock)
    assert deadline.expired() is False


def test_expired_exactly_at_duration():
    clock = FakeClock()
    deadline = Deadline(5, clock=clock)
    clock.now += 5
    assert deadline.expired() is True


def test_not_expired_just_before_duration():
    clock = FakeClock()
    deadline = Deadline(5, clock=clock)
    clock.now += 4.5
    assert deadline.expired() is False


def test_remaining_seconds_truncates():
    clock = FakeClock()
    deadline = Deadline(5, clock=clock)
    clock.now += 1.5
    assert deadline.remaining_seconds() == 3


def test_remaining_micros():
    clock = FakeClock()
    deadline = Deadline(1, clock=clock)
    clock.now += 0.25
    assert deadline.remaining_micros() == 750000


def test_remaining_after_expiry_is_not_positive():
    clock = FakeClock()
    deadline = Deadline(2, clock=clock)
    clock.now += 10
    assert deadline.remaining_seconds() <= 0
    assert deadline.remaining_micros() < 0


def test_remaining_decreases_over_time():
    clock = FakeClock()
    deadline = Deadline(10, clock=clock)
    first = deadline.remaining_micros()
    clock.now += 1
    second = deadline.remaining_micros()
    assert second < first


def test_micros_consistent_with_seconds():
    clock = FakeClock()
    deadline = Deadline(7, clock=clock)
    clock.now += 2.5
    seconds = deadline.remaining_seconds()
    micros = deadline.remaining_micros()
    assert seconds * 1_000_000 <= micros < (seconds + 1) * 1_000_000


def test_real_clock_deadline():
    deadline = Deadline(60)
    assert deadline.expired() is False
    assert 58 <= deadline.remaining_seconds() <= 60


@pytest.mark.parametrize("duration", [0, -1])
def test_non_positive_duration_is_expired(duration):
    deadline = Deadline(duration, clock=FakeClock())
    assert deadline.expired() is True