import pytest

from uipom.errors import NoSuchElementError, WaitTimeoutError
from uipom.utils.timing import Fatal, NotYetSatisfied, Satisfied, fatal, not_yet, satisfied, wait_until


def _after(k, result_before=None):
    calls = {"n": 0}

    def probe():
        calls["n"] += 1
        if calls["n"] > k:
            return satisfied()
        return result_before if result_before is not None else not_yet()
    return probe, calls


def test_satisfied_after_k_polls(clock):
    probe, calls = _after(3)
    polls = wait_until(probe, timeout_ms=1000, interval_ms=100)
    assert polls == 4 == calls["n"]
    assert clock.sleeps == [100, 100, 100]


def test_bool_probe_is_accepted(clock):
    values = iter([False, False, True])
    assert wait_until(lambda: next(values), 1000, 50) == 3


def test_timeout_carries_last_cause(clock):
    cause = NoSuchElementError("nothing yet")
    with pytest.raises(WaitTimeoutError) as ei:
        wait_until(lambda: not_yet(cause), timeout_ms=250, interval_ms=100, description="search box visible")
    err = ei.value
    assert isinstance(err, TimeoutError)
    assert err.last_error is cause
    assert err.timeout_ms == 250
    assert err.polls == 4
    assert "search box visible" in str(err)
    # last sleep is trimmed to the remaining budget
    assert clock.sleeps == [100, 100, 50]


def test_fatal_aborts_immediately(clock):
    boom = RuntimeError("driver crashed")
    with pytest.raises(RuntimeError, match="driver crashed"):
        wait_until(lambda: fatal(boom), 1000, 100)
    assert clock.sleeps == []


def test_zero_timeout_probes_once(clock):
    probe, calls = _after(10)
    with pytest.raises(WaitTimeoutError):
        wait_until(probe, timeout_ms=0, interval_ms=100)
    assert calls["n"] == 1


def test_probe_result_values():
    assert isinstance(satisfied(), Satisfied)
    assert not_yet() == NotYetSatisfied()
    e = ValueError("x")
    assert not_yet(e).cause is e
    assert fatal(e) == Fatal(e)
