import logging

import pytest

import cognito_jwt as m
from cognito_jwt import refresh_gate


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    time_val = [1000.0]  # use list to allow modification
    monkeypatch.setattr(refresh_gate.time, "time", lambda: time_val[0])
    return time_val


def test_never_refreshed_cache_is_allowed(clock: list[float]):
    """A cache with no refresh yet may fetch immediately, repeatedly."""
    gate = m.RefreshThrottle(m.KeyCache(), min_interval=10.0)

    assert gate.elapsed(clock[0]) == 10.0
    assert gate.allow() is True
    assert gate.allow() is True  # nothing committed, still eligible


def test_denies_within_interval_after_refresh(clock: list[float]):
    cache = m.KeyCache()
    gate = m.RefreshThrottle(cache, min_interval=10.0)
    cache.replace_all([], now=1000.0)

    clock[0] = 1009.0
    assert gate.allow() is False

    clock[0] = 1010.0
    assert gate.allow() is True


def test_denial_counter_resets_on_allow(clock: list[float]):
    cache = m.KeyCache()
    gate = m.RefreshThrottle(cache, min_interval=10.0)
    cache.replace_all([], now=1000.0)

    assert gate.allow() is False
    assert gate.allow() is False
    assert gate.denied == 2

    clock[0] = 1020.0
    assert gate.allow() is True
    assert gate.denied == 0


def test_warns_at_alert_threshold(clock: list[float], caplog: pytest.LogCaptureFixture):
    cache = m.KeyCache()
    gate = m.RefreshThrottle(cache, min_interval=10.0, alert_threshold=3)
    cache.replace_all([], now=1000.0)

    with caplog.at_level(logging.WARNING, logger="cognito_jwt.refresh_gate"):
        gate.allow()
        gate.allow()
        assert caplog.records == []
        gate.allow()

    assert len(caplog.records) == 1
    assert "throttled" in caplog.records[0].getMessage()


def test_min_interval_is_adjustable(clock: list[float]):
    cache = m.KeyCache()
    gate = m.RefreshThrottle(cache, min_interval=300.0)
    cache.replace_all([], now=1000.0)
    clock[0] = 1060.0
    assert gate.allow() is False

    gate.min_interval = 30.0

    assert gate.allow() is True


@pytest.mark.parametrize("interval", [0, -1.0])
def test_rejects_non_positive_interval(interval: float):
    with pytest.raises(ValueError):
        m.RefreshThrottle(m.KeyCache(), min_interval=interval)

    gate = m.RefreshThrottle(m.KeyCache())
    with pytest.raises(ValueError):
        gate.min_interval = interval


def test_rejects_bad_alert_threshold():
    with pytest.raises(ValueError):
        m.RefreshThrottle(m.KeyCache(), alert_threshold=0)
