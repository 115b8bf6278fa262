import pytest

import jarloc.translation.retry as retry
from jarloc.ai.exceptions import AuthError, OverloadedError, ProviderError


@pytest.fixture
def sleeps(monkeypatch):
    recorded = []
    monkeypatch.setattr(retry.time, "sleep", lambda seconds: recorded.append(seconds))
    return recorded


def test_is_overload_error_detection():
    assert retry.is_overload_error(OverloadedError("busy"))
    assert retry.is_overload_error(ProviderError("The model is overloaded"))
    assert retry.is_overload_error(RuntimeError("HTTP 429"))
    assert retry.is_overload_error(ProviderError("Too Many Requests"))
    assert not retry.is_overload_error(AuthError("bad key"))


def test_retry_succeeds_after_overload_with_linear_waits(sleeps):
    attempts = []

    def _flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise OverloadedError("overloaded")
        return {"ok": True}

    assert retry.call_with_retry(_flaky, max_attempts=3, base_delay=2.0) == {"ok": True}
    assert len(attempts) == 3
    assert sleeps == [2.0, 4.0]


def test_retry_gives_up_after_max_attempts(sleeps):
    def _always_busy():
        raise OverloadedError("overloaded")

    with pytest.raises(OverloadedError):
        retry.call_with_retry(_always_busy, max_attempts=3, base_delay=1.0)
    assert sleeps == [1.0, 2.0]


def test_non_overload_errors_are_not_retried(sleeps):
    calls = []

    def _broken():
        calls.append(1)
        raise ProviderError("invalid request")

    with pytest.raises(ProviderError):
        retry.call_with_retry(_broken, max_attempts=5)
    assert len(calls) == 1
    assert sleeps == []
