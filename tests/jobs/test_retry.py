"""Tests for the retry policy and error classification."""

import pytest

from albumcast.errors import (
    ClassifierParseError,
    NoAvailableRecordsError,
    PermanentDataError,
    RetryableInfraError,
    RetryExhaustedError,
    is_retryable,
)
from albumcast.jobs.retry import RetryPolicy, run_with_retry


def test_delay_doubles_per_attempt():
    policy = RetryPolicy(max_attempts=3, base_delay_s=5.0)

    assert policy.delay_for(1) == 5.0
    assert policy.delay_for(2) == 10.0
    assert policy.delay_for(3) == 20.0


def test_returns_first_success():
    sleeps = []
    assert run_with_retry(lambda: "ok", RetryPolicy(3, 1.0), "op", sleep=sleeps.append) == "ok"
    assert sleeps == []


def test_retries_transient_then_succeeds():
    sleeps = []
    attempts = []
    outcomes = [RetryableInfraError("connection reset"), RetryableInfraError("timeout"), "done"]

    def flaky():
        outcome = outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    result = run_with_retry(
        flaky, RetryPolicy(3, 2.0), "flaky op", sleep=sleeps.append, on_attempt=attempts.append
    )

    assert result == "done"
    assert attempts == [1, 2, 3]
    assert sleeps == [2.0, 4.0]


def test_exhaustion_raises_with_last_error():
    sleeps = []
    error = RetryableInfraError("throttled")

    def always_fail():
        raise error

    with pytest.raises(RetryExhaustedError) as exc_info:
        run_with_retry(always_fail, RetryPolicy(2, 1.0), "op", sleep=sleeps.append)

    assert exc_info.value.attempts == 2
    assert exc_info.value.last_error is error
    assert sleeps == [1.0]


def test_permanent_error_is_not_retried():
    calls = []

    def missing():
        calls.append(1)
        raise PermanentDataError("Album 5 not found")

    with pytest.raises(PermanentDataError):
        run_with_retry(missing, RetryPolicy(3, 1.0), "op", sleep=lambda s: None)

    assert len(calls) == 1


@pytest.mark.parametrize(
    "error,expected",
    [
        (RetryableInfraError("x"), True),
        (NoAvailableRecordsError("job", 2), True),
        (RetryExhaustedError("op", 2, None), True),
        (PermanentDataError("gone"), False),
        (ClassifierParseError("blur", "bad"), False),
        (OSError("Connection refused"), True),
        (ValueError("invalid literal"), False),
    ],
)
def test_is_retryable(error, expected):
    assert is_retryable(error) is expected
