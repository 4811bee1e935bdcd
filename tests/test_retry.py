"""Tests for the store retry policy."""

import pytest

from nlsync.db import ConstraintViolationError, StoreTransientError
from nlsync.sync import StoreRetryPolicy


def test_transient_failure_is_retried_then_succeeds() -> None:
    attempts = {"count": 0}

    def flaky() -> str:
        attempts["count"] += 1
        if attempts["count"] < 2:
            raise StoreTransientError("statement timeout")
        return "ok"

    assert StoreRetryPolicy(max_attempts=2, wait_seconds=0).execute(flaky) == "ok"
    assert attempts["count"] == 2


def test_last_transient_error_is_reraised() -> None:
    attempts = {"count": 0}

    def always_down() -> None:
        attempts["count"] += 1
        raise StoreTransientError("connection lost")

    with pytest.raises(StoreTransientError):
        StoreRetryPolicy(max_attempts=2, wait_seconds=0).execute(always_down)
    assert attempts["count"] == 2


def test_other_store_errors_fail_immediately() -> None:
    attempts = {"count": 0}

    def invalid() -> None:
        attempts["count"] += 1
        raise ConstraintViolationError("Invalid data provided")

    with pytest.raises(ConstraintViolationError):
        StoreRetryPolicy(max_attempts=2, wait_seconds=0).execute(invalid)
    assert attempts["count"] == 1


def test_attempts_must_be_positive() -> None:
    with pytest.raises(ValueError):
        StoreRetryPolicy(max_attempts=0)
