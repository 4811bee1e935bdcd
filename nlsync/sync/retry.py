"""Retry policy for store calls."""

import logging
from typing import Callable, TypeVar

from tenacity import Retrying, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_fixed

from ..db.errors import StoreTransientError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StoreRetryPolicy:
    """Run a store operation, retrying only transient store failures.

    Constraint violations and other store errors fail on the first attempt.
    """

    def __init__(self, max_attempts: int = 2, wait_seconds: float = 0.2) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.wait_seconds = wait_seconds

    def execute(self, operation: Callable[[], T]) -> T:
        retryer = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.wait_seconds),
            retry=retry_if_exception_type(StoreTransientError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retryer(operation)
