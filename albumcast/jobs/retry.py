"""Exponential backoff retry policy shared by batch, recognition and report work."""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from albumcast.errors import RetryExhaustedError, is_retryable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt ceiling and backoff for one kind of work.

    Attributes:
        max_attempts: Total attempts including the first
        base_delay_s: Delay before the second attempt
        backoff_factor: Multiplier applied for each further attempt
    """

    max_attempts: int
    base_delay_s: float
    backoff_factor: float = 2.0

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given failed attempt (1-based)."""
        return self.base_delay_s * (self.backoff_factor ** (attempt - 1))


def run_with_retry(
    fn: Callable[[], T],
    policy: RetryPolicy,
    label: str,
    sleep: Callable[[float], None] = time.sleep,
    retryable: Callable[[Exception], bool] = is_retryable,
    on_attempt: Optional[Callable[[int], None]] = None,
) -> T:
    """Call ``fn`` until it succeeds or the policy gives up.

    Args:
        fn: Zero-argument callable to execute
        policy: Attempt ceiling and backoff
        label: Name used in log messages and errors
        sleep: Sleep function (injectable for tests)
        retryable: Predicate deciding whether a failure is worth retrying
        on_attempt: Called with the attempt number before each attempt

    Returns:
        Whatever ``fn`` returns

    Raises:
        RetryExhaustedError: If every attempt failed with a retryable error
        Exception: The original error if it is not retryable
    """
    for attempt in range(1, policy.max_attempts + 1):
        if on_attempt is not None:
            on_attempt(attempt)
        try:
            return fn()
        except Exception as e:
            if not retryable(e):
                raise
            if attempt >= policy.max_attempts:
                raise RetryExhaustedError(label, attempt, e) from e
            delay = policy.delay_for(attempt)
            logger.warning(
                f"{label} failed with retryable error "
                f"(attempt {attempt}/{policy.max_attempts}), retrying in {delay:.1f}s: {e}"
            )
            sleep(delay)

    raise RetryExhaustedError(label, policy.max_attempts, None)
