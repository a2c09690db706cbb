"""Failure taxonomy for the ingestion and reporting pipeline.

Only transient infrastructure failures are retried with backoff. Permanent
data errors abort the current unit of work, and malformed classifier
responses are reduced to a no-op by the dispatcher.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for pipeline failures."""


class RetryableInfraError(PipelineError):
    """Transient infrastructure failure (timeouts, throttling, network)."""


class NoAvailableRecordsError(RetryableInfraError):
    """No record in a batch passed the availability probe."""

    def __init__(self, job_id: str, record_count: int):
        self.job_id = job_id
        self.record_count = record_count
        super().__init__(
            f"Batch {job_id}: none of {record_count} record(s) available in storage"
        )


class PermanentDataError(PipelineError):
    """Missing entity or otherwise unrecoverable input; never retried."""


class ClassifierParseError(PipelineError):
    """A classifier returned a response that does not match its schema."""

    def __init__(self, classifier: str, reason: str):
        self.classifier = classifier
        self.reason = reason
        super().__init__(f"Unexpected {classifier} response: {reason}")


class RetryExhaustedError(RetryableInfraError):
    """All attempts for a retried operation failed.

    Counts as transient for any enclosing unit of work.
    """

    def __init__(self, label: str, attempts: int, last_error: Optional[Exception]):
        self.label = label
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"{label} failed after {attempts} attempt(s): {last_error}")


_TRANSIENT_PATTERNS = (
    "connection",
    "timeout",
    "timed out",
    "throttl",
    "rate exceeded",
    "temporarily unavailable",
    "deadlock",
)


def is_retryable(error: Exception) -> bool:
    """Check if an error is likely transient and worth retrying.

    Args:
        error: The exception that occurred

    Returns:
        True if the error should trigger a backoff retry
    """
    if isinstance(error, RetryableInfraError):
        return True
    if isinstance(error, PipelineError):
        return False
    error_msg = str(error).lower()
    return any(pattern in error_msg for pattern in _TRANSIENT_PATTERNS)
