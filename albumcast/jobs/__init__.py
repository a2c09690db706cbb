"""Batch ingestion and debounced report jobs."""

from . import definitions  # noqa: F401  registers the face, blur and duplicate reports
from .batch_pool import BatchWorkerPool
from .report_runner import ReportOutcome, ReportRunner
from .reports import REPORTS, Audience, ReportContext, ReportDefinition, register_report
from .retry import RetryPolicy, run_with_retry
from .scheduler import ReportScheduler

__all__ = [
    "REPORTS",
    "Audience",
    "BatchWorkerPool",
    "ReportContext",
    "ReportDefinition",
    "ReportOutcome",
    "ReportRunner",
    "ReportScheduler",
    "RetryPolicy",
    "register_report",
    "run_with_retry",
]
