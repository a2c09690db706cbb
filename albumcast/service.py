"""Pipeline service - builds and owns every pipeline component.

Components receive their collaborators explicitly; nothing reaches for a
global queue or connection handle. ``start`` brings the batch workers up;
``shutdown`` waits for in-flight work and discards report timers that have
not fired.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

from .cache.base_store import KeyValueStore
from .cache.invalidator import CacheInvalidator
from .cache.store_factory import create_store
from .classifiers.dispatcher import ClassifierDispatcher, ClassifierFunctions
from .classifiers.invoker import FunctionInvoker, LambdaInvoker
from .config import Settings
from .db.connection import SessionFactory, create_db_engine, init_db, make_session_factory
from .jobs import REPORTS
from .jobs.batch_pool import BatchWorkerPool
from .jobs.report_runner import ReportRunner
from .jobs.retry import RetryPolicy
from .jobs.scheduler import ReportScheduler, TimerFactory
from .models.ingest import BatchJob, IngestRecord
from .models.report import ReportType
from .notifications.dispatcher import NotificationDispatcher
from .notifications.push import FirebasePushGateway, PushGateway
from .recognition.reconciler import MatchReconciler
from .recognition.suggestions import suggest_tags
from .storage.prober import ObjectProber, S3ObjectProber

logger = logging.getLogger(__name__)


class PipelineService:
    """Wires the ingestion, classification and reporting pipeline."""

    def __init__(
        self,
        settings: Settings,
        store: Optional[KeyValueStore] = None,
        session_factory: Optional[SessionFactory] = None,
        prober: Optional[ObjectProber] = None,
        invoker: Optional[FunctionInvoker] = None,
        push: Optional[PushGateway] = None,
        sleep: Callable[[float], None] = time.sleep,
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        """Build the pipeline.

        Args:
            settings: Application settings
            store: Key/value store (defaults to the configured backend)
            session_factory: Database session factory (defaults to the configured database)
            prober: Availability prober (defaults to S3)
            invoker: Classification function invoker (defaults to Lambda)
            push: Push gateway (defaults to Firebase when credentials are configured)
            sleep: Sleep used by every retry loop
            timer_factory: Timer factory used by the report schedulers
        """
        self.settings = settings
        self.store = store if store is not None else create_store(settings)

        if session_factory is None:
            engine = create_db_engine(settings.database_url, echo=settings.sql_echo)
            init_db(engine)
            session_factory = make_session_factory(engine)
        self.session_factory = session_factory

        if prober is None:
            prober = S3ObjectProber(region=settings.aws_region, endpoint_url=settings.s3_endpoint_url)
        if invoker is None:
            invoker = LambdaInvoker(region=settings.aws_region)
        if push is None and settings.firebase_credentials_path:
            push = FirebasePushGateway(credentials_path=settings.firebase_credentials_path)
        if push is None:
            logger.warning("No push gateway configured, notifications will only be persisted")

        self.invalidator = CacheInvalidator(self.store, session_factory=self.session_factory)
        self.reconciler = MatchReconciler(self.store, ttl_seconds=settings.match_ttl_seconds)
        self.notifier = NotificationDispatcher(push=push, invalidator=self.invalidator)
        self.runner = ReportRunner(self.session_factory, self.notifier, reconciler=self.reconciler)

        report_policy = RetryPolicy(
            max_attempts=settings.report_max_attempts,
            base_delay_s=settings.report_backoff_seconds,
        )
        self.schedulers: Dict[ReportType, ReportScheduler] = {}
        for report_type in REPORTS.list_reports():
            self.schedulers[report_type] = ReportScheduler(
                REPORTS.get(report_type),
                self.runner,
                retry_policy=report_policy,
                default_delay_s=settings.report_delays[report_type.value],
                keep_completed=settings.report_keep_completed,
                keep_failed=settings.report_keep_failed,
                timer_factory=timer_factory,
                sleep=sleep,
            )

        self.dispatcher = ClassifierDispatcher(
            invoker,
            self.reconciler,
            self.schedulers,
            bucket=settings.aws_bucket_name,
            functions=ClassifierFunctions(
                recognition=settings.face_recognition_function,
                blur=settings.blur_detection_function,
                duplicate=settings.duplicate_detection_function,
            ),
            recognition_policy=RetryPolicy(
                max_attempts=settings.recognition_max_attempts,
                base_delay_s=settings.recognition_backoff_seconds,
            ),
            report_delay_s=settings.report_trigger_delay_seconds,
            invalidator=self.invalidator,
            sleep=sleep,
        )
        self.pool = BatchWorkerPool(
            prober,
            self.dispatcher,
            bucket=settings.aws_bucket_name,
            workers=settings.batch_workers,
            retry_policy=RetryPolicy(
                max_attempts=settings.batch_max_attempts,
                base_delay_s=settings.batch_backoff_seconds,
            ),
            sleep=sleep,
            keep_finished=settings.batch_keep_finished,
        )

    @property
    def running(self) -> bool:
        return self.pool.running

    def start(self) -> None:
        self.pool.start()
        logger.info("Pipeline service started")

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """Drain in-flight work, then release resources.

        Args:
            wait: If True, drain batches and background calls and join executing reports
            timeout: Max seconds to wait at each stage (None = wait forever)
        """
        logger.info("Shutting down pipeline service")
        if wait and not self.pool.drain(timeout=timeout):
            logger.warning("Batch jobs still running at shutdown")
        self.pool.shutdown(wait=wait)
        if wait and not self.dispatcher.wait_background(timeout=timeout):
            logger.warning("Background classifier calls still running at shutdown")
        self.dispatcher.shutdown(wait=wait)
        for scheduler in self.schedulers.values():
            scheduler.shutdown(wait=wait, timeout=timeout)
        self.store.close()
        logger.info("Pipeline service stopped")

    def submit_batch(self, records: Sequence[IngestRecord]) -> BatchJob:
        return self.pool.submit_batch(records)

    def get_batch(self, job_id: str) -> Optional[BatchJob]:
        return self.pool.get_job(job_id)

    def schedule_report(
        self, report_type: ReportType, album_id: int, delay_s: Optional[float] = None
    ) -> bool:
        return self.schedulers[report_type].schedule(album_id, delay_s)

    def suggest_tags(self, album_id: int) -> Dict[str, Any]:
        return suggest_tags(self.reconciler, self.session_factory, album_id)

    def report_status(self) -> Dict[str, Any]:
        """Active and retained report jobs per report type."""
        status: Dict[str, Any] = {}
        for report_type, scheduler in self.schedulers.items():
            history = scheduler.history()
            status[report_type.value] = {
                "active": [job.to_dict() for job in scheduler.active_jobs()],
                "completed": [job.to_dict() for job in history["completed"]],
                "failed": [job.to_dict() for job in history["failed"]],
            }
        return status

    def health(self) -> Dict[str, Any]:
        jobs: List[BatchJob] = self.pool.list_jobs()
        return {
            "status": "healthy" if self.running else "stopped",
            "backend": "threading",
            "workers": self.pool.workers,
            "batches": {
                "total": len(jobs),
                "in_flight": sum(1 for job in jobs if not job.is_terminal),
            },
            "reports": {
                report_type.value: len(scheduler.active_jobs())
                for report_type, scheduler in self.schedulers.items()
            },
        }
