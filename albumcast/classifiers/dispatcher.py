"""Fans a batch of available records out to the classification functions.

Recognition runs synchronously inside the batch worker and is retried on
transient failures; its final failure fails the batch attempt. Blur and
duplicate detection run as detached background tasks whose failures are
logged and never reach the batch job.
"""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Set

from albumcast.cache.invalidator import CacheInvalidator
from albumcast.jobs.retry import RetryPolicy, run_with_retry
from albumcast.jobs.scheduler import ReportScheduler
from albumcast.models.ingest import IngestRecord
from albumcast.models.report import ReportType
from albumcast.recognition.reconciler import MatchReconciler

from .invoker import FunctionInvoker
from .schemas import parse_blur, parse_duplicate, parse_recognition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassifierFunctions:
    """Names of the deployed classification functions."""

    recognition: str = "face-recognition"
    blur: str = "blur-detection"
    duplicate: str = "duplicate-detection"


class ClassifierDispatcher:
    """Invokes recognition, blur and duplicate detection for a batch."""

    def __init__(
        self,
        invoker: FunctionInvoker,
        reconciler: MatchReconciler,
        schedulers: Mapping[ReportType, ReportScheduler],
        bucket: str,
        functions: ClassifierFunctions = ClassifierFunctions(),
        recognition_policy: RetryPolicy = RetryPolicy(max_attempts=2, base_delay_s=2.0),
        report_delay_s: float = 60.0,
        invalidator: Optional[CacheInvalidator] = None,
        sleep: Callable[[float], None] = time.sleep,
        background: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            invoker: Calls the classification functions
            reconciler: Keeps the best recognition match per (album, user)
            schedulers: Report scheduler per report type
            bucket: Bucket the records were uploaded to
            functions: Function names to invoke
            recognition_policy: Attempts and backoff for the recognition call
            report_delay_s: Delay passed to every report trigger
            invalidator: Cache invalidator, if derived-read caches are in use
            sleep: Sleep used between recognition attempts (injectable for tests)
            background: Executor for detached classifier calls
        """
        self.invoker = invoker
        self.reconciler = reconciler
        self.schedulers = dict(schedulers)
        self.bucket = bucket
        self.functions = functions
        self.recognition_policy = recognition_policy
        self.report_delay_s = report_delay_s
        self.invalidator = invalidator
        self._sleep = sleep
        self._background = background or ThreadPoolExecutor(
            thread_name_prefix="albumcast-classifier-"
        )
        self._pending: Set[Future] = set()
        self._lock = Lock()

    def build_event(self, records: Sequence[IngestRecord]) -> Dict[str, Any]:
        return {"Records": [r.to_event_record(self.bucket) for r in records]}

    def dispatch(self, records: Sequence[IngestRecord]) -> None:
        """Classify a batch of available records.

        Raises:
            RetryExhaustedError: If recognition failed on every attempt
            RetryableInfraError: If recognition failed with a non-retried infra error
        """
        event = self.build_event(records)
        self.spawn(self.run_blur, event)
        self.spawn(self.run_duplicate, event)
        self.run_recognition(event)

    def spawn(self, task: Callable[[Dict[str, Any]], None], event: Dict[str, Any]) -> Future:
        """Run a classifier call in the background, logging any failure."""
        future = self._background.submit(self._guarded, task, event)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._discard)
        return future

    def _discard(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def _guarded(self, task: Callable[[Dict[str, Any]], None], event: Dict[str, Any]) -> None:
        try:
            task(event)
        except Exception:
            logger.exception(f"Background classifier task {task.__name__} failed")

    def run_recognition(self, event: Dict[str, Any]) -> List[int]:
        """Invoke recognition and reconcile the matches it returns.

        Returns:
            Album ids whose stored matches changed
        """
        raw = run_with_retry(
            lambda: self.invoker.invoke(self.functions.recognition, event),
            self.recognition_policy,
            label="Face recognition",
            sleep=self._sleep,
        )
        result = parse_recognition(raw)
        if not result.ok:
            logger.error(f"Ignoring recognition response: {result.error}")
            return []

        updated: List[int] = []
        album_id: Optional[int] = None
        for match in result.value.matches:
            match_album = match.resolved_album_id()
            if match_album is None or match.user_id is None:
                logger.warning(f"Recognition match without album or user id: {match!r}")
                continue
            album_id = match_album
            if self.reconciler.reconcile(
                match_album,
                match.user_id,
                match.distance,
                match.model_dump(exclude_none=True),
            ):
                if match_album not in updated:
                    updated.append(match_album)

        if self.invalidator is not None:
            for changed in updated:
                self.invalidator.on_matches_updated(changed)

        # Only the last album observed gets a face report
        if album_id is not None:
            self._schedule(ReportType.FACE, album_id)
        else:
            logger.info("No recognition matches in response")
        return updated

    def run_blur(self, event: Dict[str, Any]) -> None:
        raw = self.invoker.invoke(self.functions.blur, event)
        result = parse_blur(raw)
        if not result.ok:
            logger.error(f"Ignoring blur response: {result.error}")
            return

        for album_id, count in result.value.items():
            logger.info(f"Blur detection flagged {count} image(s) in album {album_id}")
            if self.invalidator is not None:
                self.invalidator.on_blur_flags_changed(album_id)
            self._schedule(ReportType.BLUR, album_id)

    def run_duplicate(self, event: Dict[str, Any]) -> None:
        raw = self.invoker.invoke(self.functions.duplicate, event)
        result = parse_duplicate(raw)
        if not result.ok:
            logger.error(f"Ignoring duplicate response: {result.error}")
            return

        summary = result.value
        if summary.album_id is None or summary.total_duplicates <= 0:
            logger.info(f"No duplicates reported: {summary!r}")
            return
        logger.info(
            f"Duplicate detection flagged {summary.total_duplicates} image(s) "
            f"in album {summary.album_id}"
        )
        if self.invalidator is not None:
            self.invalidator.on_duplicate_flags_changed(summary.album_id)
        self._schedule(ReportType.DUPLICATE, summary.album_id)

    def _schedule(self, report_type: ReportType, album_id: int) -> None:
        scheduler = self.schedulers.get(report_type)
        if scheduler is None:
            logger.warning(f"No scheduler for {report_type.value} reports")
            return
        scheduler.schedule(album_id, self.report_delay_s)

    def wait_background(self, timeout: Optional[float] = None) -> bool:
        """Wait for detached classifier calls. Intended for tests and shutdown.

        Returns:
            True if every background task finished within the timeout
        """
        with self._lock:
            pending = list(self._pending)
        if not pending:
            return True
        _, not_done = wait_futures(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait: bool = True) -> None:
        self._background.shutdown(wait=wait)
