"""Debounced report scheduling.

One scheduler per report type. ``schedule`` coalesces: the first trigger for
an album starts the timer, and later triggers while that job is pending or
executing are no-ops. The timer is never extended or restarted, and nothing
captured at schedule time is used when it fires; the report recomputes its
aggregate from current state instead.

Scheduled jobs cannot be cancelled. They fire after their delay regardless
of what happens in between, except at shutdown, where timers that have not
fired yet are discarded.
"""

import logging
import threading
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional

from albumcast.models.base import utcnow
from albumcast.models.report import ReportJob, ReportStatus

from .report_runner import ReportRunner
from .reports import ReportDefinition
from .retry import RetryPolicy, run_with_retry

logger = logging.getLogger(__name__)

TimerFactory = Callable[..., Any]


class ReportScheduler:
    """Coalescing delayed executor for one report type."""

    def __init__(
        self,
        definition: ReportDefinition,
        runner: ReportRunner,
        retry_policy: RetryPolicy = RetryPolicy(max_attempts=3, base_delay_s=5.0),
        default_delay_s: Optional[float] = None,
        keep_completed: int = 10,
        keep_failed: int = 5,
        timer_factory: TimerFactory = threading.Timer,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize a scheduler.

        Args:
            definition: The report this scheduler runs
            runner: Executes the report when its timer fires
            retry_policy: Attempts and backoff for a failing execution
            default_delay_s: Delay when ``schedule`` gets none (defaults to the definition's)
            keep_completed: How many finished jobs to keep for diagnostics
            keep_failed: How many exhausted jobs to keep for diagnostics
            timer_factory: ``threading.Timer``-compatible factory (injectable for tests)
            sleep: Sleep used between retries (injectable for tests)
        """
        self.definition = definition
        self.runner = runner
        self.retry_policy = retry_policy
        self.default_delay_s = (
            definition.default_delay_s if default_delay_s is None else default_delay_s
        )
        self._timer_factory = timer_factory
        self._sleep = sleep

        self._active: Dict[int, ReportJob] = {}
        self._timers: Dict[int, Any] = {}
        self._completed: Deque[ReportJob] = deque(maxlen=keep_completed)
        self._failed: Deque[ReportJob] = deque(maxlen=keep_failed)
        self._executing = 0
        self._closed = False
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)

    @property
    def report_type(self) -> str:
        return self.definition.report_type.value

    def schedule(self, album_id: int, delay_s: Optional[float] = None) -> bool:
        """Schedule a report for an album unless one is already active.

        Args:
            album_id: The album to report on
            delay_s: Seconds until the report fires

        Returns:
            True if a new job was scheduled, False if the call was coalesced
        """
        delay = self.default_delay_s if delay_s is None else delay_s
        with self._lock:
            if self._closed:
                logger.warning(
                    f"Scheduler for {self.report_type} reports is shut down, "
                    f"dropping trigger for album {album_id}"
                )
                return False
            existing = self._active.get(album_id)
            if existing is not None:
                logger.debug(
                    f"{self.report_type} report for album {album_id} already "
                    f"{existing.status.value}, coalescing trigger"
                )
                return False

            job = ReportJob(
                report_type=self.definition.report_type,
                album_id=album_id,
                delay_seconds=delay,
            )
            timer = self._timer_factory(delay, self._fire, args=(job,))
            timer.daemon = True
            self._active[album_id] = job
            self._timers[album_id] = timer

        timer.start()
        logger.info(f"Queued {self.report_type} report for album {album_id} in {delay}s")
        return True

    def _fire(self, job: ReportJob) -> None:
        with self._lock:
            if job.status is not ReportStatus.PENDING:
                # Discarded at shutdown
                return
            self._timers.pop(job.album_id, None)
            job.status = ReportStatus.EXECUTING
            self._executing += 1

        try:
            outcome = run_with_retry(
                lambda: self.runner.run(self.definition, job.album_id),
                self.retry_policy,
                label=f"{self.report_type} report for album {job.album_id}",
                sleep=self._sleep,
                on_attempt=lambda attempt: self._mark_attempt(job, attempt),
            )
            job.count = outcome.count
            job.notified = outcome.notified
            job.status = ReportStatus.DONE
        except Exception as e:
            job.status = ReportStatus.EXHAUSTED
            job.error = str(e)
            logger.exception(
                f"Failed to send {self.report_type} report for album {job.album_id} "
                f"after {job.attempts} attempt(s)"
            )
        finally:
            job.completed_at = utcnow()
            with self._lock:
                if self._active.get(job.album_id) is job:
                    del self._active[job.album_id]
                if job.status is ReportStatus.DONE:
                    self._completed.append(job)
                else:
                    self._failed.append(job)
                self._executing -= 1
                self._idle.notify_all()

    def _mark_attempt(self, job: ReportJob, attempt: int) -> None:
        job.attempts = attempt
        if attempt > 1:
            job.status = ReportStatus.RETRYING

    def fire_due(self, album_id: int) -> bool:
        """Fire an album's pending report now instead of waiting for its timer.

        Returns:
            True if a pending job was fired
        """
        with self._lock:
            job = self._active.get(album_id)
            timer = self._timers.get(album_id)
            if job is None or job.status is not ReportStatus.PENDING:
                return False
        if timer is not None:
            timer.cancel()
        self._fire(job)
        return True

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no report is pending or executing.

        Returns:
            True if idle, False on timeout
        """
        with self._idle:
            return self._idle.wait_for(lambda: not self._active, timeout=timeout)

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """Discard unfired timers and join executing jobs.

        Args:
            wait: If True, wait for executing reports to finish
            timeout: Max seconds to wait (None = wait forever)
        """
        with self._lock:
            self._closed = True
            discarded = []
            for album_id, timer in list(self._timers.items()):
                timer.cancel()
                job = self._active.pop(album_id)
                job.status = ReportStatus.EXHAUSTED
                job.error = "discarded at shutdown"
                job.completed_at = utcnow()
                self._failed.append(job)
                discarded.append(album_id)
            self._timers.clear()

        if discarded:
            logger.warning(
                f"Discarded unfired {self.report_type} reports for albums {discarded}"
            )
        if wait:
            with self._idle:
                self._idle.wait_for(lambda: self._executing == 0, timeout=timeout)
        logger.info(f"Scheduler for {self.report_type} reports shut down")

    def get_job(self, album_id: int) -> Optional[ReportJob]:
        with self._lock:
            return self._active.get(album_id)

    def active_jobs(self) -> List[ReportJob]:
        with self._lock:
            return list(self._active.values())

    def history(self) -> Dict[str, List[ReportJob]]:
        """Retained finished jobs, most recent last."""
        with self._lock:
            return {"completed": list(self._completed), "failed": list(self._failed)}
