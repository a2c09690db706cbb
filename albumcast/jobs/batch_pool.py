"""Batch ingestion workers - threading, no external queue.

Each batch job probes its records for availability, drops the ones that
are not readable yet, and hands the rest to the classifier dispatcher.
Failures retry inline with exponential backoff; a job that exhausts its
attempts is logged and abandoned.
"""

import logging
import threading
import time
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from typing import TYPE_CHECKING, Callable, Deque, Dict, List, Optional, Sequence

from albumcast.errors import NoAvailableRecordsError, PipelineError
from albumcast.models.base import utcnow
from albumcast.models.ingest import BatchJob, BatchStatus, IngestRecord
from albumcast.storage.prober import ObjectProber

from .retry import RetryPolicy, run_with_retry

if TYPE_CHECKING:
    from albumcast.classifiers.dispatcher import ClassifierDispatcher

logger = logging.getLogger(__name__)


class BatchWorkerPool:
    """Bounded pool that processes ingestion batches."""

    def __init__(
        self,
        prober: ObjectProber,
        dispatcher: "ClassifierDispatcher",
        bucket: str,
        workers: int = 5,
        retry_policy: RetryPolicy = RetryPolicy(max_attempts=3, base_delay_s=5.0),
        sleep: Callable[[float], None] = time.sleep,
        keep_finished: int = 100,
    ) -> None:
        self.prober = prober
        self.dispatcher = dispatcher
        self.bucket = bucket
        self.workers = workers
        self.retry_policy = retry_policy
        self._sleep = sleep
        self.keep_finished = keep_finished

        self._executor: Optional[ThreadPoolExecutor] = None
        self._jobs: Dict[str, BatchJob] = {}
        self._futures: Dict[str, Future] = {}
        self._finished: Deque[str] = deque()
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._executor is not None

    def start(self) -> None:
        if self._executor is not None:
            return
        self._executor = ThreadPoolExecutor(
            max_workers=self.workers,
            thread_name_prefix="albumcast-batch-",
        )
        logger.info(f"Started batch pool with {self.workers} workers")

    def submit_batch(self, records: Sequence[IngestRecord]) -> BatchJob:
        """Enqueue a batch of uploaded objects.

        Args:
            records: Records to classify, in upload order

        Returns:
            The enqueued BatchJob

        Raises:
            PipelineError: If the pool is not running or the batch is empty
        """
        if self._executor is None:
            raise PipelineError("Batch pool is not running")
        if not records:
            raise PipelineError("Cannot submit an empty batch")

        job = BatchJob(records=list(records))
        with self._lock:
            self._jobs[job.id] = job
            future = self._executor.submit(self._run_job, job)
            self._futures[job.id] = future
        future.add_done_callback(lambda _: self._forget(job.id))
        logger.info(f"Enqueued batch job {job.id} with {len(job.records)} record(s)")
        return job

    def _run_job(self, job: BatchJob) -> None:
        try:
            run_with_retry(
                lambda: self.process_job(job),
                self.retry_policy,
                label=f"Batch job {job.id}",
                sleep=self._sleep,
                on_attempt=lambda attempt: self._mark_attempt(job, attempt),
            )
            job.status = BatchStatus.COMPLETED
            logger.info(f"Batch job {job.id} completed")
        except Exception as e:
            job.status = BatchStatus.EXHAUSTED
            job.error = str(e)
            logger.error(
                f"Batch job {job.id} abandoned after {job.attempts} attempt(s): {e}"
            )
        finally:
            job.completed_at = utcnow()
            self._retire(job)

    def _retire(self, job: BatchJob) -> None:
        with self._lock:
            self._finished.append(job.id)
            while len(self._finished) > self.keep_finished:
                self._jobs.pop(self._finished.popleft(), None)

    def _forget(self, job_id: str) -> None:
        with self._lock:
            self._futures.pop(job_id, None)

    def _mark_attempt(self, job: BatchJob, attempt: int) -> None:
        job.attempts = attempt
        job.status = BatchStatus.PROCESSING if attempt == 1 else BatchStatus.RETRYING

    def process_job(self, job: BatchJob) -> None:
        """Run one attempt of a batch job.

        Raises:
            NoAvailableRecordsError: If none of the records is readable
            RetryableInfraError: If probing or recognition failed transiently
        """
        logger.info(
            f"Processing batch job {job.id} (attempt {job.attempts}) "
            f"with {len(job.records)} record(s)"
        )
        available = self.filter_available(job.records)
        if not available:
            raise NoAvailableRecordsError(job.id, len(job.records))
        self.dispatcher.dispatch(available)

    def filter_available(self, records: Sequence[IngestRecord]) -> List[IngestRecord]:
        """Probe records concurrently and keep the readable ones, in order."""
        with ThreadPoolExecutor(
            max_workers=max(1, len(records)),
            thread_name_prefix="albumcast-probe-",
        ) as probes:
            results = list(
                probes.map(lambda r: self.prober.exists(self.bucket, r.storage_key), records)
            )

        available = []
        for record, exists in zip(records, results):
            if exists:
                available.append(record)
            else:
                logger.warning(
                    f"Object {record.storage_key} not available yet, dropping from batch"
                )
        return available

    def get_job(self, job_id: str) -> Optional[BatchJob]:
        with self._lock:
            return self._jobs.get(job_id)

    def list_jobs(self) -> List[BatchJob]:
        with self._lock:
            return list(self._jobs.values())

    def drain(self, timeout: Optional[float] = None) -> bool:
        """Wait for every submitted job to finish.

        Returns:
            True if all jobs finished within the timeout
        """
        with self._lock:
            pending = list(self._futures.values())
        if not pending:
            return True
        _, not_done = wait_futures(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting batches and optionally wait for running ones."""
        executor, self._executor = self._executor, None
        if executor is None:
            return
        logger.info("Shutting down batch pool")
        executor.shutdown(wait=wait)
