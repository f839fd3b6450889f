import threading
import time

from moderation.analysis.analyzer import Analyzer
from moderation.analysis.models import AnalysisResult
from moderation.exceptions import JobTimeoutError
from moderation.logging.logger import Log
from moderation.policy import DecisionThresholds
from moderation.queue.base import BaseJobStore
from moderation.queue.callbacks import ModerationCallbacks
from moderation.queue.models import ModerationJob
from moderation.queue.retry import RetryPolicy


class JobRunner:
    """Run one job, catch exceptions, and apply retry logic.

    Each analysis runs on its own thread and holds one of max_concurrency
    analysis slots until it returns, even after its job timed out. Workers
    reserve a slot before claiming, so a job is never claimed (and charged
    an attempt) while a hung analysis occupies every slot.
    """

    def __init__(
        self,
        analyzer: Analyzer,
        job_store: BaseJobStore,
        callbacks: ModerationCallbacks,
        thresholds: DecisionThresholds,
        retry_policy: RetryPolicy,
        timeout_seconds: float,
        max_concurrency: int = 1,
    ) -> None:
        self._analyzer = analyzer
        self._job_store = job_store
        self._callbacks = callbacks
        self._thresholds = thresholds
        self._retry_policy = retry_policy
        self._timeout_seconds = timeout_seconds
        self._slots = threading.BoundedSemaphore(max_concurrency)
        self._threads_lock = threading.Lock()
        self._analysis_threads: set[threading.Thread] = set()

    def try_reserve(self) -> bool:
        """Take an analysis slot if one is free. Pass reserved=True to run() to use it."""
        return self._slots.acquire(blocking=False)

    def release_reservation(self) -> None:
        """Give back a slot reserved with try_reserve() that no job used."""
        self._slots.release()

    def run(self, job: ModerationJob, reserved: bool = False) -> None:
        """Execute a single job with error handling."""
        if not reserved:
            self._slots.acquire()
        if self._retry_policy.exhausted(job.attempt):
            # Budget spent by a lost worker or by a review flag that failed to write.
            self._slots.release()
            self._give_up(job, job.last_error or "Retry budget exhausted")
            return

        Log.info(f"Running moderation job for document {job.document_id} (attempt {job.attempt + 1})")
        try:
            result = self._analyze(job)
            decision = self._thresholds.decide(result.score)
            self._callbacks.on_decision(job.document_id, decision, result)
            self._job_store.mark_completed(job)
            Log.info(
                f"Document {job.document_id} moderated: {decision.value} "
                f"(score={result.score:.3f}, model={result.model_version})"
            )
        except Exception as exc:
            self._handle_failure(job, exc)

    def shutdown(self, timeout: float = 0.0) -> None:
        """Wait up to timeout for analyses still running, then abandon the rest."""
        deadline = time.monotonic() + timeout
        with self._threads_lock:
            threads = list(self._analysis_threads)
        for thread in threads:
            thread.join(timeout=max(0.0, deadline - time.monotonic()))
        abandoned = [t.name for t in threads if t.is_alive()]
        if abandoned:
            Log.warning(f"Abandoning analyses still running: {abandoned}")

    def _analyze(self, job: ModerationJob) -> AnalysisResult:
        """Run the analyzer on a fresh thread that owns the held slot.

        The timeout starts once that thread is running. A timed-out analysis
        keeps running in the background; its result is discarded.
        """
        metadata = {**job.metadata, "file_type": job.file_type}
        outcome: list[AnalysisResult | Exception] = []

        def target() -> None:
            try:
                outcome.append(self._analyzer.analyze(job.file_path, metadata))
            except Exception as exc:
                outcome.append(exc)
            finally:
                with self._threads_lock:
                    self._analysis_threads.discard(threading.current_thread())
                self._slots.release()

        thread = threading.Thread(
            target=target,
            name=f"moderation-analysis-{job.document_id}",
            daemon=True,
        )
        with self._threads_lock:
            self._analysis_threads.add(thread)
        try:
            thread.start()
        except RuntimeError:
            with self._threads_lock:
                self._analysis_threads.discard(thread)
            self._slots.release()
            raise

        thread.join(timeout=self._timeout_seconds)
        if thread.is_alive() or not outcome:
            raise JobTimeoutError(
                f"Job for document {job.document_id} exceeded {self._timeout_seconds}s"
            )
        result = outcome[0]
        if isinstance(result, Exception):
            raise result
        return result

    def _handle_failure(self, job: ModerationJob, exc: Exception) -> None:
        """Schedule a retry with backoff, or move the job to the dead set."""
        Log.error(f"Job for document {job.document_id} failed: {exc}")
        if self._retry_policy.should_retry(exc, job.attempt):
            delay = self._retry_policy.backoff(job.attempt)
            self._job_store.schedule_retry(job, str(exc), delay)
            Log.warning(
                f"Job for document {job.document_id} will be retried in {delay:.1f}s "
                f"(attempt {job.attempt + 2})"
            )
            return
        self._give_up(job, str(exc))

    def _give_up(self, job: ModerationJob, error: str) -> None:
        """Flag the document for manual review, then move the job to the dead set.

        If the review flag cannot be written the job stays in the queue and the
        flag is attempted again after a backoff.
        """
        try:
            self._callbacks.on_dead(job.document_id, error)
        except Exception as callback_exc:
            delay = self._retry_policy.backoff(job.attempt)
            Log.exception(
                f"Could not flag document {job.document_id} for manual review, "
                f"trying again in {delay:.1f}s: {callback_exc}"
            )
            self._job_store.schedule_retry(job, error, delay)
            return

        self._job_store.mark_dead(job, error)
        Log.error(
            f"Job for document {job.document_id} permanently failed after "
            f"{job.attempt + 1} attempts, sent to manual review"
        )
