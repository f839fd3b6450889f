import threading
import time
from collections.abc import Mapping
from pathlib import PurePath

from moderation.analysis.analyzer import Analyzer, build_analyzer
from moderation.config.settings import Settings
from moderation.logging.logger import Log
from moderation.policy import DecisionThresholds
from moderation.queue.base import BaseJobStore
from moderation.queue.callbacks import ModerationCallbacks
from moderation.queue.factory import CallbacksFactory, JobStoreFactory
from moderation.queue.models import ModerationJob, QueueStats
from moderation.queue.retry import RetryPolicy
from moderation.worker.job_runner import JobRunner
from moderation.worker.worker import Worker


class ModerationQueue:
    """Job queue plus a bounded pool of worker threads.

    Lifecycle: init() starts the workers, enqueue()/cancel() may be called
    at any time before close(), close() drains in-flight jobs and releases
    the store.
    """

    def __init__(
        self,
        job_store: BaseJobStore,
        job_runner: JobRunner,
        callbacks: ModerationCallbacks,
        *,
        pool_size: int,
        poll_interval_seconds: float,
        drain_timeout_seconds: float,
    ) -> None:
        self._job_store = job_store
        self._job_runner = job_runner
        self._callbacks = callbacks
        self._pool_size = pool_size
        self._poll_interval_seconds = poll_interval_seconds
        self._drain_timeout_seconds = drain_timeout_seconds
        self._stop_event = threading.Event()
        self._threads: list[threading.Thread] = []
        self._lock = threading.Lock()
        self._closed = False

    @property
    def running(self) -> bool:
        return any(t.is_alive() for t in self._threads)

    def init(self) -> None:
        """Prepare the store and start the worker pool. Idempotent."""
        with self._lock:
            if self._closed:
                raise RuntimeError("Moderation queue is closed")
            if self._threads:
                return
            self._job_store.init()
            for index in range(self._pool_size):
                worker = Worker(self._job_store, self._job_runner, self._poll_interval_seconds)
                thread = threading.Thread(
                    target=worker.run,
                    args=(self._stop_event,),
                    name=f"moderation-worker-{index + 1}",
                    daemon=True,
                )
                thread.start()
                self._threads.append(thread)
        Log.info(f"Moderation queue initialized with {self._pool_size} workers")

    def enqueue(self, document_id: str, file_path: str, metadata: Mapping[str, object]) -> bool:
        """Queue a document for moderation. Returns False if it is already queued or running."""
        if self._closed:
            raise RuntimeError("Moderation queue is closed")
        file_type = str(metadata.get("file_type") or PurePath(file_path).suffix)
        job = ModerationJob(
            document_id=str(document_id),
            file_path=file_path,
            file_type=file_type.lower().lstrip("."),
            metadata=dict(metadata),
        )
        accepted = self._job_store.enqueue(job)
        if accepted:
            Log.info(f"Moderation job created for document {document_id}")
        else:
            Log.info(f"Document {document_id} already has an active moderation job, ignoring")
        return accepted

    def cancel(self, document_id: str) -> bool:
        """Remove a job that has not started yet (e.g. the document was deleted)."""
        cancelled = self._job_store.cancel(str(document_id))
        if cancelled:
            Log.info(f"Moderation job for document {document_id} cancelled")
        return cancelled

    def stats(self) -> QueueStats:
        return self._job_store.stats()

    def dead_jobs(self, limit: int = 100) -> list[ModerationJob]:
        return self._job_store.list_dead(limit)

    def close(self) -> None:
        """Stop claiming, wait for in-flight jobs up to the drain timeout, release resources."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._stop_event.set()

        deadline = time.monotonic() + self._drain_timeout_seconds
        for thread in self._threads:
            thread.join(timeout=max(0.0, deadline - time.monotonic()))
        still_running = [t.name for t in self._threads if t.is_alive()]
        if still_running:
            Log.warning(f"Drain timeout reached, abandoning in-flight jobs on: {still_running}")

        self._job_runner.shutdown(timeout=max(0.0, deadline - time.monotonic()))
        self._callbacks.close()
        self._job_store.close()
        Log.info("Moderation queue closed")


def build_queue(settings: Settings, analyzer: Analyzer | None = None) -> ModerationQueue:
    """Build a ModerationQueue with all configured dependencies."""
    job_store = JobStoreFactory.create(settings)
    callbacks = CallbacksFactory.create(settings)
    job_runner = JobRunner(
        analyzer=analyzer or build_analyzer(settings),
        job_store=job_store,
        callbacks=callbacks,
        thresholds=DecisionThresholds.from_settings(settings),
        retry_policy=RetryPolicy.from_settings(settings),
        timeout_seconds=settings.job_timeout_seconds,
        max_concurrency=settings.worker_pool_size,
    )
    return ModerationQueue(
        job_store,
        job_runner,
        callbacks,
        pool_size=settings.worker_pool_size,
        poll_interval_seconds=settings.job_poll_interval_seconds,
        drain_timeout_seconds=settings.drain_timeout_seconds,
    )
