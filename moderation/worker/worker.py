import threading

from moderation.logging.logger import Log
from moderation.queue.base import BaseJobStore
from moderation.queue.models import ModerationJob
from moderation.worker.job_runner import JobRunner


class Worker:
    """Poll loop: wait -> claim -> dispatch. One job at a time."""

    def __init__(
        self,
        job_store: BaseJobStore,
        job_runner: JobRunner,
        poll_interval_seconds: float,
    ) -> None:
        self._job_store = job_store
        self._job_runner = job_runner
        self._poll_interval_seconds = poll_interval_seconds

    def run(self, stop_event: threading.Event, max_jobs: int | None = None) -> None:
        """Poll until stop_event is set. The job in hand is always finished first.

        A job is only claimed once an analysis slot is reserved for it.
        If max_jobs is set, stop after processing that many jobs (for testing).
        """
        Log.info("Worker started, polling for jobs")
        jobs_done = 0
        while not stop_event.is_set():
            if max_jobs is not None and jobs_done >= max_jobs:
                break
            if not self._job_runner.try_reserve():
                Log.debug("All analysis slots busy, sleeping")
                stop_event.wait(self._poll_interval_seconds)
                continue
            job = self._try_claim_job()
            if job is None:
                self._job_runner.release_reservation()
                Log.debug("No jobs available, sleeping")
                stop_event.wait(self._poll_interval_seconds)
                continue
            self._dispatch(job)
            jobs_done += 1
        Log.info("Worker stopped")

    def _dispatch(self, job: ModerationJob) -> None:
        try:
            self._job_runner.run(job, reserved=True)
        except Exception as exc:
            # Store failure while recording the outcome; the job is reclaimed once stale.
            Log.exception(f"Could not record outcome for document {job.document_id}: {exc}")

    def _try_claim_job(self) -> ModerationJob | None:
        """Attempt to claim the next pending job. Gracefully handle store errors."""
        try:
            return self._job_store.claim_next()
        except Exception as exc:
            Log.warning(f"Job store error, will retry: {exc}")
            return None
