import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timedelta
from itertools import count

from moderation.queue.base import BaseJobStore
from moderation.queue.models import (
    ACTIVE_STATUSES,
    JobStatus,
    ModerationJob,
    QueueStats,
    utcnow,
)


class InMemoryJobStore(BaseJobStore):
    """Process-local job store for development and tests. Not durable."""

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._ids = count(1)
        self._active: dict[str, ModerationJob] = {}
        self._dead: list[ModerationJob] = []
        self._completed = 0
        self._cancelled = 0

    def enqueue(self, job: ModerationJob) -> bool:
        with self._lock:
            if job.document_id in self._active:
                return False
            now = self._clock()
            self._active[job.document_id] = replace(
                job,
                id=next(self._ids),
                status=JobStatus.QUEUED,
                enqueued_at=now,
                available_at=now,
            )
            return True

    def claim_next(self) -> ModerationJob | None:
        with self._lock:
            now = self._clock()
            candidates = [
                job
                for job in self._active.values()
                if job.status in (JobStatus.QUEUED, JobStatus.RETRY_WAIT)
                and job.available_at <= now
            ]
            if not candidates:
                return None
            job = min(candidates, key=lambda j: (j.available_at, j.enqueued_at, j.id or 0))
            job.status = JobStatus.IN_PROGRESS
            return replace(job)

    def mark_completed(self, job: ModerationJob) -> None:
        with self._lock:
            if self._pop_claimed(job) is not None:
                self._completed += 1

    def schedule_retry(self, job: ModerationJob, error: str, delay_seconds: float) -> None:
        with self._lock:
            current = self._active.get(job.document_id)
            if current is None or current.id != job.id:
                return
            current.attempt = job.attempt + 1
            current.status = JobStatus.RETRY_WAIT
            current.last_error = error
            current.available_at = self._clock() + timedelta(seconds=delay_seconds)

    def mark_dead(self, job: ModerationJob, error: str) -> None:
        with self._lock:
            current = self._pop_claimed(job)
            if current is None:
                return
            current.attempt = job.attempt + 1
            current.status = JobStatus.DEAD
            current.last_error = error
            self._dead.append(current)

    def cancel(self, document_id: str) -> bool:
        with self._lock:
            job = self._active.get(document_id)
            if job is None or job.status is JobStatus.IN_PROGRESS:
                return False
            del self._active[document_id]
            self._cancelled += 1
            return True

    def stats(self) -> QueueStats:
        with self._lock:
            by_status = {status: 0 for status in ACTIVE_STATUSES}
            for job in self._active.values():
                by_status[job.status] += 1
            return QueueStats(
                queued=by_status[JobStatus.QUEUED],
                in_progress=by_status[JobStatus.IN_PROGRESS],
                retry_wait=by_status[JobStatus.RETRY_WAIT],
                completed=self._completed,
                dead=len(self._dead),
                cancelled=self._cancelled,
            )

    def list_dead(self, limit: int = 100) -> list[ModerationJob]:
        with self._lock:
            return [replace(job) for job in reversed(self._dead[-limit:])]

    def _pop_claimed(self, job: ModerationJob) -> ModerationJob | None:
        current = self._active.get(job.document_id)
        if current is None or current.id != job.id:
            return None
        return self._active.pop(job.document_id)
