from abc import ABC, abstractmethod

from moderation.queue.models import ModerationJob, QueueStats


class BaseJobStore(ABC):
    """Contract for durable moderation job storage.

    Implementations must keep at most one active job per document and hand
    each claimed job to exactly one worker.
    """

    def init(self) -> None:
        """Prepare the backing store (create tables, etc.)."""

    def close(self) -> None:
        """Release resources held by the store."""

    @abstractmethod
    def enqueue(self, job: ModerationJob) -> bool:
        """Add a job. Returns False if the document already has an active job."""

    @abstractmethod
    def claim_next(self) -> ModerationJob | None:
        """Claim the next available job and mark it in_progress."""

    @abstractmethod
    def mark_completed(self, job: ModerationJob) -> None:
        """Mark a claimed job as completed."""

    @abstractmethod
    def schedule_retry(self, job: ModerationJob, error: str, delay_seconds: float) -> None:
        """Record a failed attempt and make the job available again after a delay."""

    @abstractmethod
    def mark_dead(self, job: ModerationJob, error: str) -> None:
        """Record the final failed attempt and move the job to the dead set."""

    @abstractmethod
    def cancel(self, document_id: str) -> bool:
        """Cancel a job that has not started yet. Returns True if one was removed."""

    @abstractmethod
    def stats(self) -> QueueStats:
        """Count jobs per status."""

    @abstractmethod
    def list_dead(self, limit: int = 100) -> list[ModerationJob]:
        """Most recent dead jobs, newest first."""
