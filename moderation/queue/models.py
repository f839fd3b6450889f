from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    RETRY_WAIT = "retry_wait"
    COMPLETED = "completed"
    DEAD = "dead"
    CANCELLED = "cancelled"


# A document may have at most one job in any of these states.
ACTIVE_STATUSES: tuple[JobStatus, ...] = (
    JobStatus.QUEUED,
    JobStatus.RETRY_WAIT,
    JobStatus.IN_PROGRESS,
)


@dataclass
class ModerationJob:
    """A request to moderate one document. attempt counts failed attempts so far."""

    document_id: str
    file_path: str
    file_type: str
    metadata: dict[str, object] = field(default_factory=dict)
    attempt: int = 0
    status: JobStatus = JobStatus.QUEUED
    enqueued_at: datetime = field(default_factory=utcnow)
    available_at: datetime = field(default_factory=utcnow)
    last_error: str | None = None
    id: int | None = None


@dataclass(frozen=True)
class QueueStats:
    queued: int = 0
    in_progress: int = 0
    retry_wait: int = 0
    completed: int = 0
    dead: int = 0
    cancelled: int = 0

    @property
    def total(self) -> int:
        """Jobs that still need a worker."""
        return self.queued + self.in_progress + self.retry_wait
