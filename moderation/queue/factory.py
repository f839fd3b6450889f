from moderation.config.settings import Settings
from moderation.database.repositories.documents_repository import DocumentsRepository
from moderation.database.repositories.job_repository import JobRepository
from moderation.queue.base import BaseJobStore
from moderation.queue.callbacks import (
    DatabaseCallbacks,
    LoggingCallbacks,
    ModerationCallbacks,
    WebhookCallbacks,
)
from moderation.queue.memory_store import InMemoryJobStore


class JobStoreFactory:
    """Creates the configured job store."""

    BACKENDS = ("postgres", "memory")

    @classmethod
    def create(cls, settings: Settings) -> BaseJobStore:
        backend = settings.queue_backend.lower()
        if backend == "postgres":
            # A claim older than two job timeouts means the worker died mid-job.
            return JobRepository(stale_after_seconds=settings.job_timeout_seconds * 2)
        if backend == "memory":
            return InMemoryJobStore()
        raise ValueError(f"Unknown queue backend '{backend}'. Choose from: {list(cls.BACKENDS)}")


class CallbacksFactory:
    """Creates the configured decision sink."""

    SINKS = ("database", "webhook", "log")

    @classmethod
    def create(cls, settings: Settings) -> ModerationCallbacks:
        sink = settings.decision_sink.lower()
        if sink == "database":
            return DatabaseCallbacks(DocumentsRepository())
        if sink == "webhook":
            if not settings.webhook_url:
                raise ValueError("webhook_url is required for decision_sink=webhook")
            return WebhookCallbacks(
                url=settings.webhook_url,
                secret=settings.webhook_secret,
                timeout_seconds=settings.webhook_timeout_seconds,
            )
        if sink == "log":
            return LoggingCallbacks()
        raise ValueError(f"Unknown decision sink '{sink}'. Choose from: {list(cls.SINKS)}")
