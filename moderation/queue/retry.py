from dataclasses import dataclass

from moderation.config.settings import Settings
from moderation.exceptions import ExtractionFailed, UnsupportedFileType

# Errors whose class decides the retry budget on their own.
_CLASSIFYING_ERRORS = (UnsupportedFileType, ExtractionFailed)


def failure_cause(exc: BaseException) -> BaseException:
    """Walk the __cause__ chain to the first extraction error, if any.

    Adapters chain the parser or OS error under ExtractionFailed, so the
    deepest cause is not the one that classifies the failure.
    """
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        if isinstance(current, _CLASSIFYING_ERRORS):
            return current
        seen.add(id(current))
        current = current.__cause__
    return exc


@dataclass(frozen=True)
class RetryPolicy:
    """Decides whether a failed attempt is retried and after how long.

    - UnsupportedFileType: never retried.
    - ExtractionFailed: retried once when marked retryable, otherwise never.
    - Anything else (AnalysisFailed, JobTimeoutError, callback errors):
      retried until max_attempts attempts have been made.
    """

    max_attempts: int = 3
    backoff_seconds: float = 2.0
    backoff_max_seconds: float = 300.0
    extraction_max_attempts: int = 2

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.max_job_attempts,
            backoff_seconds=settings.retry_backoff_seconds,
            backoff_max_seconds=settings.retry_backoff_max_seconds,
        )

    def exhausted(self, attempt: int) -> bool:
        """True when `attempt` failures already used up the whole budget."""
        return attempt >= self.max_attempts

    def should_retry(self, exc: BaseException, attempt: int) -> bool:
        """attempt is the number of failures before this one."""
        attempts_made = attempt + 1
        cause = failure_cause(exc)
        if isinstance(cause, UnsupportedFileType):
            return False
        if isinstance(cause, ExtractionFailed):
            if not cause.retryable:
                return False
            return attempts_made < min(self.extraction_max_attempts, self.max_attempts)
        return attempts_made < self.max_attempts

    def backoff(self, attempt: int) -> float:
        """Exponential delay before the next attempt: base * 2^attempt, capped."""
        return min(self.backoff_seconds * (2**attempt), self.backoff_max_seconds)
