class ModerationError(Exception):
    """Base exception for all moderation pipeline errors."""


class UnsupportedFileType(ModerationError):
    """Raised when a document's declared file type has no extractor."""

    def __init__(self, file_type: str) -> None:
        super().__init__(f"Unsupported file type '{file_type}'")
        self.file_type = file_type


class ExtractionFailed(ModerationError):
    """Raised when text cannot be extracted from a document.

    ``retryable`` is True for I/O failures that may succeed on a later
    attempt (missing mount, permission flap) and False for corrupt or
    undecodable files. The underlying error is chained as ``__cause__``.
    """

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class AnalysisFailed(ModerationError):
    """Raised when the analyzer cannot produce a result for a document."""


class JobTimeoutError(ModerationError):
    """Raised when a job exceeds its maximum processing duration."""


class CallbackError(ModerationError):
    """Raised when a decision sink cannot accept a result."""


class ToxicityError(Exception):
    """Raised by toxicity classifiers. Never escapes the scorer."""


class ModelLoadError(ToxicityError):
    """Raised when the toxicity classifier cannot be loaded."""
