from abc import ABC, abstractmethod


class BaseTextExtractor(ABC):
    """Contract for all format-specific text extraction adapters."""

    @abstractmethod
    def extract(self, data: bytes) -> str:
        """Extract plain text from raw file content.

        Args:
            data: Raw file content.

        Returns:
            Extracted text as a single normalized string.

        Raises:
            ExtractionFailed: if the content cannot be parsed.
        """
