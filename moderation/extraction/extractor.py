from pathlib import Path

from moderation.exceptions import ExtractionFailed, UnsupportedFileType
from moderation.extraction.base import BaseTextExtractor
from moderation.logging.logger import Log


def normalize_file_type(file_type: str) -> str:
    """Normalize a declared file type: '.PDF' -> 'pdf'."""
    return file_type.strip().lower().lstrip(".")


class TextExtractor:
    """Reads a document from disk and dispatches to the adapter for its file type."""

    def __init__(self, adapters: dict[str, BaseTextExtractor]) -> None:
        self._adapters = {normalize_file_type(k): v for k, v in adapters.items()}

    @property
    def supported_types(self) -> frozenset[str]:
        return frozenset(self._adapters)

    def supports(self, file_type: str) -> bool:
        return normalize_file_type(file_type) in self._adapters

    def extract(self, file_path: str | Path, file_type: str) -> str:
        """Return the full extracted text of the document.

        Raises:
            UnsupportedFileType: if no adapter is registered for file_type.
            ExtractionFailed: retryable for read errors, permanent for parse errors.
        """
        normalized = normalize_file_type(file_type)
        adapter = self._adapters.get(normalized)
        if adapter is None:
            raise UnsupportedFileType(file_type)

        data = self._read(Path(file_path))
        text = adapter.extract(data)
        Log.debug(f"Extracted {len(text)} chars from {file_path} ({normalized})")
        return text

    @staticmethod
    def _read(path: Path) -> bytes:
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise ExtractionFailed(f"File not found: {path}", retryable=True) from exc
        except OSError as exc:
            raise ExtractionFailed(f"Cannot read {path}: {exc}", retryable=True) from exc
