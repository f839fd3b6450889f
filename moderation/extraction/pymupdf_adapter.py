import pymupdf

from moderation.exceptions import ExtractionFailed
from moderation.extraction.base import BaseTextExtractor


class PyMuPdfAdapter(BaseTextExtractor):
    """Extracts text from PDF using PyMuPDF."""

    def extract(self, data: bytes) -> str:
        try:
            with pymupdf.open(stream=data, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                pages = [page.get_text() for page in doc]
            return "\n".join(pages).strip()
        except Exception as exc:
            raise ExtractionFailed(f"pymupdf extraction failed: {exc}") from exc
