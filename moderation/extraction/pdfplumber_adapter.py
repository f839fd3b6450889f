import io

import pdfplumber

from moderation.exceptions import ExtractionFailed
from moderation.extraction.base import BaseTextExtractor


class PdfPlumberAdapter(BaseTextExtractor):
    """Extracts text from PDF using pdfplumber."""

    def extract(self, data: bytes) -> str:
        try:
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
            return "\n".join(pages).strip()
        except Exception as exc:
            raise ExtractionFailed(f"pdfplumber extraction failed: {exc}") from exc
