import io

from docx import Document

from moderation.exceptions import ExtractionFailed
from moderation.extraction.base import BaseTextExtractor


class DocxAdapter(BaseTextExtractor):
    """Extracts paragraph and table text from DOCX using python-docx."""

    def extract(self, data: bytes) -> str:
        try:
            document = Document(io.BytesIO(data))
            parts = [p.text for p in document.paragraphs if p.text.strip()]
            for table in document.tables:
                for row in table.rows:
                    cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                    if cells:
                        parts.append(" ".join(cells))
            return "\n".join(parts).strip()
        except Exception as exc:
            raise ExtractionFailed(f"docx extraction failed: {exc}") from exc
