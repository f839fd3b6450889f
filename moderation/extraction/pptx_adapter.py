import io

from pptx import Presentation

from moderation.exceptions import ExtractionFailed
from moderation.extraction.base import BaseTextExtractor


class PptxAdapter(BaseTextExtractor):
    """Extracts slide text (text frames and tables) from PPTX using python-pptx."""

    def extract(self, data: bytes) -> str:
        try:
            presentation = Presentation(io.BytesIO(data))
            parts: list[str] = []
            for slide in presentation.slides:
                for shape in slide.shapes:
                    if shape.has_table:
                        for row in shape.table.rows:
                            cells = [c.text.strip() for c in row.cells if c.text.strip()]
                            if cells:
                                parts.append(" ".join(cells))
                    elif shape.has_text_frame:
                        for paragraph in shape.text_frame.paragraphs:
                            text = "".join(run.text for run in paragraph.runs).strip()
                            if text:
                                parts.append(text)
            return "\n".join(parts).strip()
        except Exception as exc:
            raise ExtractionFailed(f"pptx extraction failed: {exc}") from exc
