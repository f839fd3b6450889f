from moderation.exceptions import ExtractionFailed
from moderation.extraction.base import BaseTextExtractor


class PlainTextAdapter(BaseTextExtractor):
    """Decodes plain text files, trying UTF-8 (with BOM) before legacy encodings."""

    ENCODINGS: tuple[str, ...] = ("utf-8-sig", "cp1252")

    def extract(self, data: bytes) -> str:
        for encoding in self.ENCODINGS:
            try:
                text = data.decode(encoding)
            except UnicodeDecodeError:
                continue
            return text.replace("\r\n", "\n").replace("\r", "\n").strip()
        raise ExtractionFailed(f"Could not decode text with any of {list(self.ENCODINGS)}")
