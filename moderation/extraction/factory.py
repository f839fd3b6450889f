from typing import ClassVar

from moderation.config.settings import Settings
from moderation.extraction.base import BaseTextExtractor
from moderation.extraction.docx_adapter import DocxAdapter
from moderation.extraction.extractor import TextExtractor
from moderation.extraction.legacy_binary_adapter import LegacyBinaryAdapter
from moderation.extraction.pdfplumber_adapter import PdfPlumberAdapter
from moderation.extraction.plain_text_adapter import PlainTextAdapter
from moderation.extraction.pptx_adapter import PptxAdapter
from moderation.extraction.pymupdf_adapter import PyMuPdfAdapter
from moderation.extraction.xlsx_adapter import XlsxAdapter


class TextExtractorFactory:
    """Creates a TextExtractor with the correct adapter for every supported type."""

    PDF_ENGINES: ClassVar[dict[str, type[BaseTextExtractor]]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> TextExtractor:
        engine = settings.pdf_engine.lower()
        pdf_cls = cls.PDF_ENGINES.get(engine)
        if pdf_cls is None:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. Choose from: {list(cls.PDF_ENGINES)}"
            )
        plain_text = PlainTextAdapter()
        legacy = LegacyBinaryAdapter()
        return TextExtractor(
            {
                "pdf": pdf_cls(),
                "docx": DocxAdapter(),
                "pptx": PptxAdapter(),
                "xlsx": XlsxAdapter(),
                "doc": legacy,
                "ppt": legacy,
                "xls": legacy,
                "txt": plain_text,
                "md": plain_text,
                "csv": plain_text,
            }
        )
