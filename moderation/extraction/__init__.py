from moderation.extraction.base import BaseTextExtractor
from moderation.extraction.extractor import TextExtractor
from moderation.extraction.factory import TextExtractorFactory

__all__ = ["BaseTextExtractor", "TextExtractor", "TextExtractorFactory"]
