"""Deterministic rule checks that run before the toxicity model.

Every check writes its own flag key on every call, so downstream fusion and
audit logging can rely on a fixed flag set. Checks are pure functions of
(excerpt, metadata); the filter holds no mutable state after construction.
"""

import re
import unicodedata
from collections.abc import Iterable, Mapping
from typing import ClassVar

from moderation.rules.models import FlagValue, RuleCheckResult

MIN_TEXT_CHARS = 10

DEFAULT_BLOCKLIST: tuple[str, ...] = (
    "buy cheap essays",
    "cheap essays",
    "essay writing service",
    "pay someone to write my",
    "exam answers for sale",
    "leaked exam answers",
    "online casino",
    "free bitcoin",
    "crypto giveaway",
    "viagra",
    "porn",
    "xxx",
    "escort service",
)

DEFAULT_PROFANITY: tuple[str, ...] = (
    "fuck",
    "fucking",
    "shit",
    "bitch",
    "asshole",
    "bastard",
    "cunt",
    "motherfucker",
)


def _normalize(text: str) -> str:
    normalized = unicodedata.normalize("NFKC", text).lower()
    return re.sub(r"\s+", " ", normalized).strip()


def _compile_terms(terms: Iterable[str]) -> re.Pattern[str] | None:
    cleaned = sorted({_normalize(t) for t in terms if t.strip()}, key=len, reverse=True)
    if not cleaned:
        return None
    alternation = "|".join(re.escape(t) for t in cleaned)
    return re.compile(rf"(?<!\w)(?:{alternation})(?!\w)")


class RuleBasedFilter:
    """Fast blocklist, metadata and structure checks over a text excerpt."""

    PENALTIES: ClassVar[dict[str, float]] = {
        "file_type_mismatch": 0.3,
        "insufficient_text": 0.4,
        "profanity": 0.3,
        "excessive_links": 0.2,
        "excessive_caps": 0.1,
        "repetitive_content": 0.2,
        "contact_spam": 0.1,
    }

    MAX_LINKS: ClassVar[int] = 5
    CAPS_MIN_LETTERS: ClassVar[int] = 50
    CAPS_RATIO: ClassVar[float] = 0.7
    REPETITION_MIN_WORDS: ClassVar[int] = 20
    REPETITION_UNIQUE_RATIO: ClassVar[float] = 0.3
    MAX_CONTACTS: ClassVar[int] = 2

    _URL_RE: ClassVar[re.Pattern[str]] = re.compile(r"(?:https?://|www\.)\S+")
    _EMAIL_RE: ClassVar[re.Pattern[str]] = re.compile(r"[\w.\-+]+@[\w.\-]+\.\w{2,}")
    _PHONE_RE: ClassVar[re.Pattern[str]] = re.compile(r"(?<!\w)\+?\d[\d\s\-().]{7,16}\d(?!\w)")
    _WORD_RE: ClassVar[re.Pattern[str]] = re.compile(r"\w+")

    def __init__(
        self,
        supported_types: Iterable[str],
        blocklist: Iterable[str] = DEFAULT_BLOCKLIST,
        profanity: Iterable[str] = DEFAULT_PROFANITY,
    ) -> None:
        self._supported_types = frozenset(t.lower().lstrip(".") for t in supported_types)
        self._blocklist_re = _compile_terms(blocklist)
        self._profanity_re = _compile_terms(profanity)

    def evaluate(self, excerpt: str, metadata: Mapping[str, object]) -> RuleCheckResult:
        """Run every check and combine the penalties into a safety score."""
        text = _normalize(excerpt)
        metadata_text = _normalize(
            " ".join(str(metadata.get(k) or "") for k in ("title", "description", "subject"))
        )
        haystack = f"{text} {metadata_text}".strip()

        blocklist_hits = self._count(self._blocklist_re, haystack)
        flags: dict[str, FlagValue] = {
            "blocklisted_terms": blocklist_hits > 0,
            "blocklist_hits": float(blocklist_hits),
            "file_type_mismatch": self._file_type_mismatch(metadata),
            "insufficient_text": len(excerpt.strip()) < MIN_TEXT_CHARS,
            "profanity": self._count(self._profanity_re, haystack) > 0,
            "excessive_links": len(self._URL_RE.findall(excerpt)) > self.MAX_LINKS,
            "excessive_caps": self._excessive_caps(excerpt),
            "repetitive_content": self._repetitive(text),
            "contact_spam": self._contact_spam(excerpt),
        }

        penalty = sum(p for name, p in self.PENALTIES.items() if flags[name])
        score = max(0.0, min(1.0, 1.0 - penalty))
        return RuleCheckResult(
            score=round(score, 6),
            flags=flags,
            should_reject=blocklist_hits > 0,
        )

    @staticmethod
    def _count(pattern: re.Pattern[str] | None, text: str) -> int:
        if pattern is None or not text:
            return 0
        return len(pattern.findall(text))

    def _file_type_mismatch(self, metadata: Mapping[str, object]) -> bool:
        declared = str(metadata.get("file_type") or "").lower().lstrip(".")
        if declared not in self._supported_types:
            return True
        file_name = str(metadata.get("file_name") or "")
        if "." not in file_name:
            return False
        extension = file_name.rsplit(".", 1)[1].lower()
        return extension != declared

    def _excessive_caps(self, excerpt: str) -> bool:
        letters = [c for c in excerpt if c.isalpha()]
        if len(letters) < self.CAPS_MIN_LETTERS:
            return False
        upper = sum(1 for c in letters if c.isupper())
        return upper / len(letters) > self.CAPS_RATIO

    def _repetitive(self, text: str) -> bool:
        words = self._WORD_RE.findall(text)
        if len(words) < self.REPETITION_MIN_WORDS:
            return False
        return len(set(words)) / len(words) < self.REPETITION_UNIQUE_RATIO

    def _contact_spam(self, excerpt: str) -> bool:
        contacts = len(self._EMAIL_RE.findall(excerpt)) + len(self._PHONE_RE.findall(excerpt))
        return contacts > self.MAX_CONTACTS
