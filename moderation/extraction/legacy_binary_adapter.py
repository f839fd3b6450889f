import re
from typing import ClassVar

from moderation.extraction.base import BaseTextExtractor


class LegacyBinaryAdapter(BaseTextExtractor):
    """Best-effort text recovery for legacy Office binaries (doc, ppt, xls).

    There is no parser for the OLE2 formats in the dependency set, so runs of
    printable characters are collected in both single-byte and UTF-16LE
    encodings, which is where Word/PowerPoint store body text.
    """

    MIN_RUN: ClassVar[int] = 4

    _ASCII_RUN_RE: ClassVar[re.Pattern[bytes]] = re.compile(rb"[\x20-\x7e]{4,}")
    _UTF16_RUN_RE: ClassVar[re.Pattern[bytes]] = re.compile(rb"(?:[\x20-\x7e]\x00){4,}")

    def extract(self, data: bytes) -> str:
        runs = [m.group().decode("utf-16-le") for m in self._UTF16_RUN_RE.finditer(data)]
        if not runs:
            runs = [m.group().decode("ascii") for m in self._ASCII_RUN_RE.finditer(data)]
        words = [run.strip() for run in runs if len(run.strip()) >= self.MIN_RUN]
        return "\n".join(words).strip()
