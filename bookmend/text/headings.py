"""Chapter heading detection and structure-list cleanup.

Responsibilities:
- Collect candidate heading lines that guide the transformation prompt.
- Tidy pasted tables of contents into one title per line.
"""

from __future__ import annotations

import re

from ..models.datatypes import StructuralHints
from .locales import get_locale


class HeadingDetector:
    """Detect likely chapter headings by keyword pattern or all-caps shape."""

    _MAX_HEADING_CHARS = 80
    _MIN_CAPS_CHARS = 3

    def detect(self, text: str, locale: str) -> StructuralHints:
        """Return distinct heading candidates in document order.

        A line qualifies when it matches the locale heading pattern, or when it
        is at least three characters long, fully upper case, contains a letter,
        and does not end with a period. Lines longer than 80 characters never
        qualify.
        """

        pattern = get_locale(locale).heading_pattern
        candidates: list[str] = []
        for line in text.split("\n"):
            title = line.strip()
            if not title or len(title) > self._MAX_HEADING_CHARS:
                continue
            if pattern.match(title) or self._is_caps_heading(title):
                candidates.append(title)
        return StructuralHints.from_lines(candidates)

    def _is_caps_heading(self, title: str) -> bool:
        return (
            len(title) >= self._MIN_CAPS_CHARS
            and title == title.upper()
            and any(char.isalpha() for char in title)
            and not title.endswith(".")
        )


_LEADING_BULLET_RE = re.compile(r"^[-•*]\s*")
_OCR_OCH_RE = re.compile(r"\b01ch\b", re.IGNORECASE)
_TRAILING_PAGE_RE = re.compile(r"(?:\.{2,}|…|\s{2,})\d+$")


def clean_structure_list(text: str) -> str:
    """Clean a pasted table of contents into one title per line.

    Strips leading bullets, repairs the `01ch` OCR misread of `och`, drops
    trailing page numbers set off by leader dots, an ellipsis, or wide
    spacing, and removes empty lines.
    """

    cleaned: list[str] = []
    for line in text.split("\n"):
        title = line.strip()
        if not title:
            continue
        title = _LEADING_BULLET_RE.sub("", title)
        title = _OCR_OCH_RE.sub("och", title)
        title = _TRAILING_PAGE_RE.sub("", title)
        if title:
            cleaned.append(title)
    return "\n".join(cleaned)
