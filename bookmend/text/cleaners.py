"""Deterministic text cleaning rules.

Responsibilities:
- Provide composable, idempotent cleanup rules for OCR-derived text artifacts.
- Keep every rule a pure function of its input text and locale profile.
"""

from __future__ import annotations

import re
from typing import Protocol

from .locales import LocaleProfile

_LETTER = r"[^\W\d_]"


class CleanerRule(Protocol):
    """Protocol for text cleaning rules."""

    def apply(self, text: str) -> str:
        """Apply a single cleaning transformation."""


class NormalizeLineEndings:
    """Convert Windows and classic Mac line endings to `\\n`."""

    def apply(self, text: str) -> str:
        return text.replace("\r\n", "\n").replace("\r", "\n")


class StripScanArtifacts:
    """Remove stray scan glyphs, soft hyphens, zero-width marks, and tabs."""

    _ARTIFACT_RE = re.compile("[\u2666\u00a6|\u00ad\u200b\u200c\u200d\u2060\ufeff\t]")

    def apply(self, text: str) -> str:
        """Delete every known non-textual artifact character."""

        return self._ARTIFACT_RE.sub("", text)


class RepairDotFusion:
    """Remove periods fused between two letters (`word.word`)."""

    _FUSED_DOT_RE = re.compile(rf"(?<={_LETTER})\.(?={_LETTER})")

    def apply(self, text: str) -> str:
        return self._FUSED_DOT_RE.sub("", text)


class CollapseStutter:
    """Collapse `word . continuation` stutter artifacts to the first word.

    The second token must be a case-insensitive continuation of the first:
    either the first ends with it, or it starts with the first word minus its
    final letter. Short tokens never collapse, so abbreviations such as
    `Dr. Smith` survive.
    """

    _MIN_FIRST_CHARS = 4
    _MIN_SECOND_CHARS = 3
    _STUTTER_RE = re.compile(
        rf"\b({_LETTER}+)[^\S\n]*\.[^\S\n]*(?=({_LETTER}+)\b)"
    )

    def apply(self, text: str) -> str:
        """Collapse stutters repeatedly until the text is stable."""

        previous = None
        current = text
        while current != previous:
            previous = current
            current = self._collapse_once(current)
        return current

    def _collapse_once(self, text: str) -> str:
        """Run one left-to-right collapse pass."""

        pieces: list[str] = []
        cursor = 0
        for match in self._STUTTER_RE.finditer(text):
            if match.start() < cursor:
                continue
            first, second = match.group(1), match.group(2)
            if not self._is_continuation(first, second):
                continue
            pieces.append(text[cursor : match.start()])
            pieces.append(first)
            cursor = match.end() + len(second)
        pieces.append(text[cursor:])
        return "".join(pieces)

    def _is_continuation(self, first: str, second: str) -> bool:
        """Return whether `second` repeats or continues `first`."""

        head = first.casefold()
        tail = second.casefold()
        if len(head) < self._MIN_FIRST_CHARS or len(tail) < self._MIN_SECOND_CHARS:
            return False
        if head.endswith(tail):
            return True
        return tail.startswith(head[:-1])


class ApplyLexicalCorrections:
    """Replace known garbled words with their locale-specific corrections."""

    def __init__(self, profile: LocaleProfile) -> None:
        """Compile whole-word, case-insensitive patterns for the locale table."""

        self._patterns = [
            (re.compile(rf"\b{re.escape(garbled)}\b", re.IGNORECASE), correction)
            for garbled, correction in profile.corrections.items()
        ]

    def apply(self, text: str) -> str:
        for pattern, correction in self._patterns:
            text = pattern.sub(
                lambda match, fixed=correction: _match_leading_case(match.group(0), fixed),
                text,
            )
        return text


def _match_leading_case(found: str, correction: str) -> str:
    """Carry a leading capital letter of `found` over to `correction`."""

    if found[:1].isupper():
        return correction[:1].upper() + correction[1:]
    return correction


class NormalizeQuotes:
    """Map straight quotes to the locale's directional glyphs from context.

    Direction is decided from the neighbouring characters only, so rerunning
    the rule on its own output changes nothing.
    """

    _OPENING_CONTEXT = r"(?:^|(?<=[\s(\[{—–-]))"

    def __init__(self, profile: LocaleProfile) -> None:
        """Bind quote glyphs for the locale."""

        quotes = profile.quotes
        self._rules = [
            (re.compile(r"(?<=[^\W_])'(?=[^\W_])"), quotes.apostrophe),
            (re.compile(rf'{self._OPENING_CONTEXT}"(?=\S)', re.MULTILINE), quotes.double_open),
            (re.compile(rf"{self._OPENING_CONTEXT}'(?=\S)", re.MULTILINE), quotes.single_open),
            (re.compile(r'(?<=\S)"'), quotes.double_close),
            (re.compile(r"(?<=\S)'"), quotes.single_close),
        ]

    def apply(self, text: str) -> str:
        for pattern, glyph in self._rules:
            text = pattern.sub(glyph, text)
        return text


class DropPageNumberLines:
    """Empty lines that only hold a page number, optionally dash-bounded."""

    _PAGE_NUMBER_RE = re.compile(r"^[ \t]*-?[ \t]*\d+[ \t]*-?[ \t]*$", re.MULTILINE)

    def apply(self, text: str) -> str:
        return self._PAGE_NUMBER_RE.sub("", text)


class CollapseSpaces:
    """Collapse repeated spaces and strip spaces that end a line."""

    def apply(self, text: str) -> str:
        text = re.sub(r" {2,}", " ", text)
        return re.sub(r"[ \t]+(?=\n)", "", text)


class CollapseBlankLines:
    """Reduce runs of blank lines to exactly one blank line."""

    def apply(self, text: str) -> str:
        return re.sub(r"\n{3,}", "\n\n", text)


class TextCleaner:
    """Apply a sequence of deterministic cleaner rules in order.

    A later rule can create input an earlier rule would have changed, such as
    a lexical correction that turns a near-stutter into an exact one. The
    whole sequence is therefore repeated until a pass leaves the text alone,
    which makes `clean(clean(text)) == clean(text)`.
    """

    def __init__(self, rules: list[CleanerRule]) -> None:
        """Initialize with an ordered rule sequence."""

        self.rules = list(rules)

    def clean(self, text: str) -> str:
        """Apply all configured rules in order until the text is stable."""

        previous = None
        current = text
        while current != previous:
            previous = current
            current = self._apply_once(current)
        return current

    def _apply_once(self, text: str) -> str:
        for rule in self.rules:
            text = rule.apply(text)
        return text
