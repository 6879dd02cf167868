"""Locale profiles used by normalization, heading detection, and prompts.

Responsibilities:
- Keep the closed set of supported locales in one registry.
- Hold product-tuned lexical correction tables as data, not code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Mapping


@dataclass(frozen=True, slots=True)
class QuoteGlyphs:
    """Directional quote glyphs used by a locale."""

    double_open: str
    double_close: str
    single_open: str
    single_close: str
    apostrophe: str = "’"


@dataclass(frozen=True, slots=True)
class LocaleProfile:
    """Locale-specific normalization and structure-detection data.

    Attributes:
        code: Short locale code (`sv`, `en`).
        display_name: Human-readable language name.
        quotes: Directional quote glyphs.
        corrections: Known garbled word or phrase mapped to its correction.
        heading_pattern: Line pattern for keyword/number chapter headings.
    """

    code: str
    display_name: str
    quotes: QuoteGlyphs
    heading_pattern: re.Pattern[str]
    corrections: Mapping[str, str] = field(default_factory=dict)


_SWEDISH = LocaleProfile(
    code="sv",
    display_name="Swedish",
    quotes=QuoteGlyphs(
        double_open="”",
        double_close="”",
        single_open="’",
        single_close="’",
    ),
    heading_pattern=re.compile(r"^(?:kapitel|del|avdelning|bok)\s+\d+.*$", re.IGNORECASE),
    corrections={
        "evalverade": "evolverade",
        "tillhande": "tillhörande",
        "skenankar": "skentankar",
        "ertagen": "övertagen",
        "varseblivningsrören": "varseblivningsmönstren",
        "skån": "mån",
        "gungande beställningen": "gungande böneställningen",
        "lyssnartill": "lyssnar till",
        "förser ge": "försöker ge",
    },
)

_ENGLISH = LocaleProfile(
    code="en",
    display_name="English",
    quotes=QuoteGlyphs(
        double_open="“",
        double_close="”",
        single_open="‘",
        single_close="’",
    ),
    heading_pattern=re.compile(r"^(?i:chapter|part|section|book)\s+\d+.*$|^\d+\.\s+[A-Z].*$"),
)

LOCALES: Mapping[str, LocaleProfile] = {
    profile.code: profile for profile in (_SWEDISH, _ENGLISH)
}
SUPPORTED_LOCALES = frozenset(LOCALES)


def get_locale(code: str) -> LocaleProfile:
    """Return the profile for a locale code or raise for unsupported codes."""

    normalized = code.strip().lower()
    profile = LOCALES.get(normalized)
    if profile is None:
        supported = ", ".join(sorted(SUPPORTED_LOCALES))
        raise ValueError(f"Unsupported locale `{code}`; supported: {supported}.")
    return profile
