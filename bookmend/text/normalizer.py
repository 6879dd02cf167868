"""Text normalization stage.

Responsibilities:
- Apply deterministic, locale-aware cleanup before and after the external
  transformation step.
- Keep rule order fixed so later rules always see earlier results.
"""

from __future__ import annotations

from ..models.datatypes import NormalizationPhase
from .cleaners import (
    ApplyLexicalCorrections,
    CleanerRule,
    CollapseBlankLines,
    CollapseSpaces,
    CollapseStutter,
    DropPageNumberLines,
    NormalizeLineEndings,
    NormalizeQuotes,
    RepairDotFusion,
    StripScanArtifacts,
    TextCleaner,
)
from .locales import LocaleProfile, get_locale


class TextNormalizer:
    """Normalize text with the rule set of a locale and pipeline phase.

    The pre-pass only removes scan artifacts and fused dots so the external
    step sees text close to the source. The post-pass additionally repairs
    stutters, applies lexical corrections, normalizes quotes, and tidies
    page numbers and whitespace.
    """

    def __init__(self) -> None:
        self._cleaners: dict[tuple[str, NormalizationPhase], TextCleaner] = {}

    def normalize(
        self,
        text: str,
        locale: str,
        phase: NormalizationPhase | str = NormalizationPhase.POST,
    ) -> str:
        """Normalize text for the given locale and phase."""

        return self._cleaner_for(locale, NormalizationPhase(phase)).clean(text)

    def _cleaner_for(self, locale: str, phase: NormalizationPhase) -> TextCleaner:
        """Return a cached cleaner for a locale/phase pair."""

        profile = get_locale(locale)
        key = (profile.code, phase)
        cleaner = self._cleaners.get(key)
        if cleaner is None:
            cleaner = TextCleaner(self._rules(profile, phase))
            self._cleaners[key] = cleaner
        return cleaner

    @staticmethod
    def _rules(profile: LocaleProfile, phase: NormalizationPhase) -> list[CleanerRule]:
        """Build the ordered rule list for one locale and phase."""

        rules: list[CleanerRule] = [
            NormalizeLineEndings(),
            StripScanArtifacts(),
            RepairDotFusion(),
        ]
        if phase is NormalizationPhase.PRE:
            return rules
        return [
            *rules,
            CollapseStutter(),
            ApplyLexicalCorrections(profile),
            NormalizeQuotes(profile),
            DropPageNumberLines(),
            CollapseSpaces(),
            CollapseBlankLines(),
        ]


_DEFAULT_NORMALIZER = TextNormalizer()


def normalize(
    text: str,
    locale: str,
    phase: NormalizationPhase | str = NormalizationPhase.POST,
) -> str:
    """Normalize text with a shared module-level normalizer."""

    return _DEFAULT_NORMALIZER.normalize(text, locale, phase)
