"""Change-ratio measurement and risk classification.

Responsibilities:
- Quantify how much of the original text the restored output altered.
- Classify the ratio into a qualitative risk tier for manual review.
"""

from __future__ import annotations

from dataclasses import dataclass
from difflib import SequenceMatcher

from ..models.datatypes import ChangeReport, DiffKind, DiffRun, RiskTier
from .diff import diff_words

NEGLIGIBLE_THRESHOLD = 0.01
HEALTHY_THRESHOLD = 0.12
MODERATE_THRESHOLD = 0.25


@dataclass(frozen=True, slots=True)
class ChangeThresholds:
    """Upper ratio bounds (exclusive) of the three lower risk tiers."""

    negligible: float = NEGLIGIBLE_THRESHOLD
    healthy: float = HEALTHY_THRESHOLD
    moderate: float = MODERATE_THRESHOLD

    def __post_init__(self) -> None:
        if not 0.0 <= self.negligible <= self.healthy <= self.moderate:
            raise ValueError(
                "Risk thresholds must satisfy 0 <= negligible <= healthy <= moderate."
            )

    def classify(self, ratio: float) -> RiskTier:
        """Return the risk tier for a change ratio."""

        if ratio < self.negligible:
            return RiskTier.NEGLIGIBLE
        if ratio < self.healthy:
            return RiskTier.HEALTHY
        if ratio < self.moderate:
            return RiskTier.MODERATE
        return RiskTier.HIGH_ALERT


DEFAULT_THRESHOLDS = ChangeThresholds()


def classify(ratio: float, thresholds: ChangeThresholds = DEFAULT_THRESHOLDS) -> RiskTier:
    """Classify a change ratio with the given thresholds."""

    return thresholds.classify(ratio)


def verify(
    original: str,
    final: str,
    thresholds: ChangeThresholds = DEFAULT_THRESHOLDS,
) -> ChangeReport:
    """Compare the raw original with the final output and build a change report.

    The ratio is `(inserted + removed) / original length`. A removed run that
    is immediately replaced by an inserted run is charged only the characters
    that differ between the two, so a retyped word costs its typo and not the
    whole word twice. Pure insertions and removals are charged in full.
    """

    inserted, removed = _charge_runs(diff_words(original, final))
    original_chars = len(original)
    ratio = (inserted + removed) / original_chars if original_chars else 0.0
    return ChangeReport(
        changed_character_ratio=ratio,
        inserted_chars=inserted,
        removed_chars=removed,
        original_chars=original_chars,
        risk_tier=thresholds.classify(ratio),
    )


def _charge_runs(runs: list[DiffRun]) -> tuple[int, int]:
    """Return (inserted, removed) character charges for alignment runs."""

    inserted = 0
    removed = 0
    index = 0
    while index < len(runs):
        run = runs[index]
        following = runs[index + 1] if index + 1 < len(runs) else None
        if (
            run.kind is DiffKind.REMOVED
            and following is not None
            and following.kind is DiffKind.INSERTED
        ):
            pair_inserted, pair_removed = _character_delta(run.text, following.text)
            inserted += pair_inserted
            removed += pair_removed
            index += 2
            continue
        if run.kind is DiffKind.INSERTED:
            inserted += len(run.text)
        elif run.kind is DiffKind.REMOVED:
            removed += len(run.text)
        index += 1
    return inserted, removed


def _character_delta(before: str, after: str) -> tuple[int, int]:
    """Return (inserted, removed) characters turning `before` into `after`."""

    inserted = 0
    removed = 0
    matcher = SequenceMatcher(None, before, after, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag in {"delete", "replace"}:
            removed += i2 - i1
        if tag in {"insert", "replace"}:
            inserted += j2 - j1
    return inserted, removed
