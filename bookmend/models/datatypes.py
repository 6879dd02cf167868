"""Core datatypes shared across bookmend modules.

Responsibilities:
- Represent immutable records exchanged between pipeline stages.
- Hold the mutable per-run state owned by the transformation loop.

Key types:
- `Document`, `Segment`, `SegmentResult`, `StructuralHints`, `RunningContext`,
  `DiffRun`, `ChangeReport`, `ProgressEvent`, and `RunState`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from ..config import RunConfig


class NormalizationPhase(str, Enum):
    """Point in the pipeline at which deterministic normalization runs."""

    PRE = "pre"
    POST = "post"


class RiskTier(str, Enum):
    """Qualitative classification of how far the output drifted from the input."""

    NEGLIGIBLE = "negligible"
    HEALTHY = "healthy"
    MODERATE = "moderate"
    HIGH_ALERT = "high_alert"


class DiffKind(str, Enum):
    """Alignment run kind produced by the word-level diff."""

    UNCHANGED = "unchanged"
    INSERTED = "inserted"
    REMOVED = "removed"


class RunStatus(str, Enum):
    """Lifecycle status of one pipeline run."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class Document:
    """Raw input text of one run.

    Attributes:
        text: Full decoded input text.
        locale: Locale code used for normalization and prompts.
        encoding: Character encoding the text was decoded with.
        source_path: Optional path the text was read from.
    """

    text: str
    locale: str
    encoding: str = "utf-8"
    source_path: Path | None = None


@dataclass(frozen=True, slots=True)
class Segment:
    """A contiguous slice of the normalized document.

    Attributes:
        index: 0-based position in the segment sequence.
        text: Segment text content.
        char_start: Inclusive character offset in the normalized document.
        char_end: Exclusive character offset in the normalized document.
        boundary_strategy: Cut classification (`paragraph`, `sentence`, `line`,
            `forced`, or `document_end`).
    """

    index: int
    text: str
    char_start: int
    char_end: int
    boundary_strategy: str = "document_end"


@dataclass(frozen=True, slots=True)
class SegmentResult:
    """Committed transformation outcome for one segment."""

    index: int
    original_text: str
    transformed_text: str
    attempts: int
    failed: bool = False
    error: str | None = None


@dataclass(frozen=True, slots=True)
class StructuralHints:
    """Ordered set of distinct candidate heading strings for one run."""

    titles: tuple[str, ...] = ()

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> StructuralHints:
        """Build hints from raw lines, dropping blanks and later duplicates."""

        seen: set[str] = set()
        titles: list[str] = []
        for line in lines:
            title = line.strip()
            if not title or title in seen:
                continue
            seen.add(title)
            titles.append(title)
        return cls(titles=tuple(titles))

    def __bool__(self) -> bool:
        return bool(self.titles)

    def __len__(self) -> int:
        return len(self.titles)


@dataclass(frozen=True, slots=True)
class RunningContext:
    """Bounded trailing slice of the most recently processed output."""

    max_chars: int
    text: str = ""

    def advance(self, processed_text: str) -> RunningContext:
        """Return the context that follows committing `processed_text`."""

        if self.max_chars <= 0:
            return RunningContext(max_chars=self.max_chars)
        return RunningContext(max_chars=self.max_chars, text=processed_text[-self.max_chars :])


@dataclass(frozen=True, slots=True)
class DiffRun:
    """One run of the word-level alignment between original and final text."""

    kind: DiffKind
    text: str


_TIER_ANALYSIS = {
    RiskTier.NEGLIGIBLE: (
        "Very low change rate. The source text was already clean, or the "
        "transformation was too conservative."
    ),
    RiskTier.HEALTHY: (
        "Healthy optimization range. Normal for OCR cleaning (hyphens, line "
        "breaks, and headers fixed)."
    ),
    RiskTier.MODERATE: (
        "Moderate restructuring. Many broken paragraphs were likely merged or "
        "formatting was fixed extensively. Verify headers manually."
    ),
    RiskTier.HIGH_ALERT: (
        "HIGH ALERT: Massive text alteration detected. The output may be "
        "hallucinated, summarized, or truncated. Review the diff carefully."
    ),
}


@dataclass(frozen=True, slots=True)
class ChangeReport:
    """Quantified divergence between original and final text.

    Attributes:
        changed_character_ratio: `(inserted + removed) / original_chars`.
        inserted_chars: Characters charged as inserted.
        removed_chars: Characters charged as removed.
        original_chars: Unchanged plus removed characters (the original length).
        risk_tier: Threshold classification of the ratio.
    """

    changed_character_ratio: float
    inserted_chars: int
    removed_chars: int
    original_chars: int
    risk_tier: RiskTier

    @property
    def percentage(self) -> float:
        """Return the change ratio expressed in percent."""

        return self.changed_character_ratio * 100.0

    @property
    def analysis(self) -> str:
        """Return a human-readable interpretation of the risk tier."""

        return _TIER_ANALYSIS[self.risk_tier]


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """Progress notification emitted by the transformation loop.

    Attributes:
        kind: `segment_started`, `segment_committed`, `run_cancelled`,
            or `run_completed`.
        segment_index: 0-based segment index, or `None` for run-level events.
        total_segments: Number of segments planned for the run.
        attempts: External-call attempts spent on the segment.
        failed: Whether the segment fell back to its untransformed text.
        text_delta: Text appended to the running output by this event.
    """

    kind: str
    segment_index: int | None
    total_segments: int
    attempts: int = 0
    failed: bool = False
    text_delta: str = ""


@dataclass(slots=True)
class RunState:
    """Mutable state of one pipeline run, owned by the transformation loop."""

    run_id: str
    config: RunConfig
    document: Document
    hints: StructuralHints = field(default_factory=StructuralHints)
    segments: tuple[Segment, ...] = ()
    results: list[SegmentResult] = field(default_factory=list)
    output_parts: list[str] = field(default_factory=list)
    context: RunningContext = field(default_factory=lambda: RunningContext(max_chars=500))
    status: RunStatus = RunStatus.PENDING
    change_report: ChangeReport | None = None
    artifacts: dict[str, Path] = field(default_factory=dict)

    @property
    def output_text(self) -> str:
        """Return the concatenation of all committed segment outputs."""

        return "".join(self.output_parts)

    @property
    def failed_segments(self) -> list[SegmentResult]:
        """Return committed results that fell back to untransformed text."""

        return [result for result in self.results if result.failed]

    def commit(self, result: SegmentResult) -> None:
        """Append one segment result and advance the running context."""

        self.results.append(result)
        self.output_parts.append(result.transformed_text)
        self.context = self.context.advance(result.transformed_text)
