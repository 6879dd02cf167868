"""Shared typed data models for bookmend.

This package contains dataclasses used across pipeline modules to avoid
cross-module coupling and circular imports.
"""

from .datatypes import (
    ChangeReport,
    DiffKind,
    DiffRun,
    Document,
    NormalizationPhase,
    ProgressEvent,
    RiskTier,
    RunningContext,
    RunState,
    RunStatus,
    Segment,
    SegmentResult,
    StructuralHints,
)

__all__ = [
    "ChangeReport",
    "DiffKind",
    "DiffRun",
    "Document",
    "NormalizationPhase",
    "ProgressEvent",
    "RiskTier",
    "RunningContext",
    "RunState",
    "RunStatus",
    "Segment",
    "SegmentResult",
    "StructuralHints",
]
