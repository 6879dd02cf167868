"""Unit tests for run-state models."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from bookmend.models.datatypes import (
    ChangeReport,
    RiskTier,
    RunningContext,
    RunState,
    SegmentResult,
    StructuralHints,
)


def test_running_context_keeps_only_trailing_characters() -> None:
    """Advancing should keep the last `max_chars` characters of the new output."""

    context = RunningContext(max_chars=5).advance("abcdefgh")

    assert context.text == "defgh"
    assert context.advance("xy").text == "xy"


def test_running_context_with_zero_window_stays_empty() -> None:
    assert RunningContext(max_chars=0).advance("abc").text == ""


def test_structural_hints_from_lines_strips_and_deduplicates() -> None:
    """Blank and repeated lines should be dropped while keeping first order."""

    hints = StructuralHints.from_lines(["  Prolog ", "", "Kapitel 1", "Prolog", "   "])

    assert hints.titles == ("Prolog", "Kapitel 1")
    assert len(hints) == 2
    assert hints
    assert not StructuralHints()


def test_run_state_commit_appends_output_and_advances_context(
    run_state_factory: Callable[..., RunState],
) -> None:
    """Committing results should extend output and track failed segments."""

    state = run_state_factory(["Första. ", "Andra."], context_chars=4)

    state.commit(SegmentResult(0, "Första. ", "Första. ", 1))
    state.commit(SegmentResult(1, "Andra.", "Andra.", 5, failed=True, error="boom"))

    assert state.output_text == "Första. Andra."
    assert state.context.text == "dra."
    assert [result.index for result in state.failed_segments] == [1]


def test_change_report_percentage_and_analysis() -> None:
    report = ChangeReport(
        changed_character_ratio=0.3,
        inserted_chars=0,
        removed_chars=30,
        original_chars=100,
        risk_tier=RiskTier.HIGH_ALERT,
    )

    assert report.percentage == pytest.approx(30.0)
    assert report.analysis.startswith("HIGH ALERT")
