"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
segment progress, change reports, and artifact listings.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from .errors import PipelineStageError
from .models.datatypes import ChangeReport, ProgressEvent, RiskTier, RunState

_TIER_COLORS = {
    RiskTier.NEGLIGIBLE: typer.colors.GREEN,
    RiskTier.HEALTHY: typer.colors.GREEN,
    RiskTier.MODERATE: typer.colors.YELLOW,
    RiskTier.HIGH_ALERT: typer.colors.RED,
}


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, PipelineStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_segment_event(event: ProgressEvent) -> None:
    """Print one line per committed segment and run-level event."""

    if event.kind == "segment_committed" and event.segment_index is not None:
        outcome = "fallback" if event.failed else "ok"
        typer.echo(
            f"[segment] {event.segment_index + 1}/{event.total_segments} "
            f"attempts={event.attempts} result={outcome}"
        )
    elif event.kind == "run_cancelled":
        typer.secho(
            "Cancellation requested; stopped at a segment boundary.",
            fg=typer.colors.YELLOW,
        )


def echo_change_report(report: ChangeReport) -> None:
    """Print change ratio, character counts, and the tier analysis."""

    color = _TIER_COLORS[report.risk_tier]
    typer.secho(
        f"Change ratio: {report.percentage:.2f}% ({report.risk_tier.value})",
        fg=color,
    )
    typer.echo(f"Inserted chars: {report.inserted_chars}")
    typer.echo(f"Removed chars: {report.removed_chars}")
    typer.secho(f"Analysis: {report.analysis}", fg=color)


def echo_run_summary(state: RunState) -> None:
    """Print run status, failed segments, and artifact paths."""

    typer.echo(f"Run id: {state.run_id}")
    typer.echo(f"Status: {state.status.value}")
    typer.echo(f"Segments committed: {len(state.results)}/{len(state.segments)}")
    failed = state.failed_segments
    if failed:
        indices = ", ".join(str(result.index + 1) for result in failed)
        typer.secho(
            f"Segments kept untransformed after retries: {indices}",
            fg=typer.colors.YELLOW,
        )
    if state.change_report is not None:
        echo_change_report(state.change_report)
    for name, path in sorted(state.artifacts.items()):
        typer.echo(f"Artifact {name}: {path}")
