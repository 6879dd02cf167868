"""Artifact serialization helpers for the bookmend pipeline.

Responsibilities:
- Build deterministic JSON payloads persisted next to run outputs.
- Keep secrets out of persisted metadata.
"""

from __future__ import annotations

from dataclasses import asdict

from ..config import ProviderRuntimeConfig
from ..models.datatypes import ChangeReport, RunState, Segment


def segments_artifact_payload(segments: tuple[Segment, ...]) -> dict[str, object]:
    """Serialize segment boundaries without repeating their text."""

    return {
        "segments": [
            {
                "index": segment.index,
                "char_start": segment.char_start,
                "char_end": segment.char_end,
                "boundary_strategy": segment.boundary_strategy,
            }
            for segment in segments
        ],
        "metadata": {"segment_count": len(segments)},
    }


def change_report_payload(report: ChangeReport) -> dict[str, object]:
    """Serialize a change report with its derived percentage and analysis."""

    payload = asdict(report)
    payload["risk_tier"] = report.risk_tier.value
    payload["percentage"] = round(report.percentage, 4)
    payload["analysis"] = report.analysis
    return payload


def run_report_payload(
    state: RunState,
    runtime_config: ProviderRuntimeConfig,
) -> dict[str, object]:
    """Build the run report persisted as `report.json`."""

    config = state.config
    return {
        "run_id": state.run_id,
        "status": state.status.value,
        "input_path": str(config.input_path),
        "locale": state.document.locale,
        "encoding": state.document.encoding,
        **runtime_config.as_report_metadata(),
        "segment_size_chars": config.segment_size_chars,
        "segments_total": len(state.segments),
        "segments_committed": len(state.results),
        "failed_segments": [
            {"index": result.index, "attempts": result.attempts, "error": result.error}
            for result in state.failed_segments
        ],
        "structure_hints": list(state.hints.titles),
        "change_report": (
            change_report_payload(state.change_report)
            if state.change_report is not None
            else None
        ),
        "artifacts": {name: str(path) for name, path in sorted(state.artifacts.items())},
        "extra": dict(config.extra),
    }
