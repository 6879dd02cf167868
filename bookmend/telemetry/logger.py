"""Structured run logging utilities.

Responsibilities:
- Emit concise, deterministic phase-level runtime logs through `loguru`.
- Record per-segment retry, fallback, commit, and cancellation events.
"""

from __future__ import annotations

import sys
from typing import TextIO

from loguru import logger as _loguru_logger


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
    ]
    return " " + " ".join(tokens)


class RunLogger:
    """Emit deterministic phase logs for CLI-observable pipeline activity."""

    def __init__(self, sink: TextIO | None = None, level: str = "INFO") -> None:
        """Route loguru output to `sink` with a bare message format."""

        self._sink = sink or sys.stderr
        _loguru_logger.remove()
        _loguru_logger.add(self._sink, format="{message}", level=level, colorize=False)

    def _emit(self, level: str, event: str, stage: str, **context: object) -> None:
        """Emit one structured runtime log line."""

        line = f"[phase] level={level} stage={stage} event={event}{_format_context(context)}"
        _loguru_logger.log(level, line)

    def log_stage_start(self, stage: str) -> None:
        self._emit("INFO", "start", stage)

    def log_stage_complete(self, stage: str) -> None:
        self._emit("INFO", "complete", stage)

    def log_stage_failure(self, stage: str, error_type: str) -> None:
        """Emit a stage-failure runtime event without sensitive payload details."""

        self._emit("ERROR", "failure", stage, error_type=error_type)

    def log_segment_attempt_failure(
        self,
        *,
        segment_index: int,
        attempt: int,
        error_type: str,
        delay_seconds: float | None,
    ) -> None:
        """Emit one failed external-call attempt and the backoff that follows."""

        self._emit(
            "WARNING",
            "attempt_failed",
            "transform",
            segment=segment_index,
            attempt=attempt,
            error_type=error_type,
            retry_in=f"{delay_seconds:g}s" if delay_seconds is not None else "none",
        )

    def log_segment_fallback(self, *, segment_index: int, attempts: int, error_type: str) -> None:
        """Emit a fallback event for a segment kept untransformed."""

        self._emit(
            "WARNING",
            "fallback",
            "transform",
            segment=segment_index,
            attempts=attempts,
            error_type=error_type,
        )

    def log_segment_commit(self, *, segment_index: int, total_segments: int, attempts: int) -> None:
        self._emit(
            "INFO",
            "commit",
            "transform",
            segment=f"{segment_index + 1}/{total_segments}",
            attempts=attempts,
        )

    def log_run_cancelled(self, *, committed_segments: int, total_segments: int) -> None:
        """Emit a cancellation event with how far the run got."""

        self._emit(
            "WARNING",
            "cancelled",
            "transform",
            committed=f"{committed_segments}/{total_segments}",
        )
