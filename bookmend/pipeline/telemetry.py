"""Stage telemetry for a bookmend run.

Responsibilities:
- Report 1-based stage position and total to a progress callback.
- Emit stage start/complete/failure lines through `RunLogger`.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from ..telemetry.logger import RunLogger

_StageResult = TypeVar("_StageResult")

STAGES = ("read", "detect", "normalize", "segment", "transform", "verify", "export")

StageProgressCallback = Callable[[str, int, int], None]


class StageTelemetry:
    """Progress and log hooks wrapped around each named pipeline stage."""

    def __init__(
        self,
        run_logger: RunLogger | None = None,
        progress_callback: StageProgressCallback | None = None,
    ) -> None:
        self.run_logger = run_logger
        self.progress_callback = progress_callback

    @staticmethod
    def position(stage_name: str) -> tuple[int, int] | None:
        """Return `(index, total)` for a known stage, else `None`."""

        if stage_name not in STAGES:
            return None
        return STAGES.index(stage_name) + 1, len(STAGES)

    @contextmanager
    def stage(self, stage_name: str) -> Iterator[None]:
        """Report a stage start, then its completion or failure.

        Failures are logged by exception type name only and re-raised.
        """

        position = self.position(stage_name)
        if position is not None and self.progress_callback is not None:
            self.progress_callback(stage_name, *position)
        if self.run_logger is not None:
            self.run_logger.log_stage_start(stage_name)
        try:
            yield
        except Exception as exc:
            if self.run_logger is not None:
                self.run_logger.log_stage_failure(stage_name, type(exc).__name__)
            raise
        if self.run_logger is not None:
            self.run_logger.log_stage_complete(stage_name)

    def run(self, stage_name: str, action: Callable[[], _StageResult]) -> _StageResult:
        """Run `action` as stage `stage_name` and return its result."""

        with self.stage(stage_name):
            return action()
