"""Domain exceptions for pipeline and CLI diagnostics."""

from __future__ import annotations


class PipelineStageError(RuntimeError):
    """Raised when a specific pipeline stage fails."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped pipeline error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint


class DocumentDecodeError(PipelineStageError):
    """Raised when the input file cannot be decoded with the requested encoding.

    Decode failures abort a run before any segment is transformed.
    """

    def __init__(self, *, detail: str, hint: str | None = None) -> None:
        """Initialize a read-stage decode error."""

        super().__init__(stage="read", detail=detail, hint=hint)


class SegmentationError(AssertionError):
    """Raised when produced segments do not partition their source text."""
