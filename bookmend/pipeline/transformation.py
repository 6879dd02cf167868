"""Sequential segment transformation with retry, fallback, and context carryover.

Responsibilities:
- Send each segment to the external transformer under the retry policy.
- Post-normalize successful output, or keep the segment text on exhaustion.
- Commit results strictly in order and carry trailing context forward.
- Stop cleanly at a segment boundary when cancellation is requested.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator

from ..llm.prompts import PromptLibrary
from ..llm.retry import RetryExhaustedError, RetryPolicy
from ..llm.transformer import TextTransformer
from ..models.datatypes import (
    NormalizationPhase,
    ProgressEvent,
    RunningContext,
    RunState,
    RunStatus,
    Segment,
    SegmentResult,
    StructuralHints,
)
from ..telemetry.logger import RunLogger
from ..text.normalizer import TextNormalizer
from .cancellation import CancellationToken


def _reattach_edge_whitespace(source: str, produced: str) -> str:
    """Wrap stripped provider output in the source segment's edge whitespace."""

    if not source.strip():
        return source
    leading = source[: len(source) - len(source.lstrip())]
    trailing = source[len(source.rstrip()) :]
    return f"{leading}{produced.strip()}{trailing}"


class TransformationOrchestrator:
    """Drive segments through the transformer one at a time.

    Each segment moves from pending to in flight, then either succeeds, or
    retries through the policy until it succeeds or falls back to its own
    text. A fallback is recorded on the result and never aborts the run.
    """

    def __init__(
        self,
        transformer: TextTransformer,
        retry_policy: RetryPolicy | None = None,
        normalizer: TextNormalizer | None = None,
        prompts: PromptLibrary | None = None,
        context_window_chars: int = 500,
        run_logger: RunLogger | None = None,
    ) -> None:
        self.transformer = transformer
        self.retry_policy = retry_policy if retry_policy is not None else RetryPolicy()
        self.normalizer = normalizer if normalizer is not None else TextNormalizer()
        self.prompts = prompts if prompts is not None else PromptLibrary()
        self.context_window_chars = context_window_chars
        self.run_logger = run_logger

    def process_segment(
        self,
        segment: Segment,
        hints: StructuralHints,
        context: str,
        locale: str,
    ) -> SegmentResult:
        """Transform one segment, falling back to its text when retries run out.

        Returns:
            A result whose `transformed_text` is the post-normalized provider
            output, or the unchanged segment text with `failed=True`.
        """

        instruction = self.prompts.system_prompt(locale, hints, context)

        def attempt() -> str:
            return self.transformer.transform(segment.text, instruction)

        def on_failure(attempt_number: int, error: BaseException, delay: float | None) -> None:
            if self.run_logger is not None:
                self.run_logger.log_segment_attempt_failure(
                    segment_index=segment.index,
                    attempt=attempt_number,
                    error_type=type(error).__name__,
                    delay_seconds=delay,
                )

        try:
            outcome = self.retry_policy.execute(attempt, on_failure=on_failure)
        except RetryExhaustedError as exc:
            if self.run_logger is not None:
                self.run_logger.log_segment_fallback(
                    segment_index=segment.index,
                    attempts=exc.attempts,
                    error_type=type(exc.last_error).__name__,
                )
            return SegmentResult(
                index=segment.index,
                original_text=segment.text,
                transformed_text=segment.text,
                attempts=exc.attempts,
                failed=True,
                error=f"{type(exc.last_error).__name__}: {exc.last_error}",
            )

        restored = _reattach_edge_whitespace(segment.text, outcome.value)
        return SegmentResult(
            index=segment.index,
            original_text=segment.text,
            transformed_text=self.normalizer.normalize(
                restored, locale, NormalizationPhase.POST
            ),
            attempts=outcome.attempts,
        )

    def iter_events(
        self,
        state: RunState,
        cancellation: CancellationToken | None = None,
    ) -> Iterator[ProgressEvent]:
        """Process pending segments in order, yielding progress as it happens.

        Segments already committed to `state` are skipped, so a consumer may
        stop iterating and call again to continue. Cancellation is checked
        only before a segment starts.
        """

        total = len(state.segments)
        locale = state.document.locale
        if not state.results:
            state.context = RunningContext(max_chars=self.context_window_chars)
        state.status = RunStatus.RUNNING
        for segment in state.segments[len(state.results) :]:
            if cancellation is not None and cancellation.is_cancelled:
                state.status = RunStatus.CANCELLED
                if self.run_logger is not None:
                    self.run_logger.log_run_cancelled(
                        committed_segments=len(state.results),
                        total_segments=total,
                    )
                yield ProgressEvent(kind="run_cancelled", segment_index=None, total_segments=total)
                return

            yield ProgressEvent(
                kind="segment_started",
                segment_index=segment.index,
                total_segments=total,
            )
            result = self.process_segment(segment, state.hints, state.context.text, locale)
            state.commit(result)
            if self.run_logger is not None:
                self.run_logger.log_segment_commit(
                    segment_index=segment.index,
                    total_segments=total,
                    attempts=result.attempts,
                )
            yield ProgressEvent(
                kind="segment_committed",
                segment_index=segment.index,
                total_segments=total,
                attempts=result.attempts,
                failed=result.failed,
                text_delta=result.transformed_text,
            )

        state.status = RunStatus.COMPLETED
        yield ProgressEvent(kind="run_completed", segment_index=None, total_segments=total)

    def run(
        self,
        state: RunState,
        cancellation: CancellationToken | None = None,
        on_event: Callable[[ProgressEvent], None] | None = None,
    ) -> RunState:
        """Drain `iter_events` and return the updated run state."""

        for event in self.iter_events(state, cancellation):
            if on_event is not None:
                on_event(event)
        return state
