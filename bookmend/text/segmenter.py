"""Document-to-segment splitting logic.

Responsibilities:
- Split normalized text into bounded segments for provider calls.
- Prefer natural cut points so each segment reads as a complete unit.
- Keep offsets exact so committed outputs reassemble in source order.
"""

from __future__ import annotations

from ..errors import SegmentationError
from ..models.datatypes import Segment


class Segmenter:
    """Create boundary-aware segments with a deterministic forced-cut fallback."""

    _PARAGRAPH_MIN_RATIO = 0.5
    _SENTENCE_MIN_RATIO = 0.7
    _LINE_MIN_RATIO = 0.7

    def segment(self, text: str, target_size: int) -> list[Segment]:
        """Split text into contiguous segment records.

        Args:
            text: Normalized document text.
            target_size: Maximum segment length in characters.

        Returns:
            Ordered segments whose texts concatenate back to `text`.

        Raises:
            ValueError: If `target_size` is not positive.
        """

        if target_size <= 0:
            raise ValueError("Segment size must be a positive number of characters.")

        segments: list[Segment] = []
        start = 0
        text_length = len(text)
        while start < text_length:
            end, boundary_strategy = self._resolve_boundary(text, start, target_size)
            segments.append(
                Segment(
                    index=len(segments),
                    text=text[start:end],
                    char_start=start,
                    char_end=end,
                    boundary_strategy=boundary_strategy,
                )
            )
            start = end
        return segments

    def _resolve_boundary(self, text: str, start: int, target_size: int) -> tuple[int, str]:
        """Resolve segment end index and boundary strategy marker."""

        text_length = len(text)
        if start + target_size >= text_length:
            return text_length, "document_end"

        window_end = start + target_size

        paragraph = text.rfind("\n\n", start, window_end)
        if paragraph != -1 and paragraph - start >= target_size * self._PARAGRAPH_MIN_RATIO:
            return paragraph + 2, "paragraph"

        period = text.rfind(".", start, window_end)
        if period != -1 and period - start >= target_size * self._SENTENCE_MIN_RATIO:
            return period + 1, "sentence"

        newline = text.rfind("\n", start, window_end)
        if newline != -1 and newline - start >= target_size * self._LINE_MIN_RATIO:
            return newline + 1, "line"

        return window_end, "forced"


def segment_text(text: str, target_size: int) -> list[Segment]:
    """Split text with a default `Segmenter`."""

    return Segmenter().segment(text, target_size)


def verify_partition(text: str, segments: list[Segment]) -> None:
    """Raise `SegmentationError` unless segments exactly partition `text`."""

    cursor = 0
    for position, segment in enumerate(segments):
        if segment.index != position:
            raise SegmentationError(
                f"Segment at position {position} carries index {segment.index}."
            )
        if segment.char_start != cursor:
            raise SegmentationError(
                f"Segment {segment.index} starts at {segment.char_start}, expected {cursor}."
            )
        if segment.char_end <= segment.char_start:
            raise SegmentationError(f"Segment {segment.index} is empty.")
        if text[segment.char_start : segment.char_end] != segment.text:
            raise SegmentationError(
                f"Segment {segment.index} text does not match its source offsets."
            )
        cursor = segment.char_end
    if cursor != len(text):
        raise SegmentationError(
            f"Segments cover {cursor} of {len(text)} characters."
        )
