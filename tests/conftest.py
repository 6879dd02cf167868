"""Shared pytest fixtures for the full bookmend test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from bookmend.models.datatypes import Document, RunningContext, RunState, Segment
from bookmend.config import RunConfig

SAMPLE_OCR_TEXT = (
    "KAPITEL 1 Början\n\n"
    "Det var en gång en | liten katt som bodde i ett hus.\n"
    "Katten tyckte om att sova i solen.\n\n"
    "12\n\n"
    "DEL TVÅ\n\n"
    "Han sa \"hej\" och gick vidare genom staden.\n"
)


@pytest.fixture
def sample_ocr_text() -> str:
    """Provide a short OCR-like Swedish text with artifacts and headings."""

    return SAMPLE_OCR_TEXT


@pytest.fixture
def sample_input_path(tmp_path: Path) -> Path:
    """Write the sample text in ISO-8859-1 and return its path."""

    path = tmp_path / "book.txt"
    path.write_bytes(SAMPLE_OCR_TEXT.encode("iso-8859-1"))
    return path


def build_run_state(texts: list[str], *, locale: str = "en", context_chars: int = 500) -> RunState:
    """Build a pending run state whose segments are exactly `texts`."""

    segments: list[Segment] = []
    cursor = 0
    for index, text in enumerate(texts):
        segments.append(
            Segment(
                index=index,
                text=text,
                char_start=cursor,
                char_end=cursor + len(text),
                boundary_strategy="sentence",
            )
        )
        cursor += len(text)
    document = Document(text="".join(texts), locale=locale)
    return RunState(
        run_id="run-test",
        config=RunConfig(input_path=Path("book.txt"), output_dir=Path("out"), locale=locale),
        document=document,
        segments=tuple(segments),
        context=RunningContext(max_chars=context_chars),
    )


@pytest.fixture
def run_state_factory():  # type: ignore[no-untyped-def]
    """Expose `build_run_state` as a fixture for orchestrator tests."""

    return build_run_state
