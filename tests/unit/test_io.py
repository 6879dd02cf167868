"""Unit tests for raw text reading, run directories, and final exports."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from bookmend.errors import DocumentDecodeError
from bookmend.io import DocumentExporter, RunDirectory, read_document, render_doc_html, run_dir


def test_read_document_decodes_latin1_input(sample_input_path: Path, sample_ocr_text: str) -> None:
    """ISO-8859-1 input should decode to the original text with its metadata."""

    document = read_document(sample_input_path)

    assert document.text == sample_ocr_text
    assert document.encoding == "ISO-8859-1"
    assert document.locale == "sv"
    assert document.source_path == sample_input_path


def test_read_document_missing_file_is_decode_error(tmp_path: Path) -> None:
    """Missing input should raise a read-stage error with a hint."""

    with pytest.raises(DocumentDecodeError) as exc_info:
        read_document(tmp_path / "missing.txt")

    assert exc_info.value.stage == "read"
    assert "does not exist" in exc_info.value.detail


def test_read_document_invalid_bytes_suggest_encoding_flag(tmp_path: Path) -> None:
    """Bytes invalid in the requested encoding should point at `--encoding`."""

    path = tmp_path / "latin.txt"
    path.write_bytes("Början".encode("iso-8859-1"))

    with pytest.raises(DocumentDecodeError) as exc_info:
        read_document(path, encoding="utf-8")

    assert "byte offset 2" in exc_info.value.detail
    assert exc_info.value.hint is not None
    assert "--encoding" in exc_info.value.hint


def test_read_document_unknown_encoding_is_decode_error(sample_input_path: Path) -> None:
    """Unknown codec names should raise a read-stage error."""

    with pytest.raises(DocumentDecodeError, match="Unknown text encoding"):
        read_document(sample_input_path, encoding="no-such-codec")


def test_run_dir_writes_named_artifacts_into_fixed_layout(tmp_path: Path) -> None:
    """Named artifacts should land at fixed paths and be recorded by name."""

    artifacts: dict[str, Path] = {}
    directory = run_dir(tmp_path, "run-abc", artifacts)

    clean_path = directory.write_text("clean", "Rensad text")
    report_path = directory.write_json("report", {"b": 1, "a": "Början"})

    assert clean_path == tmp_path / "run-abc" / "text" / "clean.txt"
    assert report_path == tmp_path / "run-abc" / "report.json"
    assert artifacts == {"clean": clean_path, "report": report_path}
    assert directory.read_text("clean") == "Rensad text"
    raw_json = report_path.read_text(encoding="utf-8")
    assert raw_json.index('"a"') < raw_json.index('"b"')
    assert "Början" in raw_json
    assert json.loads(raw_json) == {"a": "Början", "b": 1}


def test_run_directory_rejects_unknown_artifact_without_path(tmp_path: Path) -> None:
    """Names outside the layout need an explicit relative path."""

    directory = RunDirectory(tmp_path)

    with pytest.raises(KeyError, match="export_pdf"):
        directory.write_text("export_pdf", "x")

    path = directory.write_text("notes", "x", Path("extra/notes.txt"))

    assert path == tmp_path / "extra" / "notes.txt"
    assert directory.artifacts == {"notes": path}


def test_render_doc_html_maps_title_page_headings_and_lists() -> None:
    """Markdown-like restored text should become Word-compatible HTML."""

    text = "# My Book\n**Author Name**\n\n## Section & More\n- one\n* two\nBody <text>\n### Minor"

    html = render_doc_html(text)

    assert html.startswith("<html xmlns:o='urn:schemas-microsoft-com:office:office'")
    assert '<div class="title-page">\n<h1>My Book</h1>\n<p>**Author Name**</p>\n' in html
    assert "<h2>Section &amp; More</h2>" in html
    assert "<ul>\n<li>one</li>\n<li>two</li>\n</ul>\n" in html
    assert "<p>Body &lt;text&gt;</p>" in html
    assert "<h3>Minor</h3>" in html
    assert html.endswith("</body></html>")


def test_render_doc_html_styles_copyright_lines_outside_title_page() -> None:
    """Copyright lines in body text should get the muted paragraph class."""

    html = render_doc_html("Intro paragraph.\nCopyright 2020 Someone. All rights reserved.")

    assert '<div class="title-page">' not in html
    assert "<p>Intro paragraph.</p>" in html
    assert '<p class="copyright">Copyright 2020 Someone. All rights reserved.</p>' in html


@pytest.mark.parametrize(
    ("export_format", "expected"),
    [
        ("txt", {"export_txt"}),
        ("doc", {"export_doc"}),
        ("both", {"export_txt", "export_doc"}),
        ("none", set()),
    ],
)
def test_document_exporter_writes_selected_formats(
    tmp_path: Path, export_format: str, expected: set[str]
) -> None:
    """Exporter should only write the formats selected by `export_format`."""

    directory = RunDirectory(tmp_path)
    exporter = DocumentExporter(directory)

    paths = exporter.export("# Titel\n\nText.", "book", export_format)

    assert set(paths) == expected
    assert directory.artifacts == paths
    if "export_txt" in paths:
        assert paths["export_txt"] == tmp_path / "exports" / "book_cleaned.txt"
        assert paths["export_txt"].read_text(encoding="utf-8") == "# Titel\n\nText."
    if "export_doc" in paths:
        assert paths["export_doc"] == tmp_path / "exports" / "book_cleaned.doc"
        content = paths["export_doc"].read_text(encoding="utf-8")
        assert content.startswith("﻿<html")
        assert "<h1>Titel</h1>" in content
