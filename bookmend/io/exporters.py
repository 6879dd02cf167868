"""Final document exporters.

Responsibilities:
- Write the restored text as a flat UTF-8 text file.
- Render restored Markdown-like text as a Word-compatible HTML `.doc` file.

The `.doc` export maps `#`, `##`, and `###` lines to headings, `-`/`*`/`•`
lines to list items, a leading `#` heading plus its short follow-up lines to
a title page, and copyright lines to a muted paragraph style.
"""

from __future__ import annotations

from html import escape
from pathlib import Path
import re

from .storage import RunDirectory

_DOC_HEADER = """\
<html xmlns:o='urn:schemas-microsoft-com:office:office'
      xmlns:w='urn:schemas-microsoft-com:office:word'
      xmlns='http://www.w3.org/TR/REC-html40'>
<head>
  <meta charset='utf-8'>
  <title>Export</title>
  <style>
    body { font-family: 'Times New Roman', serif; font-size: 12pt; line-height: 1.5; color: #000000; }
    h1 { font-size: 24pt; font-weight: bold; page-break-before: always; margin-bottom: 24pt; color: #2E2E2E; }
    h2 { font-size: 18pt; font-weight: bold; margin-top: 24pt; margin-bottom: 12pt; page-break-after: avoid; color: #444444; }
    h3 { font-size: 14pt; font-weight: bold; margin-top: 18pt; margin-bottom: 6pt; page-break-after: avoid; font-style: italic; color: #555555; }
    p { margin-bottom: 12pt; margin-top: 0; text-indent: 0; text-align: justify; }
    .title-page { text-align: center; margin-top: 200pt; margin-bottom: 200pt; page-break-after: always; }
    .title-page h1 { page-break-before: auto; font-size: 32pt; }
    .title-page p { text-align: center; font-style: italic; }
    ul { margin-bottom: 12pt; }
    li { margin-bottom: 6pt; }
    .copyright { font-size: 10pt; color: #666; font-style: italic; text-align: center; margin-top: 50pt; }
  </style>
</head>
<body>
"""
_DOC_FOOTER = "</body></html>"

_HEADING_RES = (
    ("h1", re.compile(r"^#\s+(.+)")),
    ("h2", re.compile(r"^##\s+(.+)")),
    ("h3", re.compile(r"^###\s+(.+)")),
)
_LIST_RE = re.compile(r"^[-*•]\s+(.+)")
_TITLE_PAGE_LOOKAHEAD = 4
_TITLE_PAGE_MAX_LINE_CHARS = 100


def _match_heading(line: str) -> tuple[str, str] | None:
    for tag, pattern in _HEADING_RES:
        match = pattern.match(line)
        if match:
            return tag, match.group(1)
    return None


def render_doc_html(text: str) -> str:
    """Render restored text as Word-compatible HTML."""

    body: list[str] = []
    lines = text.split("\n")
    in_list = False
    is_first_content = True

    def close_list() -> None:
        nonlocal in_list
        if in_list:
            body.append("</ul>\n")
            in_list = False

    index = 0
    while index < len(lines):
        line = lines[index].strip()
        index += 1
        if not line:
            close_list()
            continue

        heading = _match_heading(line)
        if is_first_content and heading is not None and heading[0] == "h1":
            body.append(f'<div class="title-page">\n<h1>{escape(heading[1])}</h1>\n')
            lookahead_end = index + _TITLE_PAGE_LOOKAHEAD
            while index < min(len(lines), lookahead_end):
                follow = lines[index].strip()
                if follow and (
                    len(follow) >= _TITLE_PAGE_MAX_LINE_CHARS or follow.startswith("#")
                ):
                    break
                if follow:
                    body.append(f"<p>{escape(follow)}</p>\n")
                index += 1
            body.append("</div>\n")
            is_first_content = False
            continue
        is_first_content = False

        if heading is not None:
            close_list()
            tag, content = heading
            body.append(f"<{tag}>{escape(content)}</{tag}>\n")
            continue

        list_match = _LIST_RE.match(line)
        if list_match:
            if not in_list:
                body.append("<ul>\n")
                in_list = True
            body.append(f"<li>{escape(list_match.group(1))}</li>\n")
            continue

        close_list()
        lowered = line.lower()
        if "copyright" in lowered or "all rights reserved" in lowered:
            body.append(f'<p class="copyright">{escape(line)}</p>\n')
        else:
            body.append(f"<p>{escape(line)}</p>\n")

    close_list()
    return _DOC_HEADER + "".join(body) + _DOC_FOOTER


class DocumentExporter:
    """Write final exports into the `exports/` folder of one run directory."""

    def __init__(self, directory: RunDirectory) -> None:
        self.directory = directory

    def export_text(self, text: str, stem: str) -> Path:
        """Write the restored text as UTF-8 plain text."""

        return self.directory.write_text(
            "export_txt", text, Path("exports") / f"{stem}_cleaned.txt"
        )

    def export_doc(self, text: str, stem: str) -> Path:
        """Write the restored text as a BOM-prefixed HTML `.doc` file."""

        return self.directory.write_text(
            "export_doc",
            "\ufeff" + render_doc_html(text),
            Path("exports") / f"{stem}_cleaned.doc",
        )

    def export(self, text: str, stem: str, export_format: str) -> dict[str, Path]:
        """Write the exports selected by `export_format` and return their paths."""

        paths: dict[str, Path] = {}
        if export_format in {"txt", "both"}:
            paths["export_txt"] = self.export_text(text, stem)
        if export_format in {"doc", "both"}:
            paths["export_doc"] = self.export_doc(text, stem)
        return paths
