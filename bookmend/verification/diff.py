"""Word-level alignment between an original text and its restored version."""

from __future__ import annotations

from difflib import SequenceMatcher
import re

from ..models.datatypes import DiffKind, DiffRun

_TOKEN_RE = re.compile(r"^\s+|\S+\s*")


def tokenize_words(text: str) -> list[str]:
    """Split text into word tokens that keep their trailing whitespace.

    A leading whitespace run becomes its own token, so the tokens always
    concatenate back to `text`.
    """

    return _TOKEN_RE.findall(text)


def diff_words(original: str, final: str) -> list[DiffRun]:
    """Align two texts token by token.

    Returns runs in reading order with adjacent runs of the same kind merged.
    Unchanged plus removed runs rebuild `original`; unchanged plus inserted
    runs rebuild `final`. A replaced stretch is reported as its removed run
    followed by its inserted run.
    """

    source_tokens = tokenize_words(original)
    target_tokens = tokenize_words(final)
    matcher = SequenceMatcher(None, source_tokens, target_tokens, autojunk=False)

    runs: list[DiffRun] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            _append_run(runs, DiffKind.UNCHANGED, "".join(source_tokens[i1:i2]))
            continue
        if tag in {"delete", "replace"}:
            _append_run(runs, DiffKind.REMOVED, "".join(source_tokens[i1:i2]))
        if tag in {"insert", "replace"}:
            _append_run(runs, DiffKind.INSERTED, "".join(target_tokens[j1:j2]))
    return runs


def _append_run(runs: list[DiffRun], kind: DiffKind, text: str) -> None:
    if not text:
        return
    if runs and runs[-1].kind is kind:
        runs[-1] = DiffRun(kind=kind, text=runs[-1].text + text)
        return
    runs.append(DiffRun(kind=kind, text=text))
