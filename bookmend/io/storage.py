"""Per-run output directory layout.

Responsibilities:
- Map named run artifacts (`raw`, `clean`, `report`, ...) to fixed paths
  under `<output_dir>/<run_id>/`.
- Write text and JSON artifacts and record each written path by name.
"""

from __future__ import annotations

import json
from pathlib import Path

RUN_LAYOUT: dict[str, Path] = {
    "raw": Path("text/raw.txt"),
    "normalized": Path("text/normalized.txt"),
    "segments": Path("text/segments.json"),
    "clean": Path("text/clean.txt"),
    "partial": Path("text/clean.partial.txt"),
    "report": Path("report.json"),
}


class RunDirectory:
    """Output directory of one run, with a name-to-path artifact index.

    `artifacts` may be shared with `RunState.artifacts` so every write is
    recorded on the run state as it happens.
    """

    def __init__(self, root: Path, artifacts: dict[str, Path] | None = None) -> None:
        self.root = root
        self.artifacts = artifacts if artifacts is not None else {}

    def path_for(self, name: str, relative_path: Path | None = None) -> Path:
        """Return and record the path of artifact `name`.

        Raises:
            KeyError: If `name` has no fixed layout entry and no explicit
                `relative_path` is given.
        """

        if relative_path is None:
            try:
                relative_path = RUN_LAYOUT[name]
            except KeyError:
                raise KeyError(f"No layout entry for run artifact `{name}`.") from None
        path = self.root / relative_path
        self.artifacts[name] = path
        return path

    def write_text(self, name: str, content: str, relative_path: Path | None = None) -> Path:
        """Write UTF-8 text for artifact `name` and return its path."""

        path = self.path_for(name, relative_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def write_json(
        self,
        name: str,
        payload: dict[str, object],
        relative_path: Path | None = None,
    ) -> Path:
        """Write sorted, non-ASCII-preserving JSON for artifact `name`."""

        return self.write_text(
            name,
            json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True),
            relative_path,
        )

    def read_text(self, name: str) -> str:
        """Read back a previously written artifact."""

        return self.artifacts[name].read_text(encoding="utf-8")


def run_dir(
    output_dir: Path,
    run_id: str,
    artifacts: dict[str, Path] | None = None,
) -> RunDirectory:
    """Return the directory for run `run_id` under `output_dir`."""

    return RunDirectory(output_dir / run_id, artifacts)
