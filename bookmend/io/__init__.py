"""Input/output helpers for raw text input, run directories, and final exports."""

from .exporters import DocumentExporter, render_doc_html
from .reader import read_document
from .storage import RUN_LAYOUT, RunDirectory, run_dir

__all__ = [
    "DocumentExporter",
    "RUN_LAYOUT",
    "RunDirectory",
    "read_document",
    "render_doc_html",
    "run_dir",
]
