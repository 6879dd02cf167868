"""Top-level package for bookmend.

This package restores OCR-scanned book text by sending bounded segments to a
language model under a retry policy, normalizing the output deterministically,
and verifying the final text against the original. The main orchestration
entry point is `BookmendPipeline`.
"""

from .pipeline import BookmendPipeline

__all__ = ["BookmendPipeline", "__version__"]

__version__ = "0.1.0"
