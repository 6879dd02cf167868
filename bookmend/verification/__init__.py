"""Post-run verification of restored text against its raw original."""

from .change_report import (
    DEFAULT_THRESHOLDS,
    HEALTHY_THRESHOLD,
    MODERATE_THRESHOLD,
    NEGLIGIBLE_THRESHOLD,
    ChangeThresholds,
    classify,
    verify,
)
from .diff import diff_words, tokenize_words

__all__ = [
    "ChangeThresholds",
    "DEFAULT_THRESHOLDS",
    "HEALTHY_THRESHOLD",
    "MODERATE_THRESHOLD",
    "NEGLIGIBLE_THRESHOLD",
    "classify",
    "diff_words",
    "tokenize_words",
    "verify",
]
