"""Text preprocessing and segmentation components.

This package provides deterministic cleanup, locale profiles, heading
detection, and segmentation building blocks used around the restoration step.
"""

from .cleaners import TextCleaner
from .headings import HeadingDetector, clean_structure_list
from .locales import LOCALES, SUPPORTED_LOCALES, LocaleProfile, get_locale
from .normalizer import TextNormalizer, normalize
from .segmenter import Segmenter, segment_text, verify_partition

__all__ = [
    "HeadingDetector",
    "LOCALES",
    "LocaleProfile",
    "SUPPORTED_LOCALES",
    "Segmenter",
    "TextCleaner",
    "TextNormalizer",
    "clean_structure_list",
    "get_locale",
    "normalize",
    "segment_text",
    "verify_partition",
]
