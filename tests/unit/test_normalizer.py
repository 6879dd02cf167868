"""Unit tests for deterministic pre/post normalization rules."""

from __future__ import annotations

import pytest

from bookmend.models.datatypes import NormalizationPhase
from bookmend.text.cleaners import CollapseStutter, TextCleaner
from bookmend.text.locales import LOCALES
from bookmend.text.normalizer import TextNormalizer, normalize


_CORRECTION_STUTTERS = [
    (profile.code, f"{garbled} . {correction}")
    for profile in LOCALES.values()
    for garbled, correction in profile.corrections.items()
]

_EDGE_STRINGS = [
    "x ' y",
    'x " y',
    "- 5 -\n\n\n\nz",
    "a\n \n\n\nb",
    "\n\n\n",
    "'",
    "  7  \n",
]


@pytest.mark.parametrize("locale", sorted(LOCALES))
@pytest.mark.parametrize("phase", [NormalizationPhase.PRE, NormalizationPhase.POST])
def test_normalize_is_idempotent(sample_ocr_text: str, locale: str, phase: NormalizationPhase) -> None:
    """Normalizing already-normalized text should not change it further."""

    noisy = (
        sample_ocr_text
        + "\r\nThe beginning. ginning of it  \n\n\n\n- 7 -\nShe said 'hi' and don't.\t"
        + "Kat.ten \u00adsov evalverade. Dr. Smith kom."
    )
    once = normalize(noisy, locale, phase)

    assert normalize(once, locale, phase) == once


@pytest.mark.parametrize(("locale", "text"), _CORRECTION_STUTTERS)
@pytest.mark.parametrize("phase", [NormalizationPhase.PRE, NormalizationPhase.POST])
def test_corrected_stutters_are_stable_after_one_pass(
    locale: str, text: str, phase: NormalizationPhase
) -> None:
    """A correction that completes a stutter should be collapsed in the same pass."""

    once = normalize(text, locale, phase)

    assert normalize(once, locale, phase) == once


@pytest.mark.parametrize("locale", sorted(LOCALES))
@pytest.mark.parametrize("phase", [NormalizationPhase.PRE, NormalizationPhase.POST])
@pytest.mark.parametrize("text", _EDGE_STRINGS)
def test_quote_page_number_and_blank_line_edges_are_idempotent(
    locale: str, phase: NormalizationPhase, text: str
) -> None:
    once = normalize(text, locale, phase)

    assert normalize(once, locale, phase) == once


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("tillhande . tillhörande", "tillhörande"),
        ("evalverade . evolverade", "evolverade"),
    ],
)
def test_correction_that_completes_a_stutter_collapses(text: str, expected: str) -> None:
    """Corrected garble followed by its own correct spelling should leave one word."""

    assert normalize(text, "sv") == expected


def test_post_normalization_cleans_sample_text(sample_ocr_text: str) -> None:
    """Post pass should strip artifacts, drop page numbers, and fix quotes and spacing."""

    result = normalize(sample_ocr_text, "sv")

    assert "|" not in result
    assert "en liten katt" in result
    assert "\n12\n" not in result
    assert "solen.\n\nDEL TVÅ" in result
    assert "Han sa ”hej” och" in result


def test_pre_normalization_keeps_quotes_spacing_and_page_numbers() -> None:
    """Pre pass should only normalize line endings, artifacts, and fused dots."""

    result = normalize('Han sa "hej" | 12\r\nKat.ten sov', "sv", NormalizationPhase.PRE)

    assert result == 'Han sa "hej"  12\nKatten sov'


def test_phase_may_be_given_as_plain_string() -> None:
    """Phase values should also be accepted as their string form."""

    assert normalize("a  b", "en", "pre") == "a  b"
    assert normalize("a  b", "en", "post") == "a b"


def test_stutter_collapses_to_first_word() -> None:
    """A word followed by a period and its own tail should collapse to the word."""

    assert normalize("The beginning. ginning of it", "en") == "The beginning of it"
    assert normalize("möjligheten. möjligheter att", "sv") == "möjligheten att"


def test_stutter_keeps_abbreviations_and_real_sentences() -> None:
    """Short tokens and unrelated words must not be collapsed."""

    text = "Dr. Smith met Mr. Jones. Then he smiled."

    assert normalize(text, "en") == text


def test_stutter_rule_does_not_cross_line_breaks() -> None:
    """Stutter candidates separated by a newline should stay intact."""

    assert CollapseStutter().apply("beginning.\nginning") == "beginning.\nginning"


def test_lexical_corrections_are_whole_word_and_keep_leading_capital() -> None:
    """Swedish corrections should apply to whole words and carry capitalization."""

    assert normalize("Evalverade former", "sv") == "Evolverade former"
    assert normalize("den tillhande delen", "sv") == "den tillhörande delen"
    assert normalize("hon lyssnartill musik", "sv") == "hon lyssnar till musik"
    assert normalize("skånska ord", "sv") == "skånska ord"


def test_english_has_no_lexical_corrections() -> None:
    """English normalization should leave Swedish garble words untouched."""

    assert normalize("evalverade", "en") == "evalverade"


def test_quotes_follow_locale_glyphs() -> None:
    """Straight quotes should map to directional glyphs of the locale."""

    assert normalize('She said "hi" and don\'t.', "en") == "She said “hi” and don’t."
    assert normalize("He said 'no' today", "en") == "He said ‘no’ today"
    assert normalize('Han sa "ja" nu', "sv") == "Han sa ”ja” nu"


def test_page_number_lines_and_blank_runs_are_tidied() -> None:
    """Bare page numbers should vanish and blank-line runs collapse to one."""

    text = "Slut på sidan.\n- 42 -\nNästa sida.\n\n\n\n\nNy del.   \n"

    assert normalize(text, "sv") == "Slut på sidan.\n\nNästa sida.\n\nNy del.\n"


def test_scan_artifacts_are_removed_in_both_phases() -> None:
    """Stray glyphs, soft hyphens, zero-width marks, and tabs should be removed."""

    text = "ord\u00adet\u200b \u2666 \u00a6\tslut"

    assert normalize(text, "sv", NormalizationPhase.PRE) == "ordet  slut"
    assert normalize(text, "sv") == "ordet slut"


def test_unknown_locale_raises_value_error() -> None:
    """Locale lookup should reject unsupported codes."""

    with pytest.raises(ValueError, match="Unsupported locale `de`"):
        TextNormalizer().normalize("text", "de")


def test_normalizer_reuses_cached_cleaners() -> None:
    """Repeated calls for one locale and phase should reuse one cleaner."""

    normalizer = TextNormalizer()
    normalizer.normalize("a", "SV")
    normalizer.normalize("b", "sv")

    assert len(normalizer._cleaners) == 1


class _SuffixRule:
    """Append `!` once to text ending in `?`."""

    def apply(self, text: str) -> str:
        return text[:-1] + "!" if text.endswith("?") else text


class _QuestionRule:
    """Turn a trailing `.` into `?`."""

    def apply(self, text: str) -> str:
        return text[:-1] + "?" if text.endswith(".") else text


def test_text_cleaner_repeats_rules_until_stable() -> None:
    """Output of a later rule should still be seen by an earlier rule."""

    cleaner = TextCleaner([_SuffixRule(), _QuestionRule()])

    assert cleaner.clean("done.") == "done!"
    assert cleaner.clean("done!") == "done!"
