"""Prompt template library for the restoration step.

Responsibilities:
- Hold the per-locale restoration instructions.
- Append previous-context and detected-structure guidance deterministically.
"""

from __future__ import annotations

from ..models.datatypes import StructuralHints
from ..text.locales import get_locale

_SWEDISH_INSTRUCTION = """\
You are an expert OCR Proofreader and Editor. Your goal is to restore scanned Swedish text to perfect readability while strictly preserving the structure for EPUB conversion.

## CORE OBJECTIVE
Transform raw OCR text into semantic Markdown. You must distinguish between **Chapters (H1)**, **Sections (H2)**, **Sub-sections (H3)**, **Lists**, and **Body Text**.

## 1. STRUCTURE & HIERARCHY RULES (CRITICAL)
*   **# (H1) - CHAPTERS:**
    *   Any line starting with "Kapitel", "Del", or a **Number + Dot** (e.g. "1. Inledning") followed by a title MUST be a H1 header (#).
    *   Do NOT format these as bold paragraphs (**Text**). Use (# Text).
*   **## (H2) - SECTIONS:** Major sub-headers within a chapter.
*   **### (H3):** Minor sub-sections.
*   **Lists:** Detect lists and use `* ` bullet points.

## 2. TITLES & FRONT MATTER
*   If this is the start of the book, format the **Title** as # H1 and the **Author** as **Bold**.
*   Do NOT treat the Title Page as body text.

## 3. CLEANUP & PROHIBITIONS
*   **NO TOC GENERATION:** Do NOT generate a Table of Contents (Innehållsförteckning) unless it explicitly exists in the source text.
*   **Merge broken lines:** Fix hyphenated words at line ends.
*   **Swedify:** Fix scanning errors (a -> ä, o -> ö) and quotes (”).

**OUTPUT FORMAT:** Return ONLY the cleaned text. No markdown fences."""

_ENGLISH_INSTRUCTION = """\
You are an expert OCR Proofreader and Editor. Your goal is to restore scanned English text to perfect readability while strictly preserving the structure for EPUB conversion.

## CORE OBJECTIVE
Transform raw OCR text into semantic Markdown. You must distinguish between **Chapters (H1)**, **Sections (H2)**, **Sub-sections (H3)**, **Lists**, and **Body Text**.

## 1. STRICT HEADER RULES (HIGHEST PRIORITY)
*   **# (H1) - CHAPTERS:**
    *   **"Number. Title" Pattern:** Any line starting with a number and a period followed by text (e.g., "1. The Territories", "2. Signs and Causes") **MUST** be formatted as a H1 Header (#).
    *   **Examples:**
        *   Input: "1. Introduction" -> Output: "# 1. Introduction"
        *   Input: "Chapter 5" -> Output: "# Chapter 5"
    *   **NEVER** format these as bold paragraphs or plain text. They are structural keys.
*   **## (H2) - SECTIONS:** Use for sub-headers inside chapters.

## 2. TITLE PAGE & FRONT MATTER
*   If the text contains the Book Title and Author at the very top:
    *   Format the **Book Title** as H1 (#).
    *   Format the **Author Name** as Bold (**Name**).
    *   Keep Copyright info as plain text.

## 3. CONTENT RULES
*   **NO HALLUCINATED TOC:** Do **NOT** generate or insert a Table of Contents. Only process the text provided.
*   **Lists:** Detect bibliographies/lists and use `* ` bullet points.
*   **Typography:** Convert straight quotes to smart quotes (“ ”).
*   **Cleanup:** Remove page numbers, merge broken lines, remove artifacts (|, ¦).

**OUTPUT FORMAT:** Return ONLY the cleaned text. No markdown fences."""


class PromptLibrary:
    """Build system instructions for the restoration step."""

    _LOCALE_INSTRUCTIONS = {
        "sv": _SWEDISH_INSTRUCTION,
        "en": _ENGLISH_INSTRUCTION,
    }

    def base_instruction(self, locale: str) -> str:
        """Return the locale restoration instruction without dynamic blocks."""

        return self._LOCALE_INSTRUCTIONS[get_locale(locale).code]

    def system_prompt(
        self,
        locale: str,
        hints: StructuralHints | None = None,
        context: str = "",
    ) -> str:
        """Return the full system instruction for one segment.

        Args:
            locale: Locale code selecting the instruction template.
            hints: Detected heading candidates to tag as chapter headers.
            context: Trailing output of the previous segment.
        """

        sections = [self.base_instruction(locale)]
        if context:
            sections.append(
                "## PREVIOUS CONTEXT (FOR CONSISTENCY)\n"
                "Use this text to resolve broken sentences at the start and maintain "
                "name consistency.\n"
                f'"""\n{context}\n"""'
            )
        if hints:
            sections.append(
                "## DETECTED STRUCTURE GUIDANCE\n"
                "The system detected the following potential headers. If you see text "
                "matching these, YOU MUST tag them as # (H1).\n" + "\n".join(hints.titles)
            )
        return "\n\n".join(sections)
