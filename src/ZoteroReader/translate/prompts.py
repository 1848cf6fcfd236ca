"""Prompt templates and placeholder filling.

Templates use ``{name}`` placeholders. Filling is plain string replacement,
so literal braces elsewhere in a user-supplied template are left alone.
"""

from __future__ import annotations

from typing import Mapping

MISSING_VALUE = "unknown"

LANG_NAMES = {
    "zh": "Simplified Chinese",
    "en": "English",
    "ja": "Japanese",
    "ko": "Korean",
    "fr": "French",
    "de": "German",
    "es": "Spanish",
    "auto": "the detected language",
}

DEFAULT_TRANSLATE_SYSTEM_PROMPT = """You are an expert translator of academic papers.

## Paper
- Title: {title}
- Authors: {authors}
- Journal: {journal}
- Abstract: {abstract}

Requirements:
1. Translate technical terms accurately for the paper's field and context.
2. Keep the rigor of academic writing.
3. Output only the translation, without explanations."""

DEFAULT_TRANSLATE_USER_PROMPT = """## Surrounding paragraph
{paragraphContext}

## Translate the following text into {targetLang}
{selectedText}"""

DEFAULT_CHAT_SYSTEM_PROMPT = """You are a reading assistant for academic papers. The user is reading this paper:

Title: {title}
Authors: {authors}
Abstract: {abstract}

Full text (possibly partial):
{fulltext}

Answer the user's questions based on the paper. When a question goes beyond the paper you may draw on general knowledge, but say so.
Answer in {targetLang}."""


def lang_name(code: str) -> str:
    """Return the English name of a language code, or the code itself."""
    return LANG_NAMES.get((code or "").lower(), code)


def fill_template(template: str, values: Mapping[str, str | None]) -> str:
    """Replace ``{key}`` placeholders; empty or missing values become ``unknown``."""
    result = template
    for key, value in values.items():
        result = result.replace("{" + key + "}", value or MISSING_VALUE)
    return result
