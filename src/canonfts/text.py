#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0
"""Text processing utilities."""

import re
from typing import List

# Bold, underline, strikethrough and special markers, the zero-width joiner,
# and footnote pointers such as {1} or {ab} together with the whitespace
# that precedes them.
_FORMATTING_RE = re.compile(r"[*_~$\u200d]|\s*\{\S{0,2}\}")

_WORD_SEPARATORS_RE = re.compile(r"[.:\[\](){}\-–,\d'\"‘’“”?\n\t\r]")


def clean_text_for_indexing(text: str | None) -> str:
    """Strip formatting markers so only searchable text reaches the index.

    Markers are removed without inserting spaces, so text on either side of
    a marker fuses: '*hello* {1}world' becomes 'helloworld'. Newlines become
    spaces to avoid phrase matches across line boundaries.

    A footnote pointer also takes the whitespace before it, so 'word {1}next'
    becomes 'wordnext'. The earlier JavaScript generator left that space in
    place ('word next').

    Removal repeats until nothing matches, since dropping a marker can expose
    a new footnote pointer ('{ab*}' -> '{ab}'). This keeps the function
    idempotent.

    Examples:
        '*bold* text' -> 'bold text'
        'word{12} next' -> 'word next'
        '***' -> ''

    Args:
        text: Raw entry text with formatting markers

    Returns:
        Clean text, possibly empty
    """
    if not text:
        return ""

    cleaned, count = _FORMATTING_RE.subn("", text)
    while count:
        cleaned, count = _FORMATTING_RE.subn("", cleaned)

    cleaned = cleaned.replace("\n", " ")
    return cleaned.strip()


def format_position_label(page_index: int, entry_index: int) -> str:
    """Encode an entry position as 'page-entry' (e.g. '3-12')."""
    return f"{page_index}-{entry_index}"


def extract_words(text: str) -> List[str]:
    """Split clean text into words for suggestion counting.

    Punctuation, brackets, digits and quotes act as separators.
    """
    if not text:
        return []
    return _WORD_SEPARATORS_RE.sub(" ", text).split()
