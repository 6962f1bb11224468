#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0
"""Word frequencies for the auto-complete suggestions table."""

from collections import Counter
from typing import Dict, List, Tuple

from canonfts.text import extract_words


class WordFrequency:
    """Counts words per language across the indexed text."""

    def __init__(self):
        self._counters: Dict[str, Counter] = {}

    def add(self, language: str, text: str) -> None:
        self._counters.setdefault(language, Counter()).update(extract_words(text))

    def top_suggestions(
        self, min_frequency: int = 3, max_per_language: int = 50000
    ) -> List[Tuple[str, str, int]]:
        """Return (word, language, frequency) rows worth suggesting.

        Single-character words and words rarer than min_frequency are left
        out. Each language keeps its max_per_language most frequent words;
        ties keep first-seen order.
        """
        rows = []
        for language, counter in self._counters.items():
            candidates = [
                (word, freq)
                for word, freq in counter.most_common()
                if freq >= min_frequency and len(word) > 1
            ]
            rows.extend(
                (word, language, freq) for word, freq in candidates[:max_per_language]
            )
        return rows
