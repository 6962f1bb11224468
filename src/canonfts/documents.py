#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0
"""Source documents and the entry stream that turns them into index records.

A source document is a JSON file holding pages; each page carries one track
per language, and each track an ordered list of entries::

    {"pages": [{"pali": {"entries": [{"text": "...", "type": "heading", "level": 2}, ...]},
                "sinh": {"entries": [...]}}, ...]}
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Sequence

from canonfts.containment import find_node_key
from canonfts.text import clean_text_for_indexing, format_position_label
from canonfts.tree import Anchor

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGES = ("pali", "sinh")
DEFAULT_CATEGORY = "paragraph"
DEFAULT_LEVEL = 0


class DocumentFormatError(Exception):
    """Raised when a source document cannot be parsed or lacks expected structure."""


@dataclass
class SourceEntry:
    """One entry of a language track, as read from the source document."""

    raw_text: str
    page_index: int
    entry_index: int
    language: str
    category: str = DEFAULT_CATEGORY
    level: int = DEFAULT_LEVEL

    @property
    def position(self) -> tuple[int, int]:
        return self.page_index, self.entry_index


@dataclass
class SourceDocument:
    """A parsed source document.

    pages[i] maps language -> entries of that page, in configured language order.
    """

    filename: str
    pages: List[Dict[str, List[SourceEntry]]] = field(default_factory=list)


@dataclass(frozen=True)
class IndexRecord:
    """Unit committed to both the token index and the metadata table."""

    id: int
    filename: str
    position_label: str
    language: str
    category: str
    level: int
    node_key: str
    text: str


class IdAllocator:
    """Hands out strictly increasing record ids for one indexing run.

    One allocator is shared by every file of a run, so ids never repeat
    across files. Documents are validated in full before any id is
    allocated, so a skipped file consumes none.
    """

    def __init__(self, start: int = 1):
        self._next = start

    @property
    def next_id(self) -> int:
        return self._next

    def allocate(self) -> int:
        allocated = self._next
        self._next += 1
        return allocated


@dataclass
class ProcessingStats:
    """Counts entries emitted and dropped by iter_index_records()."""

    emitted: int = 0
    dropped: int = 0


def _parse_entries(
    filename: str,
    page_index: int,
    language: str,
    raw_entries: Any,
    default_category: str,
    default_level: int,
) -> List[SourceEntry]:
    if not isinstance(raw_entries, list):
        raise DocumentFormatError(
            f"{filename}: page {page_index} {language} entries is not a list"
        )

    entries = []
    for entry_index, raw in enumerate(raw_entries):
        if not isinstance(raw, dict):
            raise DocumentFormatError(
                f"{filename}: entry {page_index}-{entry_index} ({language}) is not an object"
            )
        where = f"{filename}: entry {page_index}-{entry_index} ({language})"

        text = raw.get("text")
        if text is None:
            text = ""
        elif not isinstance(text, str):
            raise DocumentFormatError(f"{where} has non-string text")
        try:
            # JSON escapes can produce lone surrogates that SQLite cannot bind
            text.encode("utf-8")
        except UnicodeEncodeError as e:
            raise DocumentFormatError(f"{where} has text that is not valid UTF-8: {e}") from e

        level = raw.get("level") or default_level
        if not isinstance(level, int) or isinstance(level, bool) or level < 0:
            raise DocumentFormatError(f"{where} has invalid level {level!r}")

        category = raw.get("type")
        if category is None:
            category = default_category
        elif not isinstance(category, str) or not category:
            raise DocumentFormatError(f"{where} has invalid type {category!r}")

        entries.append(
            SourceEntry(
                raw_text=text,
                page_index=page_index,
                entry_index=entry_index,
                language=language,
                category=category,
                level=level,
            )
        )
    return entries


def parse_document(
    filename: str,
    data: Any,
    languages: Sequence[str] = DEFAULT_LANGUAGES,
    default_category: str = DEFAULT_CATEGORY,
    default_level: int = DEFAULT_LEVEL,
) -> SourceDocument:
    """Validate decoded JSON and build a SourceDocument.

    The whole structure is checked before anything is returned, so a
    malformed file fails before any of its entries reach the index.

    Raises:
        DocumentFormatError: If the structure is not as expected
    """
    if not isinstance(data, dict) or not isinstance(data.get("pages"), list):
        raise DocumentFormatError(f"{filename}: no pages array found")

    document = SourceDocument(filename=filename)
    for page_index, page in enumerate(data["pages"]):
        if not isinstance(page, dict):
            raise DocumentFormatError(f"{filename}: page {page_index} is not an object")

        tracks: Dict[str, List[SourceEntry]] = {}
        for language in languages:
            track = page.get(language)
            if not track:
                continue
            if not isinstance(track, dict):
                raise DocumentFormatError(
                    f"{filename}: page {page_index} {language} track is not an object"
                )
            if not track.get("entries"):
                continue
            tracks[language] = _parse_entries(
                filename,
                page_index,
                language,
                track["entries"],
                default_category,
                default_level,
            )
        document.pages.append(tracks)

    return document


def load_document(
    path: Path,
    languages: Sequence[str] = DEFAULT_LANGUAGES,
    default_category: str = DEFAULT_CATEGORY,
    default_level: int = DEFAULT_LEVEL,
) -> SourceDocument:
    """Read one source document. Its filename key is the file stem.

    Raises:
        DocumentFormatError: If the file cannot be read, decoded or validated
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DocumentFormatError(f"{path.name}: {e}") from e

    return parse_document(path.stem, data, languages, default_category, default_level)


def iter_index_records(
    document: SourceDocument,
    anchors: Sequence[Anchor],
    allocator: IdAllocator,
    stats: ProcessingStats | None = None,
) -> Iterator[IndexRecord]:
    """Yield index records for a document, page by page, track by track.

    Entries that clean to empty text are dropped and do not consume an id.

    Args:
        document: Parsed source document
        anchors: The file's anchors, sorted by position (may be empty)
        allocator: Run-wide id allocator
        stats: Optional counters updated as records are produced
    """
    for tracks in document.pages:
        for language, entries in tracks.items():
            for entry in entries:
                text = clean_text_for_indexing(entry.raw_text)
                if not text:
                    if stats is not None:
                        stats.dropped += 1
                    continue

                record = IndexRecord(
                    id=allocator.allocate(),
                    filename=document.filename,
                    position_label=format_position_label(entry.page_index, entry.entry_index),
                    language=language,
                    category=entry.category,
                    level=entry.level,
                    node_key=find_node_key(anchors, entry.position),
                    text=text,
                )
                if stats is not None:
                    stats.emitted += 1
                yield record
