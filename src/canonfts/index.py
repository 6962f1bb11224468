#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0
"""
Indexing pipeline for building the full-text search database of an edition.

One run reads every source JSON file, assigns each non-empty entry a record id
and the tree node that contains it, and writes the records to a contentless
FTS5 index and a metadata table sharing the same ids. Output tables are
dropped and rebuilt on every run.
"""
import io
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple

from canonfts import cfgload
from canonfts.documents import (
    DocumentFormatError,
    IdAllocator,
    ProcessingStats,
    iter_index_records,
    load_document,
)
from canonfts.store import BatchWriter, SearchStore, fts5_available
from canonfts.suggestions import WordFrequency
from canonfts.tree import load_anchor_map
from canonfts.ui import IndexingUI

logger = logging.getLogger(__name__)


class SetupError(Exception):
    """Raised when required inputs are missing; nothing has been written yet."""


@dataclass
class IndexSummary:
    """Outcome of one indexing run."""

    files_found: int = 0
    files_processed: int = 0
    files_skipped: List[Tuple[str, str]] = field(default_factory=list)
    files_without_anchors: List[str] = field(default_factory=list)
    entries_indexed: int = 0
    entries_dropped: int = 0
    first_id: int | None = None
    last_id: int | None = None
    suggestions: int = 0
    database_bytes: int = 0
    published_to: Path | None = None


def check_inputs(tree_path: Path, input_dir: Path) -> None:
    """Fail fast on missing inputs, before any store mutation.

    Raises:
        SetupError: If the tree file or input directory does not exist
    """
    if not tree_path.is_file():
        raise SetupError(f"Tree file not found: {tree_path}")
    if not input_dir.is_dir():
        raise SetupError(f"Input folder not found: {input_dir}")


def discover_source_files(input_dir: Path) -> List[Path]:
    """Return the source JSON files of input_dir sorted by name."""
    return sorted(
        (p for p in input_dir.iterdir() if p.suffix == ".json" and p.is_file()),
        key=lambda p: p.name,
    )


def publish_database(db_path: Path, publish_dir: Path) -> Path:
    """Copy the finished database into publish_dir, creating it if needed."""
    publish_dir.mkdir(parents=True, exist_ok=True)
    target = publish_dir / db_path.name
    if target.resolve() == db_path.resolve():
        return target
    shutil.copyfile(db_path, target)
    logger.info(f"Copied database to {target}")
    return target


def build_index(config: Dict[str, Any] | None = None, ui: IndexingUI | None = None) -> IndexSummary:
    """Build the search database described by config.

    Args:
        config: Configuration dict (see cfgload); defaults when None
        ui: Terminal output; a silent UI is used when None

    Returns:
        IndexSummary for the run

    Raises:
        SetupError: Missing inputs or no FTS5 support (nothing written)
        TreeDefinitionError: Malformed tree definition (nothing written)
        sqlite3.Error: Storage failure; the run is aborted
    """
    if config is None:
        config = cfgload.load_config()
    if ui is None:
        ui = IndexingUI(stream=io.StringIO())

    edition_id = cfgload.get(config, "edition.id")
    edition_name = cfgload.get(config, "edition.name", edition_id)
    input_dir = Path(cfgload.get(config, "paths.input_dir"))
    tree_path = Path(cfgload.get(config, "paths.tree_json"))
    output_db = Path(cfgload.get(config, "paths.output_db"))
    publish_dir = cfgload.get(config, "paths.publish_dir") or ""

    languages = cfgload.get(config, "indexing.languages")
    default_type = cfgload.get(config, "indexing.default_type", "paragraph")
    default_level = cfgload.get(config, "indexing.default_level", 0)
    batch_size = cfgload.get(config, "indexing.batch_size", 0)

    suggestions_enabled = bool(cfgload.get(config, "suggestions.enabled", False))

    check_inputs(tree_path, input_dir)
    if not fts5_available():
        raise SetupError("This SQLite build has no FTS5 support")

    logger.info(f"Building {edition_name} ({edition_id}) search database at {output_db}")

    ui.step_start("Loading tree definition")
    try:
        anchor_map = load_anchor_map(tree_path)
    except Exception:
        ui.step_done("failed")
        raise
    ui.step_done(f"{len(anchor_map)} content files")

    source_files = discover_source_files(input_dir)
    summary = IndexSummary(files_found=len(source_files))
    ui.print(f"Found {len(source_files)} JSON files to process")

    allocator = IdAllocator(start=1)
    frequencies = WordFrequency() if suggestions_enabled else None

    with SearchStore(
        output_db,
        edition_id,
        tokenchar_ranges=cfgload.get(config, "tokenizer.tokenchar_ranges", []) or [],
        prefix=cfgload.get(config, "tokenizer.prefix", "") or "",
        journal_mode=cfgload.get(config, "storage.journal_mode", "WAL"),
    ) as store:
        ui.step_start("Creating tables")
        store.create_tables(with_suggestions=suggestions_enabled)
        ui.step_done()

        writer = BatchWriter(store, batch_size=batch_size)

        ui.progress_start(len(source_files), desc="Indexing files", unit="file")
        for path in source_files:
            ui.progress_set_file(str(path))
            stats = ProcessingStats()
            try:
                document = load_document(
                    path,
                    languages=languages,
                    default_category=default_type,
                    default_level=default_level,
                )
            except DocumentFormatError as e:
                logger.warning(f"Skipping {path.name}: {e}")
                summary.files_skipped.append((path.name, str(e)))
                ui.progress_update()
                continue

            anchors = anchor_map.get(document.filename, ())
            if not anchors:
                summary.files_without_anchors.append(document.filename)
                logger.debug(f"No tree anchors for {document.filename}")

            for record in iter_index_records(document, anchors, allocator, stats):
                writer.add(record)
                if frequencies is not None:
                    frequencies.add(record.language, record.text)
            writer.flush()

            summary.files_processed += 1
            summary.entries_indexed += stats.emitted
            summary.entries_dropped += stats.dropped
            ui.progress_update()
        ui.progress_done()
        logger.info(f"Committed {writer.committed} records in {writer.batches} batches")

        if summary.entries_indexed:
            summary.first_id = 1
            summary.last_id = allocator.next_id - 1

        if frequencies is not None:
            ui.step_start("Saving suggestions")
            rows = frequencies.top_suggestions(
                min_frequency=cfgload.get(config, "suggestions.min_frequency", 3),
                max_per_language=cfgload.get(config, "suggestions.max_per_language", 50000),
            )
            summary.suggestions = store.save_suggestions(rows)
            ui.step_done(f"{summary.suggestions:,} words")

        if cfgload.get(config, "storage.vacuum", True):
            ui.step_start("Optimizing database")
            store.vacuum()
            ui.step_done()

        summary.database_bytes = store.size_bytes()

    if publish_dir:
        summary.published_to = publish_database(output_db, Path(publish_dir))
        ui.print(f"Copied database to {summary.published_to}")

    logger.info(
        f"Indexed {summary.entries_indexed} entries from {summary.files_processed} files "
        f"({len(summary.files_skipped)} skipped)"
    )
    return summary
