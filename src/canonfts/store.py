#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0
"""SQLite storage for the search database.

The database holds, per edition:
    {edition}_fts          contentless FTS5 index (text only, bm25 ranking)
    {edition}_meta         metadata (filename, eind, language, type, level, nodeKey)
    {edition}_suggestions  optional word frequencies for auto-complete

The FTS index stores no text; the app fetches context from the source JSON
files using the metadata row that shares the FTS rowid.
"""

import logging
import re
import sqlite3
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

from canonfts.documents import IndexRecord

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Sinhala Unicode block
DEFAULT_TOKENCHAR_RANGES: Tuple[Tuple[int, int], ...] = ((0x0D80, 0x0DFF),)


def fts5_available() -> bool:
    """Check whether this SQLite build ships the FTS5 extension."""
    conn = sqlite3.connect(":memory:")
    try:
        conn.execute("CREATE VIRTUAL TABLE fts5_probe USING fts5(x)")
        return True
    except sqlite3.OperationalError:
        return False
    finally:
        conn.close()


def build_tokenchars(ranges: Iterable[Sequence[int]]) -> str:
    """Expand inclusive code point ranges into a tokenchars string.

    Quotes are skipped since the string is embedded in the tokenize option.
    """
    chars = []
    for start, end in ranges:
        for code_point in range(start, end + 1):
            char = chr(code_point)
            if char in ("'", '"'):
                continue
            chars.append(char)
    return "".join(chars)


def _check_identifier(name: str) -> str:
    if not _IDENTIFIER_RE.match(name):
        raise ValueError(f"Invalid table prefix: {name!r}")
    return name


class FtsIndex:
    """Contentless FTS5 table keyed by rowid."""

    def __init__(self, conn: sqlite3.Connection, table: str):
        self.conn = conn
        self.table = _check_identifier(table)

    def create(self, tokenchars: str = "", prefix: str = "") -> None:
        # FTS5 columns come before options; the tokenize directive needs
        # double quotes outside and single quotes inside.
        tokenize = "unicode61"
        if tokenchars:
            tokenize += f" tokenchars '{tokenchars}'"
        options = [f'tokenize="{tokenize}"']
        if prefix:
            if not re.match(r"^\d+( \d+)*$", prefix):
                raise ValueError(f"Invalid FTS5 prefix option: {prefix!r}")
            options.append(f"prefix='{prefix}'")
        self.conn.execute(f"DROP TABLE IF EXISTS {self.table}")
        self.conn.execute(
            f"""
            CREATE VIRTUAL TABLE {self.table} USING fts5(
                text,
                content='',
                {", ".join(options)}
            )
            """
        )

    def insert(self, rowid: int, text: str) -> None:
        self.conn.execute(
            f"INSERT INTO {self.table}(rowid, text) VALUES (?, ?)", (rowid, text)
        )


class MetadataTable:
    """Location metadata for each indexed entry, primary-keyed by the FTS rowid."""

    def __init__(self, conn: sqlite3.Connection, table: str):
        self.conn = conn
        self.table = _check_identifier(table)

    def create(self) -> None:
        self.conn.execute(f"DROP TABLE IF EXISTS {self.table}")
        self.conn.execute(
            f"""
            CREATE TABLE {self.table} (
                id INTEGER PRIMARY KEY,
                filename TEXT NOT NULL,
                eind TEXT NOT NULL,
                language TEXT NOT NULL,
                type TEXT NOT NULL,
                level INTEGER NOT NULL,
                nodeKey TEXT NOT NULL
            )
            """
        )
        self.conn.execute(
            f"CREATE INDEX idx_{self.table}_filename ON {self.table}(filename)"
        )
        self.conn.execute(
            f"CREATE INDEX idx_{self.table}_language ON {self.table}(language)"
        )
        # nodeKey is only read back with results, never filtered on

    def insert(self, record: IndexRecord) -> None:
        self.conn.execute(
            f"""
            INSERT INTO {self.table}(id, filename, eind, language, type, level, nodeKey)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                record.filename,
                record.position_label,
                record.language,
                record.category,
                record.level,
                record.node_key,
            ),
        )


class SearchStore:
    """Owns the database connection and writes both tables in lockstep.

    append() is the only way records reach the database: each call is one
    transaction that writes the metadata row and the FTS row for every record
    under the same id, or nothing at all.
    """

    def __init__(
        self,
        db_path: Path,
        edition_id: str,
        tokenchar_ranges: Iterable[Sequence[int]] = DEFAULT_TOKENCHAR_RANGES,
        prefix: str = "",
        journal_mode: str = "WAL",
    ):
        self.db_path = Path(db_path)
        self.edition_id = _check_identifier(edition_id)
        self.tokenchars = build_tokenchars(tokenchar_ranges)
        self.prefix = prefix

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.db_path)
        if journal_mode:
            if not _IDENTIFIER_RE.match(journal_mode):
                raise ValueError(f"Invalid journal mode: {journal_mode!r}")
            self.conn.execute(f"PRAGMA journal_mode = {journal_mode}")

        self.fts = FtsIndex(self.conn, f"{edition_id}_fts")
        self.meta = MetadataTable(self.conn, f"{edition_id}_meta")
        self.suggestions_table = f"{edition_id}_suggestions"

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def create_tables(self, with_suggestions: bool = False) -> None:
        """Drop and recreate the edition's tables."""
        with self.conn:
            self.meta.create()
            self.fts.create(tokenchars=self.tokenchars, prefix=self.prefix)
            self.conn.execute(f"DROP TABLE IF EXISTS {self.suggestions_table}")
            if with_suggestions:
                self._create_suggestions_table()
        logger.info(f"Created tables {self.fts.table} and {self.meta.table}")

    def _create_suggestions_table(self) -> None:
        table = self.suggestions_table
        self.conn.execute(
            f"""
            CREATE TABLE {table} (
                word TEXT PRIMARY KEY,
                language TEXT NOT NULL,
                frequency INTEGER NOT NULL
            )
            """
        )
        self.conn.execute(f"CREATE INDEX idx_{table}_word ON {table}(word)")
        self.conn.execute(f"CREATE INDEX idx_{table}_lang ON {table}(language)")

    def append(self, records: Sequence[IndexRecord]) -> int:
        """Write a batch of records to both tables in one transaction.

        Returns:
            Number of records written

        Raises:
            Any error from the inserts, after the whole batch was rolled back
        """
        if not records:
            return 0
        with self.conn:
            for record in records:
                self.meta.insert(record)
                self.fts.insert(record.id, record.text)
        return len(records)

    def save_suggestions(self, rows: Sequence[Tuple[str, str, int]]) -> int:
        """Store (word, language, frequency) rows in one transaction."""
        with self.conn:
            self.conn.executemany(
                f"""
                INSERT OR REPLACE INTO {self.suggestions_table}(word, language, frequency)
                VALUES (?, ?, ?)
                """,
                rows,
            )
        return len(rows)

    def count_records(self) -> int:
        return self.conn.execute(f"SELECT count(*) FROM {self.meta.table}").fetchone()[0]

    def vacuum(self) -> None:
        self.conn.execute("VACUUM")

    def size_bytes(self) -> int:
        return self.db_path.stat().st_size if self.db_path.exists() else 0

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None


class BatchWriter:
    """Accumulates records and commits them through SearchStore.append().

    With batch_size 0 a batch is whatever was added between two flush()
    calls (the pipeline flushes once per source file). A positive batch_size
    additionally commits every batch_size records.
    """

    def __init__(self, store: SearchStore, batch_size: int = 0):
        if batch_size < 0:
            raise ValueError("batch_size must be >= 0")
        self.store = store
        self.batch_size = batch_size
        self._pending: List[IndexRecord] = []
        self.committed = 0
        self.batches = 0

    def add(self, record: IndexRecord) -> None:
        self._pending.append(record)
        if self.batch_size and len(self._pending) >= self.batch_size:
            self.flush()

    def flush(self) -> int:
        """Commit pending records. On failure they are discarded and the error re-raised."""
        if not self._pending:
            return 0
        batch, self._pending = self._pending, []
        written = self.store.append(batch)
        self.committed += written
        self.batches += 1
        return written
