#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0
"""Terminal output for the indexing run.

Two display modes:
- Step mode: "message... done"
- Progress mode: progress bar with a sub-line naming the current file

On a TTY the bar is redrawn in place with ANSI colors; otherwise a plain
line is printed every 10% so logs stay short.
"""
import sys
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from canonfts.index import IndexSummary


class IndexingUI:
    """Owns stdout writes for build_index()."""

    def __init__(self, stream=None):
        self._stream = stream or sys.stdout

        # ANSI color codes (disabled when stream is not a TTY)
        _s = self._stream
        self._tty = hasattr(_s, "isatty") and _s.isatty()
        self.RESET = "\033[0m" if self._tty else ""
        self.BOLD = "\033[1m" if self._tty else ""
        self.DIM = "\033[2m" if self._tty else ""
        self.GREEN = "\033[32m" if self._tty else ""
        self.YELLOW = "\033[33m" if self._tty else ""
        self.RED = "\033[31m" if self._tty else ""
        self.BOLD_GREEN = "\033[1;32m" if self._tty else ""

        self._step_message: str | None = None

        self._progress_active = False
        self._progress_total = 0
        self._progress_current = 0
        self._progress_desc = ""
        self._progress_unit = "file"
        self._progress_width = 30
        self._progress_file = ""
        self._progress_has_subline = False
        self._progress_last_pct = -1  # last printed percentage (non-TTY)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._step_message is not None:
            self.step_done("interrupted")
        if self._progress_active:
            self.progress_done()
        return False

    # -- step mode --

    def step_start(self, message: str) -> None:
        """Begin a step: prints 'message... '."""
        self._step_message = message
        self._write(f"{self.BOLD}{message}{self.RESET}... ")

    def step_done(self, suffix: str = "done") -> None:
        """Complete the current step with suffix."""
        if self._step_message is None:
            return
        self._step_message = None
        self._write(f"{self._color_suffix(suffix)}\n")

    # -- progress mode --

    def progress_start(self, total: int, desc: str = "Processing files", unit: str = "file") -> None:
        """Enter progress bar mode."""
        self._progress_active = True
        self._progress_total = max(total, 0)
        self._progress_current = 0
        self._progress_desc = desc
        self._progress_unit = unit
        self._progress_file = ""
        self._progress_has_subline = False
        self._progress_last_pct = -1
        if self._progress_total > 0:
            self._render_progress()

    def progress_update(self, step: int = 1) -> None:
        """Advance the progress bar."""
        if not self._progress_active or self._progress_total <= 0:
            return
        self._progress_current = min(self._progress_total, self._progress_current + step)
        self._render_progress()

    def progress_set_file(self, file_path: str) -> None:
        """Show the file being processed on the sub-line (TTY only)."""
        if not self._progress_active:
            return
        self._progress_file = file_path
        if self._tty:
            self._render_progress()

    def progress_done(self) -> None:
        """Exit progress bar mode."""
        if not self._progress_active:
            return
        if not self._tty:
            if self._progress_last_pct < 100 and self._progress_total > 0:
                self._write(
                    f"{self._progress_desc} "
                    f"[{self._progress_current}/{self._progress_total}] "
                    f"{int(self._progress_current / self._progress_total * 100)}%\n"
                )
        else:
            self._progress_file = ""
            self._render_progress()
            self._write("\n\n" if self._progress_has_subline else "\n")
        self._progress_active = False
        self._progress_has_subline = False

    def _render_progress(self) -> None:
        if self._progress_total <= 0:
            return
        progress = self._progress_current / self._progress_total

        if not self._tty:
            pct_int = int(progress * 100)
            threshold = (pct_int // 10) * 10
            if threshold <= self._progress_last_pct:
                return
            self._progress_last_pct = threshold
            self._write(
                f"{self._progress_desc} "
                f"[{self._progress_current}/{self._progress_total}] "
                f"{pct_int}%\n"
            )
            return

        filled = int(self._progress_width * progress)
        bar = (
            f"{self.GREEN}{'█' * filled}{self.RESET}"
            f"{self.DIM}{'░' * (self._progress_width - filled)}{self.RESET}"
        )

        if self._progress_has_subline:
            self._stream.write("\033[1A\r")

        pct = f"{progress * 100:5.1f}%"
        if progress >= 1.0:
            pct = f"{self.BOLD_GREEN}{pct}{self.RESET}"
        self._stream.write(
            f"\r\033[K{self.BOLD}{self._progress_desc}{self.RESET} [{bar}] "
            f"{pct}  {self.DIM}({self._progress_current}/{self._progress_total}){self.RESET}"
        )

        if self._progress_file:
            file_display = Path(self._progress_file).name
            if len(file_display) > 50:
                file_display = "..." + file_display[-47:]
            self._stream.write(f"\n\033[K  {self.DIM}{file_display}{self.RESET}")
            self._progress_has_subline = True
        elif self._progress_has_subline:
            self._stream.write("\n\033[K")

        self._stream.flush()

    # -- general output --

    def print(self, message: str) -> None:
        self._write(f"{message}\n")

    def success(self, message: str) -> None:
        self._write(f"{self.BOLD_GREEN}{message}{self.RESET}\n")

    def warning(self, message: str) -> None:
        self._write(f"{self.YELLOW}{message}{self.RESET}\n")

    def error(self, message: str) -> None:
        self._write(f"{self.RED}{message}{self.RESET}\n")

    def print_summary(self, summary: "IndexSummary") -> None:
        """Render the end-of-run summary."""
        self.success(
            f"Indexed {summary.entries_indexed:,} entries from "
            f"{summary.files_processed:,} of {summary.files_found:,} files"
        )
        if summary.entries_indexed:
            self.print(f"  Record ids: {summary.first_id}-{summary.last_id}")
        if summary.entries_dropped:
            self.print(f"  Dropped entries (empty after cleaning): {summary.entries_dropped:,}")
        if summary.files_without_anchors:
            self.print(
                f"  Files without tree anchors: {len(summary.files_without_anchors)} "
                f"({', '.join(summary.files_without_anchors[:5])}"
                f"{', ...' if len(summary.files_without_anchors) > 5 else ''})"
            )
        if summary.suggestions:
            self.print(f"  Suggestions: {summary.suggestions:,} words")
        if summary.database_bytes:
            self.print(f"  Database size: {summary.database_bytes / 1024 / 1024:.2f} MB")
        if summary.files_skipped:
            self.warning(f"Skipped {len(summary.files_skipped)} file(s):")
            for filename, reason in summary.files_skipped:
                self.warning(f"  {filename}: {reason}")

    # -- internal helpers --

    def _color_suffix(self, suffix: str) -> str:
        s = suffix.lower()
        if s in ("done", "no changes"):
            return f"{self.GREEN}{suffix}{self.RESET}"
        if s in ("skipped",):
            return f"{self.YELLOW}{suffix}{self.RESET}"
        if s in ("interrupted", "failed"):
            return f"{self.RED}{suffix}{self.RESET}"
        return suffix

    def _write(self, text: str) -> None:
        self._stream.write(text)
        self._stream.flush()
