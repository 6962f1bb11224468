#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0
"""Logging setup for the indexing command."""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

VERBOSE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
PLAIN_FORMAT = "%(message)s"


def rotate_log_if_needed(
    log_path: Path | str,
    max_size_mb: float = 10,
) -> Path | None:
    """Rotate log file if it exists and is over the size limit.

    Args:
        log_path: Path to the log file
        max_size_mb: Maximum log file size in megabytes before rotation

    Returns:
        Path of the rotated file, or None if no rotation happened
    """
    log_path = Path(log_path)
    max_size_bytes = max_size_mb * 1024 * 1024

    if not log_path.exists() or log_path.stat().st_size <= max_size_bytes:
        return None

    # Timestamp plus pid so two runs rotating at once don't collide
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    rotated_path = log_path.parent / f"{log_path.stem}_{timestamp}_{os.getpid()}.log"
    log_path.rename(rotated_path)
    log_path.touch()
    return rotated_path


def configure_logging(
    level: str | int = "INFO",
    verbose: bool = False,
    log_file: Path | str | None = None,
    max_size_mb: float = 10,
) -> None:
    """Configure root logging for a run.

    Console output goes to stderr; warnings always pass, info messages only
    when verbose. A log file, if given, receives everything at `level` with
    timestamps and is rotated first when it has grown past max_size_mb.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level if verbose else max(level, logging.WARNING))
    console.setFormatter(logging.Formatter(VERBOSE_FORMAT if verbose else PLAIN_FORMAT))
    handlers: list[logging.Handler] = [console]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        rotate_log_if_needed(log_path, max_size_mb)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(VERBOSE_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)
