#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0
"""
CLI entry point for the canonfts command.

Usage:
    canonfts [--config PATH] [--input-dir DIR] [--tree FILE] [--output DB] [-v]
    canonfts --dump-defaults
"""
import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from . import cfgload
from .index import SetupError, build_index
from .logs import configure_logging
from .tree import TreeDefinitionError
from .ui import IndexingUI

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="canonfts",
        description="Build the full-text search database for a canonical text edition",
        epilog=(
            "config file search order (first found wins):\n"
            "  1. --config PATH argument\n"
            f"  2. {cfgload.CONFIG_ENV_VAR} environment variable (.env is honored)\n"
            "  3. ./config.yaml\n"
            "  4. ~/.config/canonfts/config.yaml\n"
            "  If none found, built-in defaults are used."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", help="Path to config.yaml (overrides auto-discovery)")
    parser.add_argument("--input-dir", help="Folder with the source JSON files")
    parser.add_argument("--tree", help="Tree definition JSON used to resolve node keys")
    parser.add_argument("--output", help="Output SQLite database path")
    parser.add_argument("--publish-dir", help="Copy the finished database into this folder")
    parser.add_argument("--batch-size", type=int,
                        help="Records per commit (0 = one commit per source file)")
    parser.add_argument("--suggestions", action="store_true",
                        help="Also build the auto-complete suggestions table")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Show diagnostic log messages")
    parser.add_argument("--dump-defaults", action="store_true",
                        help="Print all default configuration values as YAML, then exit")
    return parser


def _apply_overrides(config: dict, args: argparse.Namespace) -> dict:
    """Fold command line options into the loaded config."""
    if args.input_dir:
        config["paths"]["input_dir"] = args.input_dir
    if args.tree:
        config["paths"]["tree_json"] = args.tree
    if args.output:
        config["paths"]["output_db"] = args.output
    if args.publish_dir:
        config["paths"]["publish_dir"] = args.publish_dir
    if args.batch_size is not None:
        config["indexing"]["batch_size"] = args.batch_size
    if args.suggestions:
        config["suggestions"]["enabled"] = True
    return cfgload.validate_config(config)


def main(argv: list[str] | None = None) -> int:
    """Entry point for the `canonfts` command."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.dump_defaults:
        sys.stdout.write(cfgload.dump_defaults())
        return 0

    load_dotenv()
    ui = IndexingUI()

    try:
        config = cfgload.load_config(Path(args.config) if args.config else None)
        config = _apply_overrides(config, args)
        configure_logging(
            level=cfgload.get(config, "logging.level", "INFO"),
            verbose=args.verbose,
            log_file=cfgload.get(config, "logging.file") or None,
            max_size_mb=cfgload.get(config, "logging.max_size_mb", 10),
        )

        ui.print("=" * 70)
        ui.print(f"{cfgload.get(config, 'edition.name')} - Full-Text Search Database Generator")
        ui.print("=" * 70)
        ui.print(f"Database: {cfgload.get(config, 'paths.output_db')}")
        ui.print(f"Edition:  {cfgload.get(config, 'edition.id')}")
        ui.print("")

        with ui:
            summary = build_index(config, ui=ui)
    except (cfgload.ConfigError, SetupError, TreeDefinitionError) as e:
        ui.error(f"Error: {e}")
        return 1
    except Exception as e:
        logger.error(f"Indexing failed: {e}", exc_info=True)
        ui.error(f"Error: indexing failed: {e}")
        return 1

    ui.print("")
    ui.print_summary(summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
