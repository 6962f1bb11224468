#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0
"""
Shared configuration loading for canonfts.

Loads configuration from config.yaml and merges it over built-in defaults.
"""
import copy
import os
import re
from pathlib import Path
from typing import Any

import yaml


CONFIG_ENV_VAR = "CANONFTS_CONFIG"

_DEFAULTS: dict[str, Any] = {
    "edition": {
        "id": "bjt",
        "name": "Buddha Jayanti Tripitaka",
    },
    "paths": {
        "input_dir": "./assets/text",
        "tree_json": "./assets/data/tree.json",
        "output_db": "./assets/databases/bjt-fts.db",
        "publish_dir": "",
    },
    "indexing": {
        "languages": ["pali", "sinh"],
        "default_type": "paragraph",
        "default_level": 0,
        "batch_size": 0,
    },
    "tokenizer": {
        # Sinhala Unicode block, kept inside tokens by unicode61
        "tokenchar_ranges": [[0x0D80, 0x0DFF]],
        "prefix": "",
    },
    "suggestions": {
        "enabled": False,
        "min_frequency": 3,
        "max_per_language": 50000,
    },
    "storage": {
        "journal_mode": "WAL",
        "vacuum": True,
    },
    "logging": {
        "level": "INFO",
        "file": "",
        "max_size_mb": 10,
    },
}

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class ConfigError(ValueError):
    """Raised when the configuration file is missing or invalid."""


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge override into base, returning a new dict."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def find_config_path(config_path: Path | None = None) -> Path | None:
    """Locate the config file to use.

    Search order (first found wins):
        1. explicit config_path argument
        2. CANONFTS_CONFIG environment variable
        3. ./config.yaml
        4. ~/.config/canonfts/config.yaml

    An explicit path or environment variable that points nowhere is an error;
    the two implicit locations are optional.
    """
    if config_path is not None:
        if not config_path.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
        return config_path

    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        path = Path(env_path)
        if not path.is_file():
            raise ConfigError(f"{CONFIG_ENV_VAR} points to a missing file: {path}")
        return path

    for candidate in (
        Path.cwd() / "config.yaml",
        Path.home() / ".config" / "canonfts" / "config.yaml",
    ):
        if candidate.is_file():
            return candidate
    return None


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration from YAML with defaults.

    Args:
        config_path: Optional path to config file. If None, the discovery
            order of find_config_path() applies.

    Returns:
        Configuration dictionary with defaults merged in.

    Raises:
        ConfigError: If the file cannot be parsed or holds invalid values.
    """
    path = find_config_path(config_path)
    if path is None:
        return validate_config(copy.deepcopy(_DEFAULTS))

    try:
        with open(path, "r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if user_config is None:
        user_config = {}
    if not isinstance(user_config, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level")

    return validate_config(_deep_merge(_DEFAULTS, user_config))


def validate_config(config: dict[str, Any]) -> dict[str, Any]:
    """Check values that would otherwise fail deep inside the pipeline."""
    edition_id = str(get(config, "edition.id", ""))
    if not _IDENTIFIER_RE.match(edition_id):
        raise ConfigError(
            f"edition.id must be a plain identifier (letters, digits, underscore): {edition_id!r}"
        )

    batch_size = get(config, "indexing.batch_size", 0)
    if not isinstance(batch_size, int) or isinstance(batch_size, bool) or batch_size < 0:
        raise ConfigError(f"indexing.batch_size must be a non-negative integer: {batch_size!r}")

    languages = get(config, "indexing.languages", [])
    if not languages or not all(isinstance(lang, str) and lang for lang in languages):
        raise ConfigError("indexing.languages must be a non-empty list of track names")

    for pair in get(config, "tokenizer.tokenchar_ranges", []) or []:
        if (
            not isinstance(pair, (list, tuple))
            or len(pair) != 2
            or not all(isinstance(cp, int) for cp in pair)
            or pair[0] > pair[1]
        ):
            raise ConfigError(f"tokenizer.tokenchar_ranges entries must be [start, end]: {pair!r}")

    return config


def get(config: dict[str, Any], key: str, default: Any = None) -> Any:
    """Get a config value by dot-notation key.

    Example:
        >>> get(load_config(), 'indexing.batch_size')
        0
    """
    value: Any = config
    for k in key.split("."):
        if isinstance(value, dict) and k in value:
            value = value[k]
        else:
            return default
    return value


def dump_defaults() -> str:
    """Return the built-in defaults rendered as YAML."""
    return yaml.safe_dump(_DEFAULTS, default_flow_style=False, sort_keys=False)
