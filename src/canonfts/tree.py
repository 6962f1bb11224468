#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0
"""Section tree loading and per-file anchor maps.

The tree definition maps each node key to a positional record::

    {nodeKey: [paliName, sinhName, level, [pageIndex, entryIndex], parentKey, filename], ...}

Only the filename and the [pageIndex, entryIndex] anchor are used here. Nodes
without a filename are structural (they group other nodes) and own no
indexed text, so they never become anchors.
"""

import json
import logging
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple

logger = logging.getLogger(__name__)

Position = Tuple[int, int]

# [displayName..., level, position, parentKey, filename]
_MIN_RECORD_FIELDS = 4


class TreeDefinitionError(Exception):
    """Raised when the tree definition is missing or malformed."""


@dataclass(frozen=True)
class Anchor:
    """Start position of a tree node inside one source file."""

    key: str
    position: Position


AnchorMap = Dict[str, Tuple[Anchor, ...]]


def load_tree(tree_path: Path) -> Dict[str, Any]:
    """Read and parse the tree definition JSON.

    Raises:
        TreeDefinitionError: If the file is missing, unreadable, or not a JSON object
    """
    tree_path = Path(tree_path)
    if not tree_path.is_file():
        raise TreeDefinitionError(f"Tree file not found: {tree_path}")

    try:
        with open(tree_path, "r", encoding="utf-8") as f:
            tree = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise TreeDefinitionError(f"Failed to read tree file {tree_path}: {e}") from e

    if not isinstance(tree, dict):
        raise TreeDefinitionError(
            f"Tree file {tree_path} must contain an object keyed by node key"
        )
    return tree


def _parse_position(node_key: str, raw: Any) -> Position:
    if (
        not isinstance(raw, (list, tuple))
        or len(raw) != 2
        or not all(isinstance(v, int) and not isinstance(v, bool) and v >= 0 for v in raw)
    ):
        raise TreeDefinitionError(
            f"Node {node_key!r} has an invalid position {raw!r}; "
            "expected [pageIndex, entryIndex] with non-negative integers"
        )
    return raw[0], raw[1]


def build_anchor_map(tree: Mapping[str, Any]) -> AnchorMap:
    """Group tree nodes by filename and sort each group by position.

    Args:
        tree: Mapping of node key to positional record

    Returns:
        Dict mapping filename to a tuple of anchors sorted by (page, entry).
        Anchors sharing a position keep their tree order.

    Raises:
        TreeDefinitionError: If a record is malformed
    """
    if not isinstance(tree, Mapping):
        raise TreeDefinitionError("Tree definition must be a mapping of node key to record")

    anchors_by_file: Dict[str, List[Anchor]] = defaultdict(list)

    for node_key, record in tree.items():
        if not isinstance(record, (list, tuple)) or len(record) < _MIN_RECORD_FIELDS:
            raise TreeDefinitionError(
                f"Node {node_key!r} has a malformed record: {record!r}"
            )

        filename = record[-1]
        if not filename:
            continue
        if not isinstance(filename, str):
            raise TreeDefinitionError(
                f"Node {node_key!r} has a non-string filename: {filename!r}"
            )

        position = _parse_position(node_key, record[-3])
        anchors_by_file[filename].append(Anchor(key=str(node_key), position=position))

    anchor_map: AnchorMap = {
        filename: tuple(sorted(anchors, key=lambda a: a.position))
        for filename, anchors in anchors_by_file.items()
    }

    logger.info(
        f"Loaded {sum(len(a) for a in anchor_map.values())} anchors "
        f"for {len(anchor_map)} content files"
    )
    return anchor_map


def load_anchor_map(tree_path: Path) -> AnchorMap:
    """Load the tree definition and build its anchor map."""
    return build_anchor_map(load_tree(tree_path))
