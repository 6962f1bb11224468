#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0
"""Containment resolution: which tree node holds a given entry position.

Anchors mark where a section starts, so an entry belongs to the latest
anchor whose position is not after the entry. Positions compare
lexicographically on (page index, entry index).
"""

from typing import Sequence

from canonfts.tree import Anchor, Position

NO_NODE_KEY = ""


def resolve_node_key_linear(anchors: Sequence[Anchor], position: Position) -> str:
    """Reference resolver: reverse scan over anchors sorted by position.

    Args:
        anchors: Anchors of one file, sorted ascending by position
        position: (page_index, entry_index) of the entry

    Returns:
        Key of the last anchor at or before position. Falls back to the first
        anchor when position precedes all of them, and to NO_NODE_KEY when
        the file has no anchors.
    """
    if not anchors:
        return NO_NODE_KEY

    for anchor in reversed(anchors):
        if anchor.position <= position:
            return anchor.key

    return anchors[0].key


def find_node_key(anchors: Sequence[Anchor], position: Position) -> str:
    """Binary-search resolver, returns the same key as resolve_node_key_linear().

    Finds the rightmost anchor with anchor.position <= position, so among
    anchors sharing a position the last one in sort order wins.
    """
    if not anchors:
        return NO_NODE_KEY

    # Invariant: anchors[:left] are all <= position, anchors[right:] are all >.
    left, right = 0, len(anchors)
    while left < right:
        mid = (left + right) // 2
        if anchors[mid].position <= position:
            left = mid + 1
        else:
            right = mid

    if left == 0:
        return anchors[0].key
    return anchors[left - 1].key
