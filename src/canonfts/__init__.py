# SPDX-License-Identifier: Apache-2.0
"""Full-text search database builder for hierarchically organized canonical texts."""

from canonfts.containment import find_node_key, resolve_node_key_linear
from canonfts.documents import IdAllocator, IndexRecord, iter_index_records, load_document
from canonfts.index import IndexSummary, SetupError, build_index
from canonfts.store import BatchWriter, SearchStore
from canonfts.text import clean_text_for_indexing
from canonfts.tree import Anchor, TreeDefinitionError, build_anchor_map, load_anchor_map

__version__ = "0.1.0"

__all__ = [
    "Anchor",
    "BatchWriter",
    "IdAllocator",
    "IndexRecord",
    "IndexSummary",
    "SearchStore",
    "SetupError",
    "TreeDefinitionError",
    "build_anchor_map",
    "build_index",
    "clean_text_for_indexing",
    "find_node_key",
    "iter_index_records",
    "load_anchor_map",
    "load_document",
    "resolve_node_key_linear",
]
