"""
Card library: collection hierarchy and card editing.
"""

from .editor import CardDraft, CardEditBuffer
from .hierarchy import (
    CollectionNode,
    build_tree,
    children_of,
    find_path,
    is_root,
    root_collections,
)

__all__ = [
    "CardDraft",
    "CardEditBuffer",
    "CollectionNode",
    "build_tree",
    "children_of",
    "find_path",
    "is_root",
    "root_collections",
]
