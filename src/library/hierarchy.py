"""
Collection hierarchy.

The API returns a user's collections as a flat list where each entry
points at its parent. These helpers rebuild the tree for display.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.core.models import FlashCardCollection


@dataclass
class CollectionNode:
    """A collection and its sub-collections."""

    collection: FlashCardCollection
    children: list[CollectionNode] = field(default_factory=list)

    @property
    def card_count(self) -> int:
        """Cards in this collection and every descendant."""
        return self.collection.flash_card_count + sum(c.card_count for c in self.children)

    def walk(self, depth: int = 0):
        """Yield (depth, node) pairs depth-first."""
        yield depth, self
        for child in self.children:
            yield from child.walk(depth + 1)


def is_root(collection: FlashCardCollection) -> bool:
    # Roots come back as null, but are created with parentId 0
    return not collection.parent_id


def root_collections(collections: list[FlashCardCollection]) -> list[FlashCardCollection]:
    return [c for c in collections if is_root(c)]


def children_of(
    collections: list[FlashCardCollection], parent_id: int
) -> list[FlashCardCollection]:
    return [c for c in collections if c.parent_id == parent_id]


def build_tree(collections: list[FlashCardCollection]) -> list[CollectionNode]:
    """
    Nest a flat collection list.

    Collections whose parent is missing from the list are promoted to
    roots, and each collection appears at most once even if the parent
    links form a cycle.
    """
    known_ids = {c.id for c in collections}
    placed: set[int] = set()

    def attach(collection: FlashCardCollection) -> CollectionNode:
        placed.add(collection.id)
        node = CollectionNode(collection)
        for child in children_of(collections, collection.id):
            if child.id not in placed:
                node.children.append(attach(child))
        return node

    roots = [c for c in collections if is_root(c) or c.parent_id not in known_ids]
    forest = [attach(c) for c in roots if c.id not in placed]

    # Anything left over sits on a parent cycle; show it at the top level
    for collection in collections:
        if collection.id not in placed:
            forest.append(attach(collection))
    return forest


def find_path(collections: list[FlashCardCollection], collection_id: int) -> list[FlashCardCollection]:
    """Ancestors of a collection from the root down, including itself."""
    by_id = {c.id: c for c in collections}
    path: list[FlashCardCollection] = []
    current = by_id.get(collection_id)
    while current is not None and current not in path:
        path.append(current)
        current = by_id.get(current.parent_id) if current.parent_id else None
    return list(reversed(path))
