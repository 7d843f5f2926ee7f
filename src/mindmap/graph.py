"""
Mind-map structure.

A mind map is a set of nodes, each pointing at one flashcard and
optionally at a parent node. A node with ``hide_children`` set collapses
its whole subtree. Drawing and pan/zoom are left to whatever renders the
map; this module only answers structural questions.
"""

from __future__ import annotations

import random
from collections.abc import Iterator
from dataclasses import dataclass, field

from src.core.models import MindMapNodeUpdate, MindMapNodeWithFlashCard

COLOR_PRESETS = [
    "#3B82F6",  # Blue
    "#10B981",  # Green
    "#EF4444",  # Red
    "#F59E0B",  # Amber
    "#8B5CF6",  # Purple
    "#EC4899",  # Pink
    "#06B6D4",  # Cyan
    "#F97316",  # Orange
]

# Area where new nodes are dropped
NEW_NODE_ORIGIN = (400.0, 300.0)
NEW_NODE_SPREAD = 200.0


def hidden_node_ids(nodes: list[MindMapNodeWithFlashCard]) -> set[int]:
    """Ids of every node below a collapsed node."""
    children: dict[int, list[int]] = {}
    for node in nodes:
        if node.parent_node_id is not None:
            children.setdefault(node.parent_node_id, []).append(node.id)

    hidden: set[int] = set()
    stack = [node.id for node in nodes if node.hide_children]
    while stack:
        for child_id in children.get(stack.pop(), []):
            if child_id not in hidden:
                hidden.add(child_id)
                stack.append(child_id)
    return hidden


def visible_nodes(nodes: list[MindMapNodeWithFlashCard]) -> list[MindMapNodeWithFlashCard]:
    hidden = hidden_node_ids(nodes)
    return [node for node in nodes if node.id not in hidden]


def connections(
    nodes: list[MindMapNodeWithFlashCard],
) -> list[tuple[MindMapNodeWithFlashCard, MindMapNodeWithFlashCard]]:
    """(parent, child) pairs to draw between visible nodes."""
    by_id = {node.id: node for node in nodes}
    edges = []
    for node in visible_nodes(nodes):
        if node.parent_node_id is None:
            continue
        parent = by_id.get(node.parent_node_id)
        if parent is None or parent.hide_children:
            continue
        edges.append((parent, node))
    return edges


def new_node_position(rng: random.Random | None = None) -> tuple[float, float]:
    rng = rng or random.Random()
    x0, y0 = NEW_NODE_ORIGIN
    return x0 + rng.random() * NEW_NODE_SPREAD, y0 + rng.random() * NEW_NODE_SPREAD


def position_updates(
    nodes: list[MindMapNodeWithFlashCard],
) -> list[tuple[int, MindMapNodeUpdate]]:
    """Batch payload that saves the current position of every node."""
    return [
        (node.id, MindMapNodeUpdate(position_x=node.position_x, position_y=node.position_y))
        for node in nodes
    ]


@dataclass
class NodeTree:
    node: MindMapNodeWithFlashCard
    children: list[NodeTree] = field(default_factory=list)

    def walk(self, depth: int = 0) -> Iterator[tuple[int, NodeTree]]:
        yield depth, self
        for child in self.children:
            yield from child.walk(depth + 1)


def build_forest(nodes: list[MindMapNodeWithFlashCard]) -> list[NodeTree]:
    """
    Nest visible nodes under their parents; orphans become roots.

    Every visible node appears exactly once, even when parent links
    form a cycle.
    """
    shown = visible_nodes(nodes)
    shown_ids = {node.id for node in shown}
    children: dict[int, list[MindMapNodeWithFlashCard]] = {}
    for node in shown:
        if node.parent_node_id is not None:
            children.setdefault(node.parent_node_id, []).append(node)

    placed: set[int] = set()

    def attach(node: MindMapNodeWithFlashCard) -> NodeTree:
        placed.add(node.id)
        tree = NodeTree(node)
        for child in children.get(node.id, []):
            if child.id not in placed:
                tree.children.append(attach(child))
        return tree

    roots = [
        node
        for node in shown
        if node.parent_node_id is None
        or node.parent_node_id not in shown_ids
        or node.parent_node_id == node.id
    ]
    forest = [attach(node) for node in roots if node.id not in placed]

    # Nodes on a parent cycle are reachable from no root
    for node in shown:
        if node.id not in placed:
            forest.append(attach(node))
    return forest
