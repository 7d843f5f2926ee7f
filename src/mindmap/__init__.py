"""
Mind maps: flashcards arranged as a tree of nodes.
"""

from .graph import (
    COLOR_PRESETS,
    NodeTree,
    build_forest,
    connections,
    hidden_node_ids,
    new_node_position,
    position_updates,
    visible_nodes,
)

__all__ = [
    "COLOR_PRESETS",
    "NodeTree",
    "build_forest",
    "connections",
    "hidden_node_ids",
    "new_node_position",
    "position_updates",
    "visible_nodes",
]
