"""
NodeData - Pure Python data model for electrical nodes.

This module contains no Qt dependencies. An electrical node represents
a set of component terminals that are electrically connected (share the
same voltage). Nodes are derived by the network builder on every
simulation start and are never persisted; labels come from the node's
dense id, so no global counter is involved.
"""

from dataclasses import dataclass, field
from typing import Optional


def generate_label(index: int) -> str:
    """
    Generate label like nodeA, nodeB, ..., nodeZ, nodeAA, nodeAB...

    Args:
        index: Zero-based index for the node.

    Returns:
        A string label like "nodeA", "nodeB", etc.
    """
    letters = ""
    index += 1
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return "node" + letters


@dataclass
class NodeData:
    """
    Pure Python data class representing an electrical node.

    A node is the equivalence class of connection points (and wire nodes)
    that the network builder found to be electrically connected.
    """

    node_id: int

    # (component_id, terminal_index) pairs in this node, in builder order
    terminals: list[tuple[str, int]] = field(default_factory=list)

    # Wire node ids merged into this node
    wire_node_ids: list[int] = field(default_factory=list)

    # Whether a Ground component sits on this node
    is_ground: bool = False

    # User-assigned label (takes precedence over auto_label)
    custom_label: Optional[str] = None

    auto_label: str = ""

    def __post_init__(self):
        if not self.auto_label:
            self.auto_label = generate_label(self.node_id)

    def get_label(self) -> str:
        """
        Get the display label for this node.

        Returns:
            The custom label if set, otherwise the auto-generated label.
            For ground nodes, "0" or the custom label with "(ground)" appended.
        """
        if self.custom_label:
            if self.is_ground:
                return f"{self.custom_label} (ground)"
            return self.custom_label
        if self.is_ground:
            return "0"
        return self.auto_label

    def set_custom_label(self, label: Optional[str]) -> None:
        self.custom_label = label or None

    def add_terminal(self, component_id: str, terminal_index: int) -> None:
        self.terminals.append((component_id, terminal_index))

    def __repr__(self) -> str:
        return f"NodeData({self.get_label()}, terminals={len(self.terminals)}, wire_nodes={len(self.wire_node_ids)})"
