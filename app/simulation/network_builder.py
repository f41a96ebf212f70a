"""
simulation/network_builder.py

Derives electrical nodes from the board's wiring graph with no Qt
dependencies.

Every connection point, every wire node and every free wire endpoint is an
element of a disjoint-set forest. Elements are unioned along wire segments,
between attached wire nodes and their terminals, and across terminal groups
that components short internally (junctions, closed switches, ammeters).
Each resulting class is one electrical node.

Element order is fixed: connection points (board insertion order, then
terminal order), then wire nodes (ascending id), then free endpoints (wire
order). Unions always keep the smaller index as root, so node ids are
assigned densely in order of each class's smallest element and an
unchanged board always yields identical ids.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from models.node import NodeData

logger = logging.getLogger(__name__)


class DisjointSet:
    """Union-find over integer elements with iterative path compression."""

    def __init__(self, size: int = 0):
        self.parent = list(range(size))

    def __len__(self) -> int:
        return len(self.parent)

    def add(self) -> int:
        index = len(self.parent)
        self.parent.append(index)
        return index

    def find(self, element: int) -> int:
        root = element
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[element] != root:
            self.parent[element], element = root, self.parent[element]
        return root

    def union(self, a: int, b: int) -> bool:
        """Merge the classes of a and b. Returns False if already merged."""
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a == root_b:
            return False
        if root_a < root_b:
            self.parent[root_b] = root_a
        else:
            self.parent[root_a] = root_b
        return True


@dataclass
class Network:
    """Electrical nodes derived from one build of a board."""

    nodes: list[NodeData] = field(default_factory=list)

    # (component_id, terminal) -> node id
    terminal_nodes: dict[tuple[str, int], int] = field(default_factory=dict)

    # wire node id -> node id
    wire_node_nodes: dict[int, int] = field(default_factory=dict)

    # Resistive links (node_a, node_b, conductance) in component order
    couplings: list[tuple[int, int, float]] = field(default_factory=list)

    # Terminals alone in their node
    floating_terminals: list[tuple[str, int]] = field(default_factory=list)

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    def node_of(self, component_id: str, terminal: int) -> Optional[int]:
        return self.terminal_nodes.get((component_id, terminal))

    def label_of(self, node_id: int) -> str:
        return self.nodes[node_id].get_label()

    def ground_nodes(self) -> list[int]:
        return [node.node_id for node in self.nodes if node.is_ground]

    def neighbours(self) -> dict[int, list[tuple[int, float]]]:
        """Coupling adjacency: node id -> [(neighbour id, conductance)] sorted by neighbour."""
        adjacency: dict[int, list[tuple[int, float]]] = {}
        for a, b, conductance in self.couplings:
            adjacency.setdefault(a, []).append((b, conductance))
            adjacency.setdefault(b, []).append((a, conductance))
        for links in adjacency.values():
            links.sort(key=lambda link: link[0])
        return adjacency


class NetworkBuilder:
    """Builds a Network from a board and writes node ids onto its terminals."""

    def build(self, board) -> Network:
        components = list(board.components.values())
        forest = DisjointSet()

        terminal_elements: dict[tuple[str, int], int] = {}
        for component in components:
            for terminal in range(component.get_terminal_count()):
                terminal_elements[(component.component_id, terminal)] = forest.add()

        wire_node_elements: dict[int, int] = {}
        for node_id in sorted(board.wire_nodes):
            wire_node_elements[node_id] = forest.add()

        # Segment endpoints
        for wire in board.wires:
            ends = []
            for endpoint in wire.endpoints():
                element = wire_node_elements.get(endpoint.node_id) if endpoint.node_id is not None else None
                if element is None:
                    element = forest.add()
                ends.append(element)
            forest.union(ends[0], ends[1])

        # Wire node attachments
        for node_id in sorted(board.wire_nodes):
            attachment = board.wire_nodes[node_id].attachment
            if attachment is None:
                continue
            element = terminal_elements.get((attachment.component_id, attachment.terminal))
            if element is not None:
                forest.union(wire_node_elements[node_id], element)

        # Internally shorted terminals
        for component in components:
            for group in component.shorted_terminal_groups():
                first = terminal_elements[(component.component_id, group[0])]
                for terminal in group[1:]:
                    forest.union(first, terminal_elements[(component.component_id, terminal)])

        # Dense relabelling by smallest element
        dense: dict[int, int] = {}
        for element in range(len(forest)):
            if forest.find(element) == element:
                dense[element] = len(dense)

        network = Network(nodes=[NodeData(node_id=i) for i in range(len(dense))])
        class_sizes: dict[int, int] = {}
        for element in range(len(forest)):
            root = forest.find(element)
            class_sizes[root] = class_sizes.get(root, 0) + 1

        for component in components:
            for terminal in range(component.get_terminal_count()):
                element = terminal_elements[(component.component_id, terminal)]
                root = forest.find(element)
                node_id = dense[root]
                component.set_node_index(terminal, node_id)
                network.terminal_nodes[(component.component_id, terminal)] = node_id
                node = network.nodes[node_id]
                node.add_terminal(component.component_id, terminal)
                if component.component_type == "Ground":
                    node.is_ground = True
                label = board.net_names.get(f"{component.component_id}:{terminal}")
                if label and node.custom_label is None:
                    node.set_custom_label(label)
                if class_sizes[root] == 1:
                    network.floating_terminals.append((component.component_id, terminal))

        for wire_node_id, element in wire_node_elements.items():
            node_id = dense[forest.find(element)]
            network.wire_node_nodes[wire_node_id] = node_id
            network.nodes[node_id].wire_node_ids.append(wire_node_id)

        for component in components:
            for terminal_a, terminal_b, conductance in component.couplings():
                node_a = component.node_index(terminal_a)
                node_b = component.node_index(terminal_b)
                if node_a != node_b and conductance > 0:
                    network.couplings.append((node_a, node_b, conductance))

        logger.debug(
            "Built network: %d elements, %d nodes, %d couplings, %d floating terminals",
            len(forest),
            network.node_count,
            len(network.couplings),
            len(network.floating_terminals),
        )
        return network
