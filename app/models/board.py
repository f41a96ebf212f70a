"""
BoardModel - Central data store for board state.

This module contains no Qt dependencies. It holds all board data
(components, wire segments, wire nodes, custom definitions) and keeps the
wiring graph consistent across edits:

- every wire node knows the indices of the segments that end on it,
- attached wire nodes follow their terminal when a component moves,
- wire nodes with no segments and no attachment are pruned after each edit.

Electrical nodes are not stored here; they are derived by the network
builder at the start of every simulation cycle and exposed via ``network``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from simulation.settings import SimulationSettings

from .component import Component, snap_point
from .custom import CustomComponentLibrary
from .registry import StructuralError, create_component, prefix_for
from .wire import Attachment, WireColor, WireData, WireEndpoint, WireNode

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


@dataclass
class BoardModel:
    """
    Central data store holding all board state.

    Components are kept in insertion order, which is also the update order
    used by the scheduler.
    """

    components: dict[str, Component] = field(default_factory=dict)
    wires: list[WireData] = field(default_factory=list)
    wire_nodes: dict[int, WireNode] = field(default_factory=dict)
    component_counter: dict[str, int] = field(default_factory=dict)

    # User labels for electrical nodes, keyed by "component_id:terminal"
    net_names: dict[str, str] = field(default_factory=dict)

    custom_library: CustomComponentLibrary = field(default_factory=CustomComponentLibrary)
    settings: SimulationSettings = field(default_factory=SimulationSettings)

    # Definition ids of the custom instances enclosing this board
    definition_chain: tuple[str, ...] = ()

    # Set by the scheduler
    unstable: bool = False
    network: Any = None

    next_wire_node_id: int = 0

    # --- Component operations ---

    def generate_component_id(self, type_id: str) -> str:
        """Generate the next free id for a type, e.g. R1, R2."""
        prefix = prefix_for(type_id)
        count = self.component_counter.get(prefix, 0)
        while True:
            count += 1
            candidate = f"{prefix}{count}"
            if candidate not in self.components:
                self.component_counter[prefix] = count
                return candidate

    def create_component(
        self, type_id: str, position: tuple[float, float] = (0.0, 0.0), custom_id: Optional[str] = None
    ) -> Component:
        """Create a component through the registry and add it to the board."""
        component_id = self.generate_component_id(type_id)
        component = create_component(
            type_id,
            component_id,
            snap_point(position),
            custom_id=custom_id,
            library=self.custom_library,
            chain=self.definition_chain,
        )
        self.add_component(component)
        return component

    def add_component(self, component: Component) -> None:
        """Add a component to the board."""
        if component.component_id in self.components:
            raise ValueError(f"Duplicate component id '{component.component_id}'")
        self.components[component.component_id] = component
        self._invalidate()

    def remove_component(self, component_id: str) -> Optional[Component]:
        """
        Remove a component.

        Wire nodes attached to it lose their attachment but keep their
        segments; nodes left with nothing are pruned.
        """
        component = self.components.pop(component_id, None)
        if component is None:
            return None
        for node in self.wire_nodes.values():
            if node.is_attached_to(component_id):
                node.attachment = None
        prefix = f"{component_id}:"
        self.net_names = {k: v for k, v in self.net_names.items() if not k.startswith(prefix)}
        self.prune_wire_nodes()
        self._invalidate()
        return component

    def move_component(self, component_id: str, position: tuple[float, float]) -> None:
        component = self._require_component(component_id)
        component.position = snap_point(position)
        self.sync_attachments(component_id)
        self._invalidate()

    def rotate_component(self, component_id: str) -> None:
        component = self._require_component(component_id)
        component.rotate90()
        self.sync_attachments(component_id)
        self._invalidate()

    def flip_component(self, component_id: str) -> None:
        component = self._require_component(component_id)
        component.flip_h = not component.flip_h
        self.sync_attachments(component_id)
        self._invalidate()

    def set_property(self, component_id: str, name: str, value: Any) -> None:
        self._require_component(component_id).set_property(name, value)
        self._invalidate()

    # --- Wire node operations ---

    def add_wire_node(self, position: tuple[float, float], attachment: Optional[Attachment] = None) -> WireNode:
        """
        Create a wire node, optionally attached to a component terminal.

        A free node is garbage until a segment references it: the next
        add_wire call must use it, or that call prunes it.
        """
        node = WireNode(node_id=self.next_wire_node_id, position=(float(position[0]), float(position[1])))
        self.next_wire_node_id += 1
        self.wire_nodes[node.node_id] = node
        if attachment is not None:
            self.attach(node.node_id, attachment.component_id, attachment.terminal)
        self._invalidate()
        return node

    def attach(self, node_id: int, component_id: str, terminal: int) -> None:
        """Attach a wire node to a component terminal and snap it there."""
        node = self._require_wire_node(node_id)
        component = self._require_component(component_id)
        if not (0 <= terminal < component.get_terminal_count()):
            raise StructuralError(f"{component_id} has no terminal {terminal}")
        node.attachment = Attachment(component_id, terminal)
        node.position = component.get_terminal_position(terminal)
        self._invalidate()

    def detach(self, node_id: int) -> None:
        self._require_wire_node(node_id).attachment = None
        self.prune_wire_nodes()
        self._invalidate()

    def node_at_terminal(self, component_id: str, terminal: int) -> Optional[WireNode]:
        """First wire node attached to the given terminal, if any."""
        target = Attachment(component_id, terminal)
        for node in self.wire_nodes.values():
            if node.attachment == target:
                return node
        return None

    def ensure_terminal_node(self, component_id: str, terminal: int) -> WireNode:
        """Return the wire node on a terminal, creating an attached one if needed."""
        node = self.node_at_terminal(component_id, terminal)
        if node is None:
            component = self._require_component(component_id)
            if not (0 <= terminal < component.get_terminal_count()):
                raise StructuralError(f"{component_id} has no terminal {terminal}")
            node = self.add_wire_node(component.get_terminal_position(terminal), Attachment(component_id, terminal))
        return node

    def node_at(self, position: tuple[float, float], tolerance: float = 0.5) -> Optional[WireNode]:
        """Wire node at a coordinate, if any."""
        for node in self.wire_nodes.values():
            if abs(node.position[0] - position[0]) <= tolerance and abs(node.position[1] - position[1]) <= tolerance:
                return node
        return None

    def remove_wire_node(self, node_id: int) -> None:
        """
        Delete a wire node.

        Segments that ended on it keep existing with a free endpoint at the
        node's last position, so the terminals they joined become separated.
        """
        node = self.wire_nodes.pop(node_id, None)
        if node is None:
            return
        for wire in self.wires:
            wire.detach_node(node_id, node.position)
        self._rebuild_incidence()
        self.prune_wire_nodes()
        self._invalidate()

    def sync_attachments(self, component_id: Optional[str] = None) -> None:
        """Move attached wire nodes onto their terminals' world positions."""
        for node in self.wire_nodes.values():
            attachment = node.attachment
            if attachment is None:
                continue
            if component_id is not None and attachment.component_id != component_id:
                continue
            component = self.components.get(attachment.component_id)
            if component is None or attachment.terminal >= component.get_terminal_count():
                continue
            node.position = component.get_terminal_position(attachment.terminal)

    def prune_wire_nodes(self) -> list[int]:
        """Remove wire nodes with no segments and no attachment."""
        garbage = [node_id for node_id, node in self.wire_nodes.items() if node.is_garbage()]
        for node_id in garbage:
            del self.wire_nodes[node_id]
        if garbage:
            logger.debug("Pruned wire nodes %s", garbage)
        return garbage

    # --- Wire operations ---

    def add_wire(self, start: WireEndpoint, end: WireEndpoint, color: WireColor = WireColor.BLACK) -> WireData:
        """Add a wire segment. Node endpoints must reference existing wire nodes."""
        for endpoint in (start, end):
            if endpoint.node_id is not None and endpoint.node_id not in self.wire_nodes:
                raise StructuralError(f"Wire references unknown wire node {endpoint.node_id}")
        wire = WireData(start=start, end=end, color=color)
        self._append_wire(wire)
        self.prune_wire_nodes()
        self._invalidate()
        return wire

    def connect(self, component_a: str, terminal_a: int, component_b: str, terminal_b: int,
                color: WireColor = WireColor.BLACK) -> WireData:
        """Wire two terminals together through their (possibly new) wire nodes."""
        node_a = self.ensure_terminal_node(component_a, terminal_a)
        node_b = self.ensure_terminal_node(component_b, terminal_b)
        return self.add_wire(WireEndpoint.at_node(node_a.node_id), WireEndpoint.at_node(node_b.node_id), color)

    def remove_wire(self, wire_index: int) -> None:
        """Remove a wire by index."""
        if not (0 <= wire_index < len(self.wires)):
            return
        del self.wires[wire_index]
        self._rebuild_incidence()
        self.prune_wire_nodes()
        self._invalidate()

    def _append_wire(self, wire: WireData) -> None:
        index = len(self.wires)
        self.wires.append(wire)
        for node_id in wire.node_ids():
            node = self.wire_nodes.get(node_id)
            if node is not None:
                node.wire_indices.add(index)

    def _rebuild_incidence(self) -> None:
        for node in self.wire_nodes.values():
            node.wire_indices = set()
        for index, wire in enumerate(self.wires):
            for node_id in wire.node_ids():
                node = self.wire_nodes.get(node_id)
                if node is not None:
                    node.wire_indices.add(index)

    # --- Net names ---

    def set_net_name(self, component_id: str, terminal: int, name: Optional[str]) -> None:
        key = f"{component_id}:{terminal}"
        if name:
            self.net_names[key] = name
        else:
            self.net_names.pop(key, None)

    # --- Readback ---

    def node_id_at(self, component_id: str, terminal: int) -> int:
        """Electrical node id of a terminal as assigned by the last build."""
        return self._require_component(component_id).node_index(terminal)

    def get_component(self, component_id: str) -> Optional[Component]:
        return self.components.get(component_id)

    # --- Bulk operations ---

    def clear(self) -> None:
        """Remove everything from the board. Custom definitions are kept."""
        self.components.clear()
        self.wires.clear()
        self.wire_nodes.clear()
        self.component_counter.clear()
        self.net_names.clear()
        self.next_wire_node_id = 0
        self.unstable = False
        self._invalidate()

    def reset_computed(self) -> None:
        for component in self.components.values():
            component.reset_computed()

    def _invalidate(self) -> None:
        self.network = None

    def _require_component(self, component_id: str) -> Component:
        try:
            return self.components[component_id]
        except KeyError:
            raise KeyError(f"Unknown component '{component_id}'") from None

    def _require_wire_node(self, node_id: int) -> WireNode:
        try:
            return self.wire_nodes[node_id]
        except KeyError:
            raise KeyError(f"Unknown wire node {node_id}") from None

    # --- Serialization ---

    def to_dict(self) -> dict:
        """Serialize the board to a snapshot dict."""
        components = []
        for component in self.components.values():
            entry = component.to_dict()
            entry.setdefault("custom_id", None)
            components.append(entry)
        return {
            "version": SNAPSHOT_VERSION,
            "components": components,
            "wire_nodes": [node.to_dict() for node in sorted(self.wire_nodes.values(), key=lambda n: n.node_id)],
            "wires": [wire.to_dict() for wire in self.wires],
            "custom_components": self.custom_library.to_list(),
            "counters": dict(self.component_counter),
            "net_names": dict(self.net_names),
            "simulation": self.settings.to_dict(),
        }

    @classmethod
    def from_dict(
        cls,
        data: dict,
        library: Optional[CustomComponentLibrary] = None,
        chain: tuple[str, ...] = (),
    ) -> "BoardModel":
        """
        Build a board from a snapshot dict.

        Args:
            data: Snapshot as produced by to_dict().
            library: Definitions shared with an enclosing board. Definitions
                carried by the snapshot itself are added when missing.
            chain: Definition ids of the enclosing custom instances.

        Raises:
            StructuralError: unknown component type or custom definition,
                or cyclic custom nesting.
            ValueError: malformed values (bad property text, bad settings).
        """
        if library is None:
            library = CustomComponentLibrary.from_list(data.get("custom_components", []))
        else:
            for definition in CustomComponentLibrary.from_list(data.get("custom_components", [])):
                if definition.definition_id not in library:
                    library.add(definition)

        board = cls(
            custom_library=library,
            settings=SimulationSettings.from_dict(data.get("simulation", {})),
            definition_chain=tuple(chain),
        )

        for entry in data.get("components", []):
            pos = entry.get("pos", {})
            component = create_component(
                entry["type"],
                entry["id"],
                (float(pos.get("x", 0.0)), float(pos.get("y", 0.0))),
                custom_id=entry.get("custom_id"),
                library=library,
                chain=board.definition_chain,
            )
            component.rotation = int(entry.get("rotation", 0))
            component.flip_h = bool(entry.get("flip_h", False))
            component.apply_property_values(entry.get("properties", {}))
            board.components[component.component_id] = component

        for entry in data.get("wire_nodes", []):
            node = WireNode.from_dict(entry)
            board.wire_nodes[node.node_id] = node
        if board.wire_nodes:
            board.next_wire_node_id = max(board.wire_nodes) + 1

        for entry in data.get("wires", []):
            board._append_wire(WireData.from_dict(entry))

        board.component_counter = {str(k): int(v) for k, v in data.get("counters", {}).items()}
        board.net_names = dict(data.get("net_names", {}))
        board.sync_attachments()
        board.prune_wire_nodes()
        return board

    def __repr__(self) -> str:
        return (
            f"BoardModel(components={len(self.components)}, wires={len(self.wires)}, "
            f"wire_nodes={len(self.wire_nodes)}, customs={len(self.custom_library)})"
        )
