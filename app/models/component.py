"""
Component - Pure Python base model for circuit components.

This module contains no Qt dependencies. All positions are represented as
tuples (x, y) rather than QPointF. Positions are the top-left corner of the
unrotated bounding box; connection points are stored relative to that box
(fractions in [0, 1]) and resolved to world coordinates on demand.

Component variants live in models/builtin.py and simulation/custom_component.py.
Optional behaviour is declared through an explicit capability set which
callers query with has_capability() instead of relying on overridden
defaults.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .properties import ComponentProperty, PropertyValidationError

# Grid settings
GRID_SIZE = 10

# Node index of a terminal the network builder has not assigned yet
UNASSIGNED_NODE = -1


def snap(value: float) -> float:
    """Snap a coordinate to the nearest grid line."""
    return float(round(value / GRID_SIZE) * GRID_SIZE)


def snap_point(point: tuple[float, float]) -> tuple[float, float]:
    """Snap an (x, y) tuple to the grid."""
    return (snap(point[0]), snap(point[1]))


class TerminalRole(Enum):
    """Role of a terminal as seen by the simulation."""

    INPUT = "input"
    OUTPUT = "output"
    GENERAL = "general"


class Capability(Enum):
    """Optional behaviours a component variant can declare."""

    SWITCH_LIKE = "switch_like"  # is_closed() / set_computed_ampere()
    FULL_ROTATION = "full_rotation"  # four orientations instead of two
    LOGIC = "logic"  # terminals restricted to logic levels
    METER = "meter"  # display-only readings, never affect convergence
    SHORTS_TERMINALS = "shorts_terminals"  # reports shorted_terminal_groups()
    CUSTOM = "custom"  # wraps a custom component definition


@dataclass
class ConnectionPoint:
    """A terminal on a component, stored relative to its bounding box."""

    relative_x: float
    relative_y: float
    role: TerminalRole = TerminalRole.GENERAL
    name: str = ""

    # Electrical node id; written only by the network builder
    node_index: int = UNASSIGNED_NODE


class Component:
    """
    Base class for every placeable component.

    Subclasses set ``component_type`` (the registry type id), ``prefix``
    (used to generate ids such as B1, R2) and ``capabilities``, add their
    connection points and properties in ``__init__`` and implement the
    simulation contract:

        before_simulation()      once per cycle, before the first pass
        update(context)          once per pass; read node values from the
                                 start of the pass, drive outputs
        observable_outputs()     values compared between passes to detect
                                 convergence
        after_simulation(state)  once per cycle, after the last pass
    """

    component_type = "Component"
    prefix = "X"
    capabilities: frozenset = frozenset()
    default_size = (GRID_SIZE * 4, GRID_SIZE * 2)

    def __init__(self, component_id: str, position: tuple[float, float] = (0.0, 0.0)):
        self.component_id = component_id
        self.position = (float(position[0]), float(position[1]))
        self.width, self.height = self.default_size
        self.flip_h = False
        self.display_name = self.component_type
        self.connection_points: list[ConnectionPoint] = []
        self.properties: dict[str, ComponentProperty] = {}
        self._rotation = 0

    # --- Construction helpers ---

    def add_connection_point(self, relative_x: float, relative_y: float,
                             role: TerminalRole = TerminalRole.GENERAL, name: str = "") -> ConnectionPoint:
        point = ConnectionPoint(relative_x, relative_y, role, name)
        self.connection_points.append(point)
        return point

    def add_property(self, prop: ComponentProperty) -> None:
        self.properties[prop.name] = prop

    # --- Capabilities ---

    def has_capability(self, capability: Capability) -> bool:
        return capability in self.capabilities

    # --- Geometry ---

    @property
    def rotation(self) -> int:
        """Rotation in quarter turns."""
        return self._rotation

    @rotation.setter
    def rotation(self, quarter_turns: int) -> None:
        limit = 4 if self.has_capability(Capability.FULL_ROTATION) else 2
        self._rotation = int(quarter_turns) % limit

    def rotate90(self) -> None:
        self.rotation = self._rotation + 1

    def get_terminal_count(self) -> int:
        return len(self.connection_points)

    def get_terminal_positions(self) -> list[tuple[float, float]]:
        """
        Return terminal positions in world coordinates (after flip and rotation).

        Rotation turns the body about its centre in quarter turns.
        """
        x, y = self.position
        half_w = self.width / 2.0
        half_h = self.height / 2.0
        positions = []
        for point in self.connection_points:
            local_x = point.relative_x * self.width
            local_y = point.relative_y * self.height
            if self.flip_h:
                local_x = self.width - local_x
            dx = local_x - half_w
            dy = local_y - half_h
            for _ in range(self._rotation):
                dx, dy = -dy, dx
            positions.append((x + half_w + dx, y + half_h + dy))
        return positions

    def get_terminal_position(self, index: int) -> tuple[float, float]:
        return self.get_terminal_positions()[index]

    # --- Terminal roles ---

    def is_input_point(self, index: int) -> bool:
        return self.connection_points[index].role is TerminalRole.INPUT

    def is_output_point(self, index: int) -> bool:
        return self.connection_points[index].role is TerminalRole.OUTPUT

    @property
    def input_count(self) -> int:
        return sum(1 for p in self.connection_points if p.role is TerminalRole.INPUT)

    @property
    def output_count(self) -> int:
        return sum(1 for p in self.connection_points if p.role is TerminalRole.OUTPUT)

    # --- Node assignment (network builder only) ---

    def set_node_index(self, terminal: int, node_id: int) -> None:
        self.connection_points[terminal].node_index = node_id

    def node_index(self, terminal: int) -> int:
        return self.connection_points[terminal].node_index

    def reset_node_indices(self) -> None:
        for point in self.connection_points:
            point.node_index = UNASSIGNED_NODE

    # --- Topology hooks read by the network builder ---

    def shorted_terminal_groups(self) -> list[list[int]]:
        """Groups of terminal indices this component connects internally."""
        return []

    def couplings(self) -> list[tuple[int, int, float]]:
        """Resistive links (terminal_a, terminal_b, conductance) for weak propagation."""
        return []

    # --- Simulation contract ---

    def before_simulation(self) -> None:
        self.reset_computed()

    def reset_computed(self) -> None:
        """Clear computed display state."""

    def update(self, context) -> None:
        """Compute outputs for one pass."""

    def observable_outputs(self) -> tuple:
        return ()

    def after_simulation(self, state) -> None:
        """Hook called once after the last pass of a cycle."""

    # --- Properties ---

    def get_property(self, name: str) -> ComponentProperty:
        try:
            return self.properties[name]
        except KeyError:
            raise PropertyValidationError(f"{self.component_id} has no property '{name}'") from None

    def set_property(self, name: str, value: Any) -> None:
        prop = self.get_property(name)
        if not prop.editable:
            raise PropertyValidationError(f"{name} is read-only")
        prop.set_value_from_editor(value)

    def property_values(self) -> dict[str, Any]:
        """Editable property values, keyed by property name."""
        return {name: prop.get_editor_value() for name, prop in self.properties.items() if prop.editable}

    def apply_property_values(self, values: dict[str, Any]) -> None:
        for name, value in values.items():
            prop = self.properties.get(name)
            if prop is not None and prop.editable:
                prop.set_value_from_editor(value)

    def display_values(self) -> dict[str, str]:
        """Display strings for every displayable property."""
        return {name: prop.get_display_value() for name, prop in self.properties.items() if prop.displayable}

    def readings(self) -> dict[str, str]:
        """Display strings for displayable and computed (read-only) properties."""
        return {
            name: prop.get_display_value()
            for name, prop in self.properties.items()
            if prop.displayable or not prop.editable
        }

    # --- Serialization ---

    def to_dict(self) -> dict:
        """Serialize component to a snapshot record."""
        return {
            "id": self.component_id,
            "type": self.component_type,
            "pos": {"x": self.position[0], "y": self.position[1]},
            "rotation": self._rotation,
            "flip_h": self.flip_h,
            "properties": self.property_values(),
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(id={self.component_id!r}, pos={self.position}, rot={self._rotation})"
        )


class SwitchLike:
    """Mixin for components declaring Capability.SWITCH_LIKE."""

    def is_closed(self) -> bool:
        raise NotImplementedError

    def set_computed_ampere(self, ampere: float) -> None:
        raise NotImplementedError
