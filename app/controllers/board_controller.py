"""
BoardController - Orchestrates component and wire edit operations.

This module contains no Qt dependencies. It manages the BoardModel and
notifies views of changes through an observer pattern.

Edits are only applied between simulation cycles. While a cycle is active
every edit is queued and replayed, in arrival order, at the start of the
next cycle's BUILDING phase.
"""

import logging
from typing import Any, Callable, Optional

from models.board import BoardModel
from models.component import Component
from models.custom import CustomComponentDefinition
from models.wire import WireColor, WireData, WireEndpoint, WireNode

logger = logging.getLogger(__name__)


class BoardController:
    """
    Controller for board component and wire operations.

    Manages the BoardModel and notifies registered observers when
    the model changes. Views register callbacks to stay in sync.

    Observer events:
        component_added (Component) - A new component was added
        component_removed (str) - A component was removed (by ID)
        component_moved (Component) - A component was moved
        component_rotated (Component) - A component was rotated
        component_flipped (Component) - A component was mirrored
        property_changed (tuple[str, str]) - (component_id, property name)
        wire_added (WireData) - A new wire segment was added
        wire_removed (int) - A wire was removed (by index)
        wire_node_added (WireNode) - A wire node was created
        wire_node_removed (int) - A wire node was removed (by ID)
        terminal_attached (WireNode) - A wire node was attached to a terminal
        net_renamed (tuple[str, int]) - A net label was changed
        definition_added (CustomComponentDefinition) - Custom definition added
        board_cleared (None) - The entire board was cleared
        edit_deferred (str) - An edit was queued because a cycle is running
        model_loaded (None) - Board loaded from file
        model_saved (None) - Board saved to file
        simulation_started (None) - Simulation began
        simulation_completed (SimulationResult) - Simulation finished
    """

    def __init__(self, model: Optional[BoardModel] = None):
        self.model = model or BoardModel()
        self._observers: list[Callable[[str, Any], None]] = []
        self._pending: list[tuple[str, Callable[[], Any]]] = []
        self._cycle_active = False
        self._abort_requested = False

    def add_observer(self, callback: Callable[[str, Any], None]) -> None:
        """Register a callback for model change events."""
        if callback not in self._observers:
            self._observers.append(callback)

    def remove_observer(self, callback: Callable[[str, Any], None]) -> None:
        """Unregister a previously registered callback."""
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify(self, event: str, data: Any) -> None:
        """Notify all observers of a model change."""
        for observer in self._observers:
            try:
                observer(event, data)
            except (TypeError, AttributeError, RuntimeError) as e:
                logger.error("Error notifying observer: %s", e)

    # --- Cycle bracketing (used by SimulationController) ---

    @property
    def cycle_active(self) -> bool:
        return self._cycle_active

    @property
    def pending_edits(self) -> list[str]:
        """Names of queued edits, in arrival order."""
        return [name for name, _ in self._pending]

    @property
    def abort_requested(self) -> bool:
        return self._abort_requested

    def begin_cycle(self) -> None:
        self._cycle_active = True
        self._abort_requested = False

    def end_cycle(self) -> None:
        self._cycle_active = False
        self._abort_requested = False

    def request_abort(self) -> None:
        if self._cycle_active:
            self._abort_requested = True

    def replay_pending_edits(self) -> int:
        """
        Apply queued edits in arrival order.

        Called at the start of the BUILDING phase. An edit that has become
        invalid (e.g. it targets a component removed by an earlier edit) is
        logged and skipped.

        Returns:
            Number of edits applied.
        """
        pending, self._pending = self._pending, []
        applied = 0
        for name, edit in pending:
            try:
                edit()
                applied += 1
            except (ValueError, KeyError) as e:
                logger.warning("Deferred edit %s could not be applied: %s", name, e)
        if pending:
            logger.debug("Replayed %d of %d deferred edits", applied, len(pending))
        return applied

    def _submit(self, name: str, edit: Callable[[], Any]) -> Any:
        """Run an edit now, or queue it while a cycle is active."""
        if self._cycle_active:
            self._pending.append((name, edit))
            logger.debug("Deferred %s until the next cycle", name)
            self._notify("edit_deferred", name)
            return None
        return edit()

    # --- Component operations ---

    def add_component(self, component_type: str, position: tuple[float, float],
                      custom_id: Optional[str] = None) -> Optional[Component]:
        """
        Create and add a new component to the board.

        Generates a unique ID using the component counter (R1, R2, B1, etc.).

        Returns:
            The new Component, or None if the edit was deferred.
        """

        def _edit():
            component = self.model.create_component(component_type, position, custom_id=custom_id)
            self._notify("component_added", component)
            return component

        return self._submit("add_component", _edit)

    def remove_component(self, component_id: str) -> None:
        def _edit():
            if self.model.remove_component(component_id) is not None:
                self._notify("component_removed", component_id)

        self._submit("remove_component", _edit)

    def move_component(self, component_id: str, position: tuple[float, float]) -> None:
        def _edit():
            self.model.move_component(component_id, position)
            self._notify("component_moved", self.model.components[component_id])

        self._submit("move_component", _edit)

    def rotate_component(self, component_id: str) -> None:
        """Rotate a component a quarter turn."""

        def _edit():
            self.model.rotate_component(component_id)
            self._notify("component_rotated", self.model.components[component_id])

        self._submit("rotate_component", _edit)

    def flip_component(self, component_id: str) -> None:
        def _edit():
            self.model.flip_component(component_id)
            self._notify("component_flipped", self.model.components[component_id])

        self._submit("flip_component", _edit)

    def set_property(self, component_id: str, name: str, value: Any) -> None:
        """
        Set a component property from editor input.

        Raises:
            PropertyValidationError: the value was rejected (prior value kept).
        """

        def _edit():
            self.model.set_property(component_id, name, value)
            self._notify("property_changed", (component_id, name))

        self._submit("set_property", _edit)

    # --- Wire operations ---

    def add_wire_node(self, position: tuple[float, float]) -> Optional[WireNode]:
        def _edit():
            node = self.model.add_wire_node(position)
            self._notify("wire_node_added", node)
            return node

        return self._submit("add_wire_node", _edit)

    def attach(self, node_id: int, component_id: str, terminal: int) -> None:
        def _edit():
            self.model.attach(node_id, component_id, terminal)
            self._notify("terminal_attached", self.model.wire_nodes[node_id])

        self._submit("attach", _edit)

    def add_wire(self, start: WireEndpoint, end: WireEndpoint,
                 color: WireColor = WireColor.BLACK) -> Optional[WireData]:
        def _edit():
            wire = self.model.add_wire(start, end, color)
            self._notify("wire_added", wire)
            return wire

        return self._submit("add_wire", _edit)

    def connect(self, component_a: str, terminal_a: int, component_b: str, terminal_b: int,
                color: WireColor = WireColor.BLACK) -> Optional[WireData]:
        """Draw a wire between two terminals."""

        def _edit():
            wire = self.model.connect(component_a, terminal_a, component_b, terminal_b, color)
            self._notify("wire_added", wire)
            return wire

        return self._submit("connect", _edit)

    def remove_wire(self, wire_index: int) -> None:
        def _edit():
            if 0 <= wire_index < len(self.model.wires):
                self.model.remove_wire(wire_index)
                self._notify("wire_removed", wire_index)

        self._submit("remove_wire", _edit)

    def remove_wire_node(self, node_id: int) -> None:
        def _edit():
            if node_id in self.model.wire_nodes:
                self.model.remove_wire_node(node_id)
                self._notify("wire_node_removed", node_id)

        self._submit("remove_wire_node", _edit)

    def set_net_name(self, component_id: str, terminal: int, name: Optional[str]) -> None:
        def _edit():
            self.model.set_net_name(component_id, terminal, name)
            self._notify("net_renamed", (component_id, terminal))

        self._submit("set_net_name", _edit)

    # --- Custom definitions ---

    def add_custom_definition(self, definition: CustomComponentDefinition) -> None:
        def _edit():
            self.model.custom_library.add(definition)
            self._notify("definition_added", definition)

        self._submit("add_custom_definition", _edit)

    # --- Bulk operations ---

    def clear_board(self) -> None:
        """
        Remove everything from the board.

        During a cycle the clear is queued and the running cycle is asked to
        abort at the next pass boundary.
        """
        if self._cycle_active:
            self.request_abort()

        def _edit():
            self.model.clear()
            self._notify("board_cleared", None)

        self._submit("clear_board", _edit)

    # --- Readback ---

    def node_id_at(self, component_id: str, terminal: int) -> int:
        """Electrical node id of a terminal (-1 before the first simulation)."""
        return self.model.node_id_at(component_id, terminal)

    def property_display_values(self, component_id: str) -> dict[str, str]:
        return self.model.components[component_id].display_values()

    def get_component(self, component_id: str) -> Optional[Component]:
        return self.model.get_component(component_id)
