"""
High-level scripting API for programmatic board manipulation.

No GUI dependency. Wraps the model/controller/simulation layers behind a
user-friendly interface.
"""

from pathlib import Path
from typing import Any, Optional, Union

from controllers.board_controller import BoardController
from controllers.file_controller import FileController, read_board_file
from controllers.simulation_controller import SimulationController, SimulationResult
from models.board import BoardModel
from models.component import Component
from models.custom import CustomComponentDefinition
from models.registry import component_types
from simulation.csv_exporter import export_results, write_csv
from simulation.network_state import LogicLevel


class Board:
    """A scriptable board that can be built, simulated, and saved programmatically.

    Wraps BoardModel, BoardController, and SimulationController to provide
    a clean API for headless workflows.

    Args:
        model: An existing BoardModel to wrap. If None, creates an empty board.
    """

    def __init__(self, model: Optional[BoardModel] = None):
        self._model = model or BoardModel()
        self._controller = BoardController(self._model)
        self._sim = SimulationController(self._model, self._controller)

    # --- Factory methods ---

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Board":
        """Load a board from a JSON file.

        Raises:
            FileNotFoundError: If the file does not exist.
            json.JSONDecodeError: If the file is not valid JSON.
            ValueError: If the JSON structure is invalid.
        """
        return cls(read_board_file(Path(path)))

    # --- Component operations ---

    def add_component(
        self,
        component_type: str,
        position: tuple[float, float] = (0.0, 0.0),
        rotation: int = 0,
        flip_h: bool = False,
        custom: Optional[str] = None,
        **properties: Any,
    ) -> str:
        """Add a component to the board.

        Args:
            component_type: A registry type id (e.g. "Battery", "NOTGate").
                See ``Board.component_types`` for the full list.
            position: (x, y) position of the top-left corner.
            rotation: Quarter turns.
            flip_h: Horizontal mirror.
            custom: Definition id or name, for "Custom" components.
            **properties: Property values keyed by property name with spaces
                and units dropped, e.g. ``voltage=9`` for "Voltage (V)".

        Returns:
            The auto-generated component ID (e.g. "R1", "B1").

        Raises:
            ValueError: If the type is unknown or a property value is rejected.
        """
        custom_id = None
        if custom is not None:
            definition = self._model.custom_library.get(custom) or self._model.custom_library.find_by_name(custom)
            custom_id = definition.definition_id if definition else custom

        component = self._controller.add_component(component_type, position, custom_id=custom_id)
        for _ in range(rotation):
            self._controller.rotate_component(component.component_id)
        if flip_h:
            self._controller.flip_component(component.component_id)
        for key, value in properties.items():
            self._controller.set_property(component.component_id, _property_name(component, key), value)
        return component.component_id

    def remove_component(self, component_id: str) -> None:
        self._controller.remove_component(component_id)

    def set(self, component_id: str, name: str, value: Any) -> None:
        """Set a property by its display name or short name (``"Closed"``, ``closed``)."""
        component = self._model.components[component_id]
        self._controller.set_property(component_id, _property_name(component, name), value)

    def get(self, component_id: str, name: str) -> Any:
        """Read a property's current value."""
        component = self._model.components[component_id]
        return component.get_property(_property_name(component, name)).get_editor_value()

    # --- Wire operations ---

    def connect(self, start_component: str, start_terminal: int, end_component: str, end_terminal: int) -> None:
        """Connect two component terminals with a wire."""
        self._controller.connect(start_component, start_terminal, end_component, end_terminal)

    def disconnect_wire_node(self, node_id: int) -> None:
        self._controller.remove_wire_node(node_id)

    # --- Custom components ---

    def define_custom(self, name: str, inner: "Board") -> str:
        """Turn another board into a custom component definition.

        The inner board's InputPort and OutputPort components become the
        definition's ports, in board order.

        Returns:
            The new definition id.
        """
        inputs = [c.display_name for c in inner.model.components.values() if c.component_type == "InputPort"]
        outputs = [c.display_name for c in inner.model.components.values() if c.component_type == "OutputPort"]
        definition = CustomComponentDefinition.create(name, inputs, outputs, inner.model.to_dict())
        self._controller.add_custom_definition(definition)
        return definition.definition_id

    # --- Simulation ---

    def simulate(self) -> SimulationResult:
        """Run one simulation cycle.

        Raises:
            No exceptions; errors are reported via SimulationResult.success
            and SimulationResult.error.
        """
        return self._sim.run_simulation()

    def validate(self) -> SimulationResult:
        """Validate the board without running a simulation."""
        return self._sim.validate_board()

    def voltage(self, component_id: str, terminal: int) -> Optional[float]:
        """Final voltage on a terminal's node (None when floating)."""
        return self._sim.node_value(component_id, terminal)

    def level(self, component_id: str, terminal: int) -> bool:
        """True when a terminal reads logic HIGH."""
        return self._sim.logic_level(component_id, terminal) is LogicLevel.HIGH

    def node_id(self, component_id: str, terminal: int) -> int:
        return self._controller.node_id_at(component_id, terminal)

    def readings(self, component_id: str) -> dict[str, str]:
        """Displayed and computed property values of a component."""
        return self._model.components[component_id].readings()

    # --- Persistence ---

    def save(self, path: Union[str, Path]) -> None:
        """Save the board to a JSON file."""
        FileController(self._model, session_file=None).save_board(path)

    def to_dict(self) -> dict:
        return self._model.to_dict()

    # --- Properties ---

    @property
    def components(self) -> dict[str, Component]:
        """All components on the board, keyed by ID."""
        return self._model.components

    @property
    def model(self) -> BoardModel:
        """Direct access to the underlying BoardModel."""
        return self._model

    @property
    def component_types(self) -> list[str]:
        """List of all supported component types."""
        return component_types()

    # --- Result export ---

    def results_to_csv(self, result: SimulationResult, path: Union[str, Path]) -> None:
        """Export a simulation result to a CSV file.

        Raises:
            ValueError: If the result has no data or is a failure.
        """
        if not result.success or result.data is None:
            raise ValueError(f"Cannot export failed or empty result: {result.error}")
        write_csv(export_results(result.data), Path(path))


def _property_name(component: Component, key: str) -> str:
    """Resolve ``voltage`` / ``internal_resistance`` / "Voltage (V)" to a property name."""
    if key in component.properties:
        return key
    wanted = key.replace("_", " ").strip().lower()
    for name in component.properties:
        short = name.split("(")[0].strip().lower()
        if short == wanted:
            return name
    raise ValueError(f"{component.component_id} has no property '{key}'")
