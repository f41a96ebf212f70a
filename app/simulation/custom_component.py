"""
simulation/custom_component.py

Custom component adapter with no Qt dependencies.

An instance wraps a CustomComponentDefinition. Its internal board is
materialized from the definition's snapshot when the instance is created;
the chain of enclosing definition ids is passed down so a definition that
contains itself, directly or indirectly, is rejected instead of recursing.

During a pass the adapter reads its input nodes. When they differ from the
previous evaluation it binds them to the internal InputPort components (in
board order) and runs one full scheduler cycle on the internal board; the
values observed by the internal OutputPort components are then driven onto
the instance's output terminals.
"""

import logging
from typing import Optional

from models.board import BoardModel
from models.builtin import InputPort, OutputPort
from models.component import GRID_SIZE, Capability, Component, TerminalRole
from models.custom import CustomComponentDefinition
from models.properties import StringProperty
from models.registry import CUSTOM_TYPE, StructuralError

from .circuit_validator import check_structure, format_nesting_chain
from .scheduler import SimulationScheduler

logger = logging.getLogger(__name__)

_NOT_EVALUATED = object()


class CustomComponent(Component):
    """Instance of a custom component definition."""

    component_type = CUSTOM_TYPE
    prefix = "X"
    capabilities = frozenset({Capability.CUSTOM, Capability.FULL_ROTATION})

    def __init__(
        self,
        component_id: str,
        definition: CustomComponentDefinition,
        library,
        position: tuple[float, float] = (0.0, 0.0),
        chain: tuple[str, ...] = (),
    ):
        if definition.definition_id in chain:
            raise StructuralError(
                f"{component_id}: custom component '{definition.name}' contains itself "
                f"({format_nesting_chain(chain, definition.definition_id, library)})"
            )
        super().__init__(component_id, position)
        self.definition = definition
        self.display_name = definition.name

        n_in = len(definition.inputs)
        n_out = len(definition.outputs)
        self.width = GRID_SIZE * 4
        self.height = GRID_SIZE * 2 * max(n_in, n_out, 1)
        for i, port in enumerate(definition.inputs):
            self.add_connection_point(0.0, (i + 1) / (n_in + 1), TerminalRole.INPUT, port.name)
        for i, port in enumerate(definition.outputs):
            self.add_connection_point(1.0, (i + 1) / (n_out + 1), TerminalRole.OUTPUT, port.name)
        self.add_property(StringProperty("Name", lambda: self.definition.name, None))

        self.board = BoardModel.from_dict(
            definition.board, library=library, chain=(*chain, definition.definition_id)
        )
        self.input_ports = [c for c in self.board.components.values() if isinstance(c, InputPort)]
        self.output_ports = [c for c in self.board.components.values() if isinstance(c, OutputPort)]
        if len(self.input_ports) != n_in or len(self.output_ports) != n_out:
            raise StructuralError(
                f"{component_id}: '{definition.name}' declares {n_in} input(s) and {n_out} output(s) "
                f"but its board has {len(self.input_ports)} input port(s) and "
                f"{len(self.output_ports)} output port(s)"
            )
        check_structure(self.board)

        self.scheduler = SimulationScheduler()
        self.unstable = False
        self._last_inputs = _NOT_EVALUATED
        self._outputs: list[Optional[float]] = [None] * n_out

    @property
    def definition_id(self) -> str:
        return self.definition.definition_id

    def reset_computed(self) -> None:
        self.unstable = False
        self._last_inputs = _NOT_EVALUATED
        self._outputs = [None] * len(self.output_ports)

    def update(self, context) -> None:
        n_in = len(self.input_ports)
        inputs = tuple(context.value(self.node_index(i)) for i in range(n_in))
        if inputs != self._last_inputs:
            self._last_inputs = inputs
            self._evaluate(inputs)
        for k, value in enumerate(self._outputs):
            if value is not None:
                context.drive(self.node_index(n_in + k), value, self.component_id)

    def _evaluate(self, inputs: tuple) -> None:
        for port, value in zip(self.input_ports, inputs):
            port.bind_external(value)
        result = self.scheduler.run_cycle(self.board)
        if result.stalled:
            logger.warning("%s: internal circuit of '%s' stalled", self.component_id, self.definition.name)
            self.unstable = True
        self._outputs = [port.value for port in self.output_ports]

    def observable_outputs(self) -> tuple:
        return tuple(self._outputs)

    def output_values(self) -> list[Optional[float]]:
        """Values currently driven on the output terminals (None = floating)."""
        return list(self._outputs)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["custom_id"] = self.definition.definition_id
        return data
