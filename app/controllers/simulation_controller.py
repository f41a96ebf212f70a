"""
SimulationController - Orchestrates simulation cycles.

This module contains no Qt dependencies. It coordinates board
validation, deferred edits, the scheduler, diagnosis of stalls and
structural errors, and readback of node values and component displays.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Optional

from models.board import BoardModel
from simulation.circuit_validator import StructuralError, validate_board
from simulation.convergence import diagnose_cycle, diagnose_error, format_user_message
from simulation.network_state import LogicLevel
from simulation.scheduler import CycleResult, SimulationScheduler, SimulationState

logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    """Result of a simulation run."""

    success: bool
    status: str = ""
    passes: int = 0
    data: Any = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    error: str = ""
    diagnoses: list = field(default_factory=list)

    @property
    def converged(self) -> bool:
        return self.status == SimulationState.CONVERGED.value

    @property
    def stalled(self) -> bool:
        return self.status == SimulationState.STALLED.value


class SimulationController:
    """
    Controller for simulation cycles.

    Coordinates: replay deferred edits -> validate -> build -> propagate -> read back
    """

    def __init__(self, model: Optional[BoardModel] = None, board_ctrl=None):
        if model is None:
            model = board_ctrl.model if board_ctrl is not None else BoardModel()
        self.model = model
        self.board_ctrl = board_ctrl
        self.scheduler = SimulationScheduler()
        self.last_cycle: Optional[CycleResult] = None
        self._cancel_requested = False

    @property
    def state(self) -> SimulationState:
        return self.scheduler.state

    def set_max_passes(self, max_passes: int) -> None:
        """Change the pass bound; raises ValueError for non-positive values."""
        self.model.settings = replace(self.model.settings, max_passes=max_passes)

    def _notify(self, event: str, data: Any) -> None:
        if self.board_ctrl:
            self.board_ctrl._notify(event, data)

    # --- Validation ---

    def validate_board(self) -> SimulationResult:
        """
        Validate the board before simulation.

        Returns a SimulationResult with success=False and errors if invalid.
        """
        is_valid, errors, warnings = validate_board(self.model)
        return SimulationResult(
            success=is_valid,
            errors=errors,
            warnings=warnings,
            error="; ".join(errors) if errors else "",
        )

    # --- Running ---

    def cancel(self) -> None:
        """Ask the running cycle to abort at the next pass boundary."""
        self._cancel_requested = True

    def _should_abort(self) -> bool:
        if self._cancel_requested:
            return True
        return bool(self.board_ctrl and self.board_ctrl.abort_requested)

    def _on_building(self) -> None:
        if self.board_ctrl:
            self.board_ctrl.replay_pending_edits()

    def run_simulation(self, should_abort: Optional[Callable[[], bool]] = None) -> SimulationResult:
        """
        Run one simulation cycle.

        Args:
            should_abort: Extra cancellation check polled between passes.

        Returns:
            SimulationResult. success is True for CONVERGED and STALLED
            cycles (a stall is reported through warnings and diagnoses);
            structural errors and aborted cycles give success=False.
        """
        self._notify("simulation_started", None)
        self._cancel_requested = False

        def _abort_check():
            return self._should_abort() or bool(should_abort and should_abort())

        if self.board_ctrl:
            self.board_ctrl.begin_cycle()
        try:
            cycle = self.scheduler.run_cycle(self.model, should_abort=_abort_check, on_building=self._on_building)
        except StructuralError as e:
            diagnosis = diagnose_error(str(e))
            result = SimulationResult(
                success=False,
                errors=[str(e)],
                error=format_user_message(diagnosis, str(e)),
                diagnoses=[diagnosis],
            )
            logger.warning("Simulation rejected: %s", e)
            self._notify("simulation_completed", result)
            return result
        finally:
            if self.board_ctrl:
                self.board_ctrl.end_cycle()

        if cycle.aborted:
            result = SimulationResult(success=False, status=cycle.status.value, passes=cycle.passes,
                                      error="Simulation cancelled.")
            self._notify("simulation_aborted", result)
            return result

        self.last_cycle = cycle
        result = SimulationResult(
            success=True,
            status=cycle.status.value,
            passes=cycle.passes,
            data=self.get_results(),
            warnings=list(cycle.warnings),
            diagnoses=diagnose_cycle(cycle),
        )
        self._notify("simulation_completed", result)
        return result

    def run_property_sweep(
        self,
        component_id: str,
        property_name: str,
        values: list,
        progress_callback: Optional[Callable[[int, int], bool]] = None,
    ) -> SimulationResult:
        """
        Run one cycle per property value and collect the results.

        Args:
            component_id: Component whose property is swept.
            property_name: Editable property to set at each step.
            values: Values to apply, in order.
            progress_callback: optional callable(step_index, total_steps) -> bool.
                               Return False to cancel the sweep.

        Returns:
            SimulationResult whose data holds the swept values and one
            result dict per completed step. The original value is restored.
        """
        component = self.model.components.get(component_id)
        if component is None:
            return SimulationResult(success=False, error=f"Component {component_id} not found on board")

        prop = component.get_property(property_name)
        original_value = prop.get_editor_value()
        step_results = []
        errors = []
        try:
            for i, value in enumerate(values):
                if progress_callback and not progress_callback(i, len(values)):
                    break
                try:
                    component.set_property(property_name, value)
                except ValueError as e:
                    errors.append(f"Step {i + 1} ({value!r}): {e}")
                    step_results.append(None)
                    continue
                step = self.run_simulation()
                if not step.success:
                    errors.append(f"Step {i + 1} ({value!r}): {step.error}")
                step_results.append(step.data)
        finally:
            prop.set_value_from_editor(original_value)

        return SimulationResult(
            success=not errors,
            status="sweep",
            data={
                "component_id": component_id,
                "property": property_name,
                "values": list(values[: len(step_results)]),
                "results": step_results,
            },
            errors=errors,
            error="; ".join(errors),
        )

    # --- Readback ---

    def node_value(self, component_id: str, terminal: int) -> Optional[float]:
        """Final voltage on a terminal's node (None when floating or not simulated)."""
        if self.last_cycle is None or self.last_cycle.state is None:
            return None
        return self.last_cycle.state.value(self.model.node_id_at(component_id, terminal))

    def logic_level(self, component_id: str, terminal: int) -> LogicLevel:
        return LogicLevel.of(self.node_value(component_id, terminal), self.model.settings.logic_threshold)

    def get_results(self) -> dict:
        """Result dict consumed by the exporters and the CLI."""
        cycle = self.last_cycle
        if cycle is None or cycle.network is None:
            return {"status": "", "passes": 0, "nodes": {}, "components": {}, "warnings": []}
        nodes = {}
        for node in cycle.network.nodes:
            label = node.get_label()
            if label in nodes:
                label = f"{label}#{node.node_id}"
            nodes[label] = cycle.state.value(node.node_id)
        components = {
            component_id: component.readings()
            for component_id, component in self.model.components.items()
            if component.readings()
        }
        return {
            "status": cycle.status.value,
            "passes": cycle.passes,
            "nodes": nodes,
            "components": components,
            "warnings": list(cycle.warnings),
        }
