"""
simulation/scheduler.py

Fixed-point simulation scheduler with no Qt dependencies.

A cycle moves through the states

    IDLE -> BUILDING -> PROPAGATING -> CONVERGED | STALLED -> IDLE

or ends ABORTED when cancelled between passes. Each pass updates every
component in board insertion order against the node state left by the
previous pass (Jacobi iteration). A pass in which no component's
observable outputs and no resolved node value changed ends the cycle as
CONVERGED; reaching ``settings.max_passes`` ends it as STALLED with the last
values kept and the board flagged unstable. The reported pass count is the
number of passes that changed something; the quiet pass confirming
convergence is not counted.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from models.component import Capability

from .circuit_validator import check_structure
from .network_builder import Network, NetworkBuilder
from .network_state import NetworkState, PassContext

logger = logging.getLogger(__name__)


class SimulationState(Enum):
    IDLE = "idle"
    BUILDING = "building"
    PROPAGATING = "propagating"
    CONVERGED = "converged"
    STALLED = "stalled"
    ABORTED = "aborted"


@dataclass
class CycleResult:
    """Outcome of one simulation cycle."""

    status: SimulationState
    # passes that changed a value or output
    passes: int = 0
    network: Optional[Network] = None
    state: Optional[NetworkState] = None
    floating_terminals: list[tuple[str, int]] = field(default_factory=list)
    contentions: list[int] = field(default_factory=list)
    unstable_components: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def converged(self) -> bool:
        return self.status is SimulationState.CONVERGED

    @property
    def stalled(self) -> bool:
        return self.status is SimulationState.STALLED

    @property
    def aborted(self) -> bool:
        return self.status is SimulationState.ABORTED


class SimulationScheduler:
    """
    Runs simulation cycles on a board.

    Args:
        on_state_change: Optional callback receiving each new SimulationState.
    """

    def __init__(self, on_state_change: Optional[Callable[[SimulationState], None]] = None):
        self.state = SimulationState.IDLE
        self.builder = NetworkBuilder()
        self._on_state_change = on_state_change

    def _set_state(self, state: SimulationState) -> None:
        logger.debug("Scheduler %s -> %s", self.state.value, state.value)
        self.state = state
        if self._on_state_change is not None:
            self._on_state_change(state)

    def run_cycle(
        self,
        board,
        should_abort: Optional[Callable[[], bool]] = None,
        on_building: Optional[Callable[[], None]] = None,
    ) -> CycleResult:
        """
        Run one full cycle on ``board``.

        Args:
            board: BoardModel to simulate.
            should_abort: Polled between passes; returning True aborts.
            on_building: Called first thing in BUILDING (deferred edits).

        Raises:
            StructuralError: the board cannot be simulated. The scheduler is
                back in IDLE and no component has been updated.

        Whatever a component update raises propagates unchanged, with the
        scheduler back in IDLE.
        """
        if self.state not in (SimulationState.IDLE,):
            raise RuntimeError(f"Cannot start a cycle while {self.state.value}")

        # --- BUILDING ---
        self._set_state(SimulationState.BUILDING)
        try:
            if on_building is not None:
                on_building()
            check_structure(board)
            network = self.builder.build(board)
            return self._propagate(board, network, should_abort)
        finally:
            if self.state is not SimulationState.IDLE:
                self._set_state(SimulationState.IDLE)

    def _propagate(self, board, network: Network, should_abort) -> CycleResult:
        settings = board.settings
        log = logger.debug if board.definition_chain else logger.info
        board.network = network
        components = list(board.components.values())
        for component in components:
            component.before_simulation()

        # --- PROPAGATING ---
        self._set_state(SimulationState.PROPAGATING)
        adjacency = network.neighbours()
        previous = NetworkState(network.node_count, settings)
        previous_outputs = [component.observable_outputs() for component in components]
        status = SimulationState.STALLED
        passes = 0

        for _ in range(settings.max_passes):
            if should_abort is not None and should_abort():
                return self._abort(board, passes)

            context = PassContext(previous, adjacency)
            for component in components:
                component.update(context)
            current = context.resolve()
            outputs = [component.observable_outputs() for component in components]

            changed = outputs != previous_outputs or not current.same_values(previous)
            previous, previous_outputs = current, outputs
            if not changed:
                status = SimulationState.CONVERGED
                break
            passes += 1

        self._set_state(status)
        final = previous

        for component in components:
            component.after_simulation(final)
            if component.has_capability(Capability.SWITCH_LIKE):
                nodes = [component.node_index(t) for t in range(component.get_terminal_count())]
                component.set_computed_ampere(max((final.current_at(n) for n in nodes), default=0.0))

        unstable_components = [
            c.component_id for c in components if c.has_capability(Capability.CUSTOM) and c.unstable
        ]
        board.unstable = status is SimulationState.STALLED

        result = CycleResult(
            status=status,
            passes=passes,
            network=network,
            state=final,
            floating_terminals=list(network.floating_terminals),
            contentions=list(final.contentions),
            unstable_components=unstable_components,
        )
        result.warnings = self._advisories(result, board)

        if status is SimulationState.STALLED:
            logger.warning("Simulation stalled after %d passes; board marked unstable", passes)
        else:
            log("Simulation converged after %d passes (%d nodes)", passes, network.node_count)
        return result

    def _abort(self, board, passes: int) -> CycleResult:
        logger.info("Simulation aborted after %d passes", passes)
        self._set_state(SimulationState.ABORTED)
        board.reset_computed()
        return CycleResult(status=SimulationState.ABORTED, passes=passes)

    @staticmethod
    def _advisories(result: CycleResult, board) -> list[str]:
        warnings = []
        if result.stalled:
            warnings.append(
                f"Simulation did not settle within {board.settings.max_passes} passes; "
                "values shown are from the last pass."
            )
        for component_id in result.unstable_components:
            warnings.append(f"{component_id}: internal circuit did not settle.")
        for node_id in result.contentions:
            sources = ", ".join(sorted(result.state.drives.get(node_id, {})))
            warnings.append(f"Conflicting drives on {result.network.label_of(node_id)} ({sources}).")
        for component_id, terminal in result.floating_terminals:
            warnings.append(f"{component_id} terminal {terminal} is not connected.")
        return warnings
