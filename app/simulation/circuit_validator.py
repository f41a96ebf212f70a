"""
simulation/circuit_validator.py

Pre-simulation board validation with no Qt dependencies.

check_structure() is run by the scheduler in the BUILDING phase and raises
StructuralError for anything that would make the network ill-defined.
validate_board() is the friendlier report used by the controllers and the
CLI: structural problems become errors, everything else warnings.
"""

from models.registry import StructuralError

__all__ = ["StructuralError", "check_structure", "format_nesting_chain", "structural_errors", "validate_board"]

# Components that need no wiring to be meaningful
_STANDALONE_TYPES = {"Source", "InputPort"}


def format_nesting_chain(chain, definition_id, library=None) -> str:
    """Render a custom nesting chain like "Adder -> HalfAdder -> Adder"."""

    def _name(def_id):
        definition = library.get(def_id) if library is not None else None
        return definition.name if definition is not None else def_id

    return " -> ".join(_name(d) for d in (*chain, definition_id))


def structural_errors(board) -> list[str]:
    """
    Collect structural problems of a board.

    Returns:
        List of error strings; empty when the board can be simulated.
    """
    errors = []

    for index, wire in enumerate(board.wires):
        for endpoint in wire.endpoints():
            if endpoint.node_id is not None and endpoint.node_id not in board.wire_nodes:
                errors.append(f"Wire {index} references missing wire node {endpoint.node_id}.")

    for node_id in sorted(board.wire_nodes):
        attachment = board.wire_nodes[node_id].attachment
        if attachment is None:
            continue
        component = board.components.get(attachment.component_id)
        if component is None:
            errors.append(f"Wire node {node_id} is attached to missing component '{attachment.component_id}'.")
        elif not (0 <= attachment.terminal < component.get_terminal_count()):
            errors.append(
                f"Wire node {node_id} is attached to terminal {attachment.terminal} of "
                f"{attachment.component_id}, which has {component.get_terminal_count()} terminal(s)."
            )

    for component in board.components.values():
        count = component.get_terminal_count()
        for group in component.shorted_terminal_groups():
            if any(not (0 <= t < count) for t in group):
                errors.append(f"{component.component_id} shorts terminals {group} out of range.")
        for terminal_a, terminal_b, _ in component.couplings():
            if not (0 <= terminal_a < count and 0 <= terminal_b < count):
                errors.append(f"{component.component_id} couples terminals out of range.")

    return errors


def check_structure(board) -> None:
    """
    Raise StructuralError if the board cannot be simulated.

    Called in the BUILDING phase, before any component is updated.
    """
    errors = structural_errors(board)
    if errors:
        raise StructuralError("; ".join(errors))


def validate_board(board):
    """
    Validate a board before simulation.

    Args:
        board: BoardModel

    Returns:
        (is_valid, errors, warnings) where:
            is_valid: bool, False if any errors found
            errors: list[str], problems that block simulation
            warnings: list[str], non-blocking issues
    """
    errors = structural_errors(board)
    warnings = []

    if not board.components:
        warnings.append("Board has no components. Add at least one component to simulate.")
        return not errors, errors, warnings

    attached = set()
    for node in board.wire_nodes.values():
        if node.attachment is not None and node.wire_indices:
            attached.add((node.attachment.component_id, node.attachment.terminal))

    for component in board.components.values():
        terminal_count = component.get_terminal_count()
        unconnected = [i for i in range(terminal_count) if (component.component_id, i) not in attached]
        if not unconnected:
            continue
        if len(unconnected) == terminal_count and component.component_type not in _STANDALONE_TYPES:
            warnings.append(
                f"{component.component_id} ({component.component_type}) has no connections. "
                f"Connect its terminals to the board."
            )
        elif len(unconnected) < terminal_count:
            warnings.append(
                f"{component.component_id} ({component.component_type}) has unconnected terminal(s): {unconnected}."
            )

    has_driver = any(
        c.component_type in ("Battery", "Source", "InputPort", "Ground") or c.output_count
        for c in board.components.values()
    )
    if not has_driver:
        warnings.append("Board has no sources; every node will be floating.")

    return not errors, errors, warnings
