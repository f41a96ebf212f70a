"""
Component registry - static table of component type ids.

This module contains no Qt dependencies. The registry is used to
materialize boards from snapshots (including the internal boards of custom
components); it is an explicit table rather than runtime discovery.
"""

from typing import Optional

from .builtin import (
    ANDGate,
    Ammeter,
    Battery,
    Ground,
    InputPort,
    Junction,
    LightBulb,
    NANDGate,
    NORGate,
    NOTGate,
    ORGate,
    OutputPort,
    Relay,
    Resistor,
    Source,
    Switch,
    VariableResistor,
    Voltmeter,
    XORGate,
)
from .component import Component

CUSTOM_TYPE = "Custom"


class StructuralError(ValueError):
    """Raised when a board cannot be simulated because its structure is broken."""


COMPONENT_REGISTRY: dict[str, type] = {
    cls.component_type: cls
    for cls in (
        Battery,
        Ground,
        Source,
        Switch,
        Relay,
        Resistor,
        VariableResistor,
        LightBulb,
        Ammeter,
        Voltmeter,
        Junction,
        ANDGate,
        NANDGate,
        ORGate,
        NORGate,
        XORGate,
        NOTGate,
        InputPort,
        OutputPort,
    )
}

# Type id -> component id prefix (R1, B2, ...)
TYPE_PREFIXES: dict[str, str] = {type_id: cls.prefix for type_id, cls in COMPONENT_REGISTRY.items()}
TYPE_PREFIXES[CUSTOM_TYPE] = "X"


def component_types() -> list[str]:
    """All type ids that can be created, custom included."""
    return list(COMPONENT_REGISTRY) + [CUSTOM_TYPE]


def prefix_for(type_id: str) -> str:
    try:
        return TYPE_PREFIXES[type_id]
    except KeyError:
        raise StructuralError(f"Unknown component type '{type_id}'") from None


def create_component(
    type_id: str,
    component_id: str,
    position: tuple[float, float] = (0.0, 0.0),
    custom_id: Optional[str] = None,
    library=None,
    chain: tuple[str, ...] = (),
) -> Component:
    """
    Create a component by type id.

    Args:
        type_id: Registry type id, or "Custom".
        component_id: Id of the new component.
        position: Top-left corner.
        custom_id: Definition id, required for "Custom".
        library: CustomComponentLibrary that resolves ``custom_id``.
        chain: Definition ids of the enclosing custom instances.

    Raises:
        StructuralError: unknown type id or unresolvable custom definition.
    """
    if type_id == CUSTOM_TYPE:
        # Imported here; the adapter builds boards through this registry
        from simulation.custom_component import CustomComponent

        definition = library.get(custom_id) if (library is not None and custom_id) else None
        if definition is None:
            raise StructuralError(f"{component_id}: unknown custom component definition '{custom_id}'")
        return CustomComponent(component_id, definition, library, position=position, chain=chain)

    cls = COMPONENT_REGISTRY.get(type_id)
    if cls is None:
        raise StructuralError(f"Unknown component type '{type_id}'")
    return cls(component_id, position)
