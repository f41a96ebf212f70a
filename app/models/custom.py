"""
Custom component definitions - reusable sub-circuits.

This module contains no Qt dependencies. A definition holds an internal
board snapshot plus the ordered list of exposed ports. Instances of a
definition are created through the component registry and simulated by
simulation/custom_component.py.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional


class PortDirection(Enum):
    INPUT = "input"
    OUTPUT = "output"


@dataclass(frozen=True)
class CustomPort:
    """An exposed port of a custom component."""

    name: str
    direction: PortDirection


@dataclass
class CustomComponentDefinition:
    """
    A named sub-circuit with ordered input and output ports.

    ``board`` is a board snapshot (see BoardModel.to_dict). Its InputPort
    components are bound to ``inputs`` and its OutputPort components to
    ``outputs`` by board insertion order.
    """

    definition_id: str
    name: str
    inputs: list[CustomPort] = field(default_factory=list)
    outputs: list[CustomPort] = field(default_factory=list)
    board: dict = field(default_factory=dict)

    @classmethod
    def create(cls, name: str, inputs: list[str], outputs: list[str], board: dict) -> "CustomComponentDefinition":
        """Create a definition with a fresh id."""
        return cls(
            definition_id=str(uuid.uuid4()),
            name=name,
            inputs=[CustomPort(n, PortDirection.INPUT) for n in inputs],
            outputs=[CustomPort(n, PortDirection.OUTPUT) for n in outputs],
            board=board,
        )

    @property
    def ports(self) -> list[CustomPort]:
        """All ports, inputs first, in connection-point order."""
        return self.inputs + self.outputs

    def to_dict(self) -> dict:
        return {
            "id": self.definition_id,
            "name": self.name,
            "inputs": [p.name for p in self.inputs],
            "outputs": [p.name for p in self.outputs],
            "board": self.board,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CustomComponentDefinition":
        return cls(
            definition_id=str(data["id"]),
            name=data.get("name", ""),
            inputs=[CustomPort(n, PortDirection.INPUT) for n in data.get("inputs", [])],
            outputs=[CustomPort(n, PortDirection.OUTPUT) for n in data.get("outputs", [])],
            board=data.get("board", {}),
        )

    def __repr__(self) -> str:
        return f"CustomComponentDefinition({self.name!r}, in={len(self.inputs)}, out={len(self.outputs)})"


class CustomComponentLibrary:
    """Ordered collection of custom component definitions keyed by id."""

    def __init__(self, definitions: Optional[list[CustomComponentDefinition]] = None):
        self._definitions: dict[str, CustomComponentDefinition] = {}
        for definition in definitions or []:
            self.add(definition)

    def add(self, definition: CustomComponentDefinition) -> None:
        self._definitions[definition.definition_id] = definition

    def remove(self, definition_id: str) -> None:
        self._definitions.pop(definition_id, None)

    def get(self, definition_id: str) -> Optional[CustomComponentDefinition]:
        return self._definitions.get(definition_id)

    def find_by_name(self, name: str) -> Optional[CustomComponentDefinition]:
        for definition in self._definitions.values():
            if definition.name == name:
                return definition
        return None

    def clear(self) -> None:
        self._definitions.clear()

    def __contains__(self, definition_id: str) -> bool:
        return definition_id in self._definitions

    def __iter__(self) -> Iterator[CustomComponentDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def to_list(self) -> list[dict]:
        return [d.to_dict() for d in self._definitions.values()]

    @classmethod
    def from_list(cls, data: list[dict]) -> "CustomComponentLibrary":
        return cls([CustomComponentDefinition.from_dict(d) for d in data])
