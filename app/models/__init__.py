"""
Pure Python data models for the circuit board.

This package contains Qt-free data classes that represent board elements.
All models use only Python standard library types.
"""

from .board import BoardModel
from .component import GRID_SIZE, Capability, Component, ConnectionPoint, TerminalRole
from .custom import CustomComponentDefinition, CustomComponentLibrary, CustomPort, PortDirection
from .node import NodeData
from .properties import PropertyValidationError
from .registry import COMPONENT_REGISTRY, StructuralError, create_component
from .wire import Attachment, WireColor, WireData, WireEndpoint, WireNode

__all__ = [
    "BoardModel",
    "Component",
    "ConnectionPoint",
    "Capability",
    "TerminalRole",
    "GRID_SIZE",
    "CustomComponentDefinition",
    "CustomComponentLibrary",
    "CustomPort",
    "PortDirection",
    "NodeData",
    "PropertyValidationError",
    "COMPONENT_REGISTRY",
    "StructuralError",
    "create_component",
    "Attachment",
    "WireColor",
    "WireData",
    "WireEndpoint",
    "WireNode",
]
