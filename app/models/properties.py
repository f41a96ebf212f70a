"""
Component properties - typed accessors exposed to the property editor.

This module contains no Qt dependencies. Each property wraps a getter (and
optionally a setter) on its owning component so the value shown is always
read from live component state.
"""

import math
from enum import Enum
from typing import Any, Callable, Optional


class PropertyType(Enum):
    """Value types a property editor knows how to present."""

    FLOAT = "float"
    BOOLEAN = "boolean"
    STRING = "string"


class PropertyValidationError(ValueError):
    """Raised when an edited value is rejected. The previous value is kept."""


def format_float(value: float) -> str:
    """Format a float with at most two decimals ("0.##")."""
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    if text in ("-0", ""):
        return "0"
    return text


class ComponentProperty:
    """Base class for a named, typed component property."""

    def __init__(self, name: str, property_type: PropertyType, displayable: bool, editable: bool):
        self.name = name
        self.property_type = property_type
        self.displayable = displayable
        self.editable = editable

    def get_editor_value(self) -> Any:
        raise NotImplementedError

    def set_value_from_editor(self, value: Any) -> None:
        raise NotImplementedError

    def get_display_value(self) -> str:
        return str(self.get_editor_value())

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r}={self.get_display_value()!r})"


class FloatProperty(ComponentProperty):
    """Editable float property. Non-numeric input is rejected."""

    def __init__(self, name: str, getter: Callable[[], float], setter: Callable[[float], None],
                 displayable: bool = True):
        super().__init__(name, PropertyType.FLOAT, displayable, True)
        self._getter = getter
        self._setter = setter

    def get_editor_value(self) -> float:
        return self._getter()

    def set_value_from_editor(self, value: Any) -> None:
        if isinstance(value, bool):
            raise PropertyValidationError(f"Invalid number for {self.name}")
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            try:
                number = float(value.strip())
            except ValueError:
                raise PropertyValidationError(f"Invalid number for {self.name}: {value!r}") from None
        else:
            raise PropertyValidationError(f"Invalid number for {self.name}: {value!r}")

        if math.isnan(number) or math.isinf(number):
            raise PropertyValidationError(f"Invalid number for {self.name}: {value!r}")
        self._setter(number)

    def get_display_value(self) -> str:
        return format_float(self._getter())


class ComputedFloatProperty(ComponentProperty):
    """Read-only float computed from live simulation state on every access."""

    def __init__(self, name: str, getter: Callable[[], float], displayable: bool = False):
        super().__init__(name, PropertyType.FLOAT, displayable, False)
        self._getter = getter

    def get_editor_value(self) -> float:
        return self._getter()

    def set_value_from_editor(self, value: Any) -> None:
        raise PropertyValidationError(f"{self.name} is read-only")

    def get_display_value(self) -> str:
        value = self._getter()
        return "" if value is None else format_float(value)


_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off"}


class BooleanProperty(ComponentProperty):
    """Editable boolean property (accepts bools and true/false strings)."""

    def __init__(self, name: str, getter: Callable[[], bool], setter: Callable[[bool], None],
                 displayable: bool = False):
        super().__init__(name, PropertyType.BOOLEAN, displayable, True)
        self._getter = getter
        self._setter = setter

    def get_editor_value(self) -> bool:
        return self._getter()

    def set_value_from_editor(self, value: Any) -> None:
        if isinstance(value, bool):
            self._setter(value)
            return
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                self._setter(True)
                return
            if lowered in _FALSE_STRINGS:
                self._setter(False)
                return
        raise PropertyValidationError(f"Invalid boolean for {self.name}: {value!r}")


class StringProperty(ComponentProperty):
    """Editable free-text property."""

    def __init__(self, name: str, getter: Callable[[], str], setter: Optional[Callable[[str], None]],
                 displayable: bool = False, editable: bool = True):
        super().__init__(name, PropertyType.STRING, displayable, editable and setter is not None)
        self._getter = getter
        self._setter = setter

    def get_editor_value(self) -> str:
        return self._getter()

    def set_value_from_editor(self, value: Any) -> None:
        if not self.editable:
            raise PropertyValidationError(f"{self.name} is read-only")
        if value is None:
            raise PropertyValidationError(f"Invalid text for {self.name}")
        self._setter(str(value).strip())
