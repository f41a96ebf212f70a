"""Tests for models.registry and the custom definition library."""

import pytest
from models.builtin import Battery, NOTGate
from models.custom import CustomComponentDefinition, CustomComponentLibrary, PortDirection
from models.registry import (
    COMPONENT_REGISTRY,
    CUSTOM_TYPE,
    StructuralError,
    component_types,
    create_component,
    prefix_for,
)


class TestRegistry:
    def test_builtin_types_registered(self):
        for type_id in ("Battery", "Ground", "Source", "Switch", "Resistor", "LightBulb", "Ammeter",
                        "Voltmeter", "ANDGate", "NANDGate", "ORGate", "NORGate", "XORGate", "NOTGate",
                        "InputPort", "OutputPort"):
            assert type_id in COMPONENT_REGISTRY

    def test_component_types_include_custom(self):
        assert component_types()[-1] == CUSTOM_TYPE

    def test_create_builtin(self):
        component = create_component("Battery", "B7", (10, 20))
        assert isinstance(component, Battery)
        assert component.component_id == "B7"
        assert component.position == (10.0, 20.0)

    def test_registry_keys_match_type_ids(self):
        for type_id, cls in COMPONENT_REGISTRY.items():
            assert cls.component_type == type_id

    def test_unknown_type(self):
        with pytest.raises(StructuralError):
            create_component("Capacitor", "C1")

    def test_custom_without_library(self):
        with pytest.raises(StructuralError):
            create_component(CUSTOM_TYPE, "X1", custom_id="abc")

    def test_prefixes(self):
        assert prefix_for("NOTGate") == NOTGate.prefix == "U"
        assert prefix_for(CUSTOM_TYPE) == "X"
        with pytest.raises(StructuralError):
            prefix_for("Nope")

    def test_structural_error_is_value_error(self):
        assert issubclass(StructuralError, ValueError)


class TestCustomLibrary:
    def _definition(self, name="Adder"):
        return CustomComponentDefinition.create(name, ["a", "b"], ["sum", "carry"], {"components": [], "wires": []})

    def test_create_assigns_unique_ids(self):
        assert self._definition().definition_id != self._definition().definition_id

    def test_ports_in_order(self):
        definition = self._definition()
        assert [p.name for p in definition.ports] == ["a", "b", "sum", "carry"]
        assert definition.ports[2].direction is PortDirection.OUTPUT

    def test_lookup(self):
        definition = self._definition()
        library = CustomComponentLibrary([definition])
        assert library.get(definition.definition_id) is definition
        assert library.find_by_name("Adder") is definition
        assert library.find_by_name("Nope") is None
        assert definition.definition_id in library
        assert len(library) == 1

    def test_remove_and_clear(self):
        a, b = self._definition("A"), self._definition("B")
        library = CustomComponentLibrary([a, b])
        library.remove(a.definition_id)
        assert list(library) == [b]
        library.clear()
        assert len(library) == 0

    def test_round_trip(self):
        definition = self._definition()
        library = CustomComponentLibrary.from_list(CustomComponentLibrary([definition]).to_list())
        restored = library.get(definition.definition_id)
        assert restored.name == "Adder"
        assert restored.inputs == definition.inputs
        assert restored.outputs == definition.outputs
        assert restored.board == definition.board
