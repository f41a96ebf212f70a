"""Tests for simulation.custom_component recursive sub-circuit adapter."""

import pytest
from models.board import BoardModel
from models.component import Capability
from models.custom import CustomComponentDefinition
from models.registry import StructuralError
from simulation.custom_component import CustomComponent
from tests.conftest import add, inverter_definition, pass_through_definition, run, value_at


def _place(board, definition, position=(60, 0)):
    if definition.definition_id not in board.custom_library:
        board.custom_library.add(definition)
    return board.create_component("Custom", position, custom_id=definition.definition_id)


def _self_referencing(def_id="loop", name="Loop"):
    snapshot = {
        "components": [{"id": "X1", "type": "Custom", "pos": {"x": 0, "y": 0}, "custom_id": def_id}],
        "wires": [],
    }
    return CustomComponentDefinition(def_id, name, [], [], snapshot)


class TestInstance:
    def test_ports_become_terminals_in_order(self, board):
        inner = BoardModel()
        inner.create_component("InputPort")
        inner.create_component("InputPort")
        inner.create_component("OutputPort")
        definition = CustomComponentDefinition.create("Pair", ["a", "b"], ["y"], inner.to_dict())
        instance = _place(board, definition)
        assert isinstance(instance, CustomComponent)
        assert instance.component_id == "X1"
        assert instance.get_terminal_count() == 3
        assert [p.name for p in instance.connection_points] == ["a", "b", "y"]
        assert instance.is_input_point(0) and instance.is_input_point(1)
        assert instance.is_output_point(2)
        assert instance.has_capability(Capability.CUSTOM)

    def test_name_property_is_read_only(self, board):
        instance = _place(board, pass_through_definition("Buffer"))
        assert instance.readings() == {"Name": "Buffer"}
        assert not instance.get_property("Name").editable

    def test_to_dict_records_definition(self, board):
        definition = pass_through_definition()
        instance = _place(board, definition)
        assert instance.to_dict()["custom_id"] == definition.definition_id


class TestSimulation:
    def test_pass_through(self, board):
        add(board, "Source", (0, 0), Active=True)
        _place(board, pass_through_definition())
        board.connect("S1", 0, "X1", 0)
        result = run(board)
        assert result.converged
        assert value_at(board, result, "X1", 1) == 5.0

    def test_pass_through_follows_input_changes(self, board):
        source = add(board, "Source", (0, 0), Active=True)
        _place(board, pass_through_definition())
        board.connect("S1", 0, "X1", 0)
        run(board)
        source.set_property("Active", False)
        result = run(board)
        assert value_at(board, result, "X1", 1) is None

    def test_floating_input_reads_low_inside(self, board):
        _place(board, inverter_definition())
        result = run(board)
        assert value_at(board, result, "X1", 1) == 5.0

    def test_inverter_inverts(self, board):
        add(board, "Source", (0, 0), Active=True)
        _place(board, inverter_definition())
        board.connect("S1", 0, "X1", 0)
        result = run(board)
        assert value_at(board, result, "X1", 1) == 0.0

    def test_nested_custom_components(self, board):
        inv = inverter_definition()
        middle = BoardModel()
        middle.custom_library.add(inv)
        middle.create_component("InputPort", (0, 0))
        middle.create_component("Custom", (40, 0), custom_id=inv.definition_id)
        middle.create_component("Custom", (100, 0), custom_id=inv.definition_id)
        middle.create_component("OutputPort", (160, 0))
        middle.connect("IN1", 0, "X1", 0)
        middle.connect("X1", 1, "X2", 0)
        middle.connect("X2", 1, "OUT1", 0)
        double = CustomComponentDefinition.create("Double", ["a"], ["y"], middle.to_dict())

        add(board, "Source", (0, 0), Active=True)
        _place(board, double)
        board.connect("S1", 0, "X1", 0)
        result = run(board)
        assert result.converged
        assert value_at(board, result, "X1", 1) == 5.0
        # The shared library picked up the nested definition
        assert inv.definition_id in board.custom_library

    def test_two_instances_are_independent(self, board):
        definition = inverter_definition()
        add(board, "Source", (0, 0), Active=True)
        _place(board, definition, (60, 0))
        _place(board, definition, (60, 80))
        board.connect("S1", 0, "X1", 0)
        result = run(board)
        assert value_at(board, result, "X1", 1) == 0.0
        assert value_at(board, result, "X2", 1) == 5.0

    def test_unstable_inner_board(self, board):
        inner = BoardModel()
        inner.settings.max_passes = 20
        inner.create_component("InputPort")
        gate = inner.create_component("NOTGate", (40, 0))
        inner.create_component("OutputPort", (100, 0))
        inner.connect(gate.component_id, 1, gate.component_id, 0)
        inner.connect(gate.component_id, 1, "OUT1", 0)
        definition = CustomComponentDefinition.create("Blinker", ["a"], ["y"], inner.to_dict())
        instance = _place(board, definition)
        result = run(board)
        assert instance.unstable is True
        assert result.unstable_components == ["X1"]
        assert "X1: internal circuit did not settle." in result.warnings

    def test_snapshot_round_trip(self, board):
        add(board, "Source", (0, 0), Active=True)
        _place(board, inverter_definition())
        board.connect("S1", 0, "X1", 0)
        restored = BoardModel.from_dict(board.to_dict())
        result = run(restored)
        assert value_at(restored, result, "X1", 1) == 0.0


class TestStructuralErrors:
    def test_unknown_definition(self, board):
        with pytest.raises(StructuralError, match="unknown custom component definition"):
            board.create_component("Custom", custom_id="missing")

    def test_direct_self_nesting(self, board):
        definition = _self_referencing()
        with pytest.raises(StructuralError, match=r"contains itself \(Loop -> Loop\)"):
            _place(board, definition)
        assert board.components == {}

    def test_indirect_self_nesting(self, board):
        snapshot_a = {
            "components": [{"id": "X1", "type": "Custom", "pos": {"x": 0, "y": 0}, "custom_id": "b"}],
            "wires": [],
        }
        snapshot_b = {
            "components": [{"id": "X1", "type": "Custom", "pos": {"x": 0, "y": 0}, "custom_id": "a"}],
            "wires": [],
        }
        board.custom_library.add(CustomComponentDefinition("a", "A", [], [], snapshot_a))
        board.custom_library.add(CustomComponentDefinition("b", "B", [], [], snapshot_b))
        with pytest.raises(StructuralError, match="A -> B -> A"):
            board.create_component("Custom", custom_id="a")

    def test_port_count_mismatch(self, board):
        inner = BoardModel()
        inner.create_component("InputPort")
        definition = CustomComponentDefinition.create("Broken", ["a", "b"], [], inner.to_dict())
        with pytest.raises(StructuralError, match="2 input"):
            _place(board, definition)

    def test_broken_inner_wiring(self, board):
        snapshot = {
            "components": [{"id": "IN1", "type": "InputPort", "pos": {"x": 0, "y": 0}}],
            "wire_nodes": [{"id": 0, "pos": {"x": 0, "y": 0}, "attachment": {"component": "IN1", "terminal": 7}}],
            "wires": [],
        }
        definition = CustomComponentDefinition.create("Dangling", ["a"], [], snapshot)
        with pytest.raises(StructuralError, match="terminal 7"):
            _place(board, definition)
