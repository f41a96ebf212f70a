"""Tests for BoardModel wiring graph maintenance and snapshots."""

import pytest
from models.board import BoardModel
from models.registry import StructuralError
from models.wire import Attachment, WireColor, WireEndpoint


def _two_resistors():
    board = BoardModel()
    r1 = board.create_component("Resistor", (0, 0))
    r2 = board.create_component("Resistor", (100, 0))
    return board, r1, r2


class TestComponentIds:
    def test_sequential_ids_per_prefix(self, board):
        assert board.create_component("Resistor").component_id == "R1"
        assert board.create_component("Resistor").component_id == "R2"
        assert board.create_component("Battery").component_id == "B1"
        assert board.create_component("NOTGate").component_id == "U1"
        assert board.create_component("ANDGate").component_id == "U2"

    def test_counter_skips_taken_ids(self, board):
        board.create_component("Resistor")
        board.component_counter["R"] = 0
        assert board.create_component("Resistor").component_id == "R2"

    def test_duplicate_component_rejected(self, board):
        component = board.create_component("Resistor")
        with pytest.raises(ValueError):
            board.add_component(component)

    def test_unknown_type(self, board):
        with pytest.raises(StructuralError, match="Unknown component type"):
            board.create_component("FluxCapacitor")

    def test_positions_are_snapped(self, board):
        component = board.create_component("Resistor", (13, 27))
        assert component.position == (10.0, 30.0)


class TestWireNodes:
    def test_connect_creates_attached_nodes(self):
        board, r1, r2 = _two_resistors()
        wire = board.connect("R1", 1, "R2", 0)
        start = board.wire_nodes[wire.start.node_id]
        end = board.wire_nodes[wire.end.node_id]
        assert start.attachment == Attachment("R1", 1)
        assert end.attachment == Attachment("R2", 0)
        assert start.position == r1.get_terminal_position(1)
        assert start.wire_indices == {0}

    def test_connect_reuses_terminal_node(self):
        board, _, _ = _two_resistors()
        board.create_component("Resistor", (200, 0))
        board.connect("R1", 1, "R2", 0)
        board.connect("R1", 1, "R3", 0)
        r1_node = board.node_at_terminal("R1", 1)
        assert r1_node.wire_indices == {0, 1}
        assert len(board.wire_nodes) == 3

    def test_moving_component_moves_attached_nodes(self):
        board, r1, _ = _two_resistors()
        board.connect("R1", 1, "R2", 0)
        board.move_component("R1", (0, 50))
        assert board.node_at_terminal("R1", 1).position == r1.get_terminal_position(1)

    def test_rotating_component_moves_attached_nodes(self):
        board, r1, _ = _two_resistors()
        board.connect("R1", 1, "R2", 0)
        board.rotate_component("R1")
        assert board.node_at_terminal("R1", 1).position == r1.get_terminal_position(1)

    def test_attach_rejects_bad_terminal(self):
        board, _, _ = _two_resistors()
        node = board.add_wire_node((0, 0))
        with pytest.raises(StructuralError):
            board.attach(node.node_id, "R1", 5)

    def test_wire_to_unknown_node_rejected(self, board):
        with pytest.raises(StructuralError):
            board.add_wire(WireEndpoint.at_node(42), WireEndpoint.free(0, 0))

    def test_removing_wire_prunes_unattached_nodes(self, board):
        a = board.add_wire_node((0, 0))
        b = board.add_wire_node((50, 0))
        board.add_wire(WireEndpoint.at_node(a.node_id), WireEndpoint.at_node(b.node_id))
        board.remove_wire(0)
        assert board.wire_nodes == {}

    def test_unused_free_node_pruned_by_next_wire(self, board):
        stray = board.add_wire_node((0, 0))
        a = board.add_wire_node((50, 0))
        board.add_wire(WireEndpoint.at_node(a.node_id), WireEndpoint.free(100, 0))
        assert stray.node_id not in board.wire_nodes
        assert a.node_id in board.wire_nodes

    def test_free_node_used_by_wire_survives(self, board):
        node = board.add_wire_node((0, 0))
        board.add_wire(WireEndpoint.free(-50, 0), WireEndpoint.at_node(node.node_id))
        assert list(board.wire_nodes) == [node.node_id]

    def test_loading_drops_garbage_nodes(self, divider_board):
        data = divider_board.to_dict()
        data["wire_nodes"].append({"id": 99, "pos": {"x": 5, "y": 5}})
        restored = BoardModel.from_dict(data)
        assert 99 not in restored.wire_nodes
        assert restored.to_dict() == divider_board.to_dict()

    def test_removing_wire_keeps_attached_nodes(self):
        board, _, _ = _two_resistors()
        board.connect("R1", 1, "R2", 0)
        board.remove_wire(0)
        assert len(board.wire_nodes) == 2
        assert all(not n.wire_indices for n in board.wire_nodes.values())

    def test_remove_wire_reindexes_incidence(self):
        board, _, _ = _two_resistors()
        board.create_component("Resistor", (200, 0))
        board.connect("R1", 1, "R2", 0)
        board.connect("R2", 1, "R3", 0)
        board.remove_wire(0)
        assert board.node_at_terminal("R2", 1).wire_indices == {0}

    def test_remove_wire_node_frees_segment_ends(self):
        board, _, _ = _two_resistors()
        wire = board.connect("R1", 1, "R2", 0)
        node_id = wire.end.node_id
        position = board.wire_nodes[node_id].position
        board.remove_wire_node(node_id)
        assert wire.end.is_free
        assert (wire.end.x, wire.end.y) == position
        assert node_id not in board.wire_nodes

    def test_remove_component_detaches_nodes(self):
        board, _, _ = _two_resistors()
        board.connect("R1", 1, "R2", 0)
        board.remove_component("R2")
        assert board.node_at_terminal("R2", 0) is None
        # The node survives because the segment still ends on it
        assert len(board.wire_nodes) == 2

    def test_remove_component_drops_net_names(self):
        board, _, _ = _two_resistors()
        board.set_net_name("R1", 0, "VCC")
        board.remove_component("R1")
        assert board.net_names == {}

    def test_node_at(self, board):
        node = board.add_wire_node((30, 40))
        assert board.node_at((30.2, 39.9)) is node
        assert board.node_at((60, 60)) is None


class TestClear:
    def test_clear_keeps_custom_definitions(self, board):
        from tests.conftest import pass_through_definition

        board.custom_library.add(pass_through_definition())
        board.create_component("Resistor")
        board.clear()
        assert board.components == {}
        assert board.wires == []
        assert len(board.custom_library) == 1

    def test_edits_invalidate_network(self, divider_board):
        divider_board.network = object()
        divider_board.move_component("R1", (300, 300))
        assert divider_board.network is None


class TestSnapshot:
    def test_round_trip_preserves_structure(self, divider_board):
        divider_board.set_net_name("R1", 1, "MID")
        divider_board.wires[0].color = WireColor.RED
        restored = BoardModel.from_dict(divider_board.to_dict())
        assert list(restored.components) == list(divider_board.components)
        assert restored.components["B1"].voltage == 9.0
        assert len(restored.wires) == len(divider_board.wires)
        assert restored.wires[0].color is WireColor.RED
        assert restored.net_names == {"R1:1": "MID"}
        assert restored.to_dict() == divider_board.to_dict()

    def test_round_trip_preserves_rotation_and_flip(self, board):
        gate = board.create_component("NOTGate", (0, 0))
        board.rotate_component(gate.component_id)
        board.rotate_component(gate.component_id)
        board.rotate_component(gate.component_id)
        board.flip_component(gate.component_id)
        restored = BoardModel.from_dict(board.to_dict())
        assert restored.components["U1"].rotation == 3
        assert restored.components["U1"].flip_h is True

    def test_snapshot_settings(self, board):
        board.settings.max_passes = 12
        restored = BoardModel.from_dict(board.to_dict())
        assert restored.settings.max_passes == 12

    def test_new_wire_nodes_continue_after_loaded_ids(self, divider_board):
        restored = BoardModel.from_dict(divider_board.to_dict())
        node = restored.add_wire_node((0, 0))
        assert node.node_id == max(divider_board.wire_nodes) + 1

    def test_unknown_type_in_snapshot(self):
        data = {"components": [{"id": "Q1", "type": "Transistor", "pos": {"x": 0, "y": 0}}], "wires": []}
        with pytest.raises(StructuralError):
            BoardModel.from_dict(data)
