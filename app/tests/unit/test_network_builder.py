"""Tests for simulation.network_builder union-find node derivation."""

import random

import pytest
from models.board import BoardModel
from models.wire import WireEndpoint
from simulation.network_builder import DisjointSet, NetworkBuilder


def _build(board):
    return NetworkBuilder().build(board)


class TestDisjointSet:
    def test_singletons(self):
        ds = DisjointSet(3)
        assert [ds.find(i) for i in range(3)] == [0, 1, 2]

    def test_union_keeps_smaller_root(self):
        ds = DisjointSet(4)
        ds.union(3, 1)
        assert ds.find(3) == 1
        ds.union(1, 0)
        assert ds.find(3) == 0

    def test_union_returns_false_when_merged(self):
        ds = DisjointSet(2)
        assert ds.union(0, 1) is True
        assert ds.union(1, 0) is False

    def test_long_chain_is_compressed(self):
        ds = DisjointSet(10000)
        for i in range(9999, 0, -1):
            ds.union(i, i - 1)
        assert ds.find(9999) == 0
        assert ds.parent[9999] == 0

    def test_add(self):
        ds = DisjointSet()
        assert ds.add() == 0
        assert ds.add() == 1
        assert len(ds) == 2


class TestNetworkBuilder:
    def test_divider_nodes(self, divider_board):
        network = _build(divider_board)
        assert network.node_count == 3
        ground = network.node_of("GND1", 0)
        assert network.node_of("B1", 0) == ground
        assert network.node_of("R2", 1) == ground
        assert network.node_of("B1", 1) == network.node_of("R1", 0)
        assert network.node_of("R1", 1) == network.node_of("R2", 0)
        assert network.ground_nodes() == [ground]
        assert network.label_of(ground) == "0"

    def test_ids_are_dense_and_ordered_by_first_terminal(self, divider_board):
        network = _build(divider_board)
        # B1 terminal 0 is the very first element
        assert network.node_of("B1", 0) == 0
        assert network.node_of("B1", 1) == 1
        assert network.node_of("R1", 1) == 2

    def test_node_ids_written_to_terminals(self, divider_board):
        network = _build(divider_board)
        for (component_id, terminal), node_id in network.terminal_nodes.items():
            assert divider_board.components[component_id].node_index(terminal) == node_id

    def test_rebuild_is_deterministic(self, divider_board):
        first = _build(divider_board)
        second = _build(divider_board)
        assert first.terminal_nodes == second.terminal_nodes
        assert first.couplings == second.couplings

    def test_unwired_terminals_are_floating(self, board):
        board.create_component("Resistor")
        network = _build(board)
        assert network.node_count == 2
        assert network.floating_terminals == [("R1", 0), ("R1", 1)]

    def test_closed_switch_shorts_terminals(self, board):
        switch = board.create_component("Switch")
        assert _build(board).node_count == 2
        switch.set_property("Closed", True)
        network = _build(board)
        assert network.node_count == 1
        assert network.floating_terminals == []

    def test_junction_shorts_all_terminals(self, board):
        board.create_component("Junction")
        assert _build(board).node_count == 1

    def test_ammeter_is_a_short(self, board):
        board.create_component("Ammeter")
        assert _build(board).node_count == 1

    def test_couplings_skip_shorted_resistor(self, board):
        board.create_component("Resistor")
        board.connect("R1", 0, "R1", 1)
        network = _build(board)
        assert network.node_count == 1
        assert network.couplings == []

    def test_couplings_between_nodes(self, divider_board):
        divider_board.set_property("R1", "Resistance (Ω)", 2)
        network = _build(divider_board)
        top = network.node_of("R1", 0)
        mid = network.node_of("R1", 1)
        assert (top, mid, 0.5) in network.couplings

    def test_free_wire_endpoint_joins_nothing(self, board):
        board.create_component("Resistor")
        node = board.ensure_terminal_node("R1", 1)
        board.add_wire(WireEndpoint.at_node(node.node_id), WireEndpoint.free(500, 500))
        network = _build(board)
        # R1 terminal 1 shares its node with the wire node and the free end
        assert ("R1", 1) not in network.floating_terminals
        assert network.node_count == 2

    def test_wire_node_chain(self, board):
        board.create_component("Resistor", (0, 0))
        board.create_component("Resistor", (200, 0))
        a = board.ensure_terminal_node("R1", 1)
        mid = board.add_wire_node((100, 10))
        b = board.ensure_terminal_node("R2", 0)
        board.add_wire(WireEndpoint.at_node(a.node_id), WireEndpoint.at_node(mid.node_id))
        board.add_wire(WireEndpoint.at_node(mid.node_id), WireEndpoint.at_node(b.node_id))
        network = _build(board)
        assert network.node_of("R1", 1) == network.node_of("R2", 0)
        assert network.wire_node_nodes[mid.node_id] == network.node_of("R1", 1)

    def test_removed_wire_node_separates_terminals(self, board):
        board.create_component("Resistor", (0, 0))
        board.create_component("Resistor", (200, 0))
        wire = board.connect("R1", 1, "R2", 0)
        assert _build(board).node_of("R1", 1) == _build(board).node_of("R2", 0)
        board.remove_wire_node(wire.end.node_id)
        network = _build(board)
        assert network.node_of("R1", 1) != network.node_of("R2", 0)

    def test_net_name_labels_node(self, divider_board):
        divider_board.set_net_name("R1", 1, "MID")
        network = _build(divider_board)
        assert network.label_of(network.node_of("R2", 0)) == "MID"

    def test_auto_labels(self, divider_board):
        network = _build(divider_board)
        assert network.label_of(network.node_of("B1", 1)) == "nodeB"


def _reachable(adjacency, start):
    seen = {start}
    stack = [start]
    while stack:
        current = stack.pop()
        for nxt in adjacency.get(current, ()):
            if nxt not in seen:
                seen.add(nxt)
                stack.append(nxt)
    return seen


def _random_edit(rng, board, terminals):
    """Apply one random wiring edit: wires, free nodes, stubs or deletions."""
    op = rng.choice(["connect", "via", "stub", "bridge", "remove_node", "remove_wire"])
    if op == "connect":
        (ca, ta), (cb, tb) = rng.choice(terminals), rng.choice(terminals)
        board.connect(ca, ta, cb, tb)
    elif op == "via":
        mid = board.add_wire_node((rng.randint(0, 500), rng.randint(50, 200)))
        a = board.ensure_terminal_node(*rng.choice(terminals))
        board.add_wire(WireEndpoint.at_node(a.node_id), WireEndpoint.at_node(mid.node_id))
        if rng.random() < 0.5:
            b = board.ensure_terminal_node(*rng.choice(terminals))
            board.add_wire(WireEndpoint.at_node(mid.node_id), WireEndpoint.at_node(b.node_id))
    elif op == "stub":
        node = board.ensure_terminal_node(*rng.choice(terminals))
        board.add_wire(WireEndpoint.at_node(node.node_id), WireEndpoint.free(rng.randint(0, 500), 300))
    elif op == "bridge" and board.wire_nodes:
        x, y = rng.choice(sorted(board.wire_nodes)), rng.choice(sorted(board.wire_nodes))
        board.add_wire(WireEndpoint.at_node(x), WireEndpoint.at_node(y))
    elif op == "remove_node" and board.wire_nodes:
        board.remove_wire_node(rng.choice(sorted(board.wire_nodes)))
    elif op == "remove_wire" and board.wires:
        board.remove_wire(rng.randrange(len(board.wires)))


def _reference_graph(board):
    """Plain adjacency over terminals, wire nodes and free segment ends."""
    adjacency = {}

    def link(x, y):
        adjacency.setdefault(x, set()).add(y)
        adjacency.setdefault(y, set()).add(x)

    for index, wire in enumerate(board.wires):
        ends = []
        for side, endpoint in (("start", wire.start), ("end", wire.end)):
            ends.append(("w", endpoint.node_id) if endpoint.node_id is not None else ("free", index, side))
        link(*ends)
    for node in board.wire_nodes.values():
        if node.attachment is not None:
            link(("w", node.node_id), (node.attachment.component_id, node.attachment.terminal))
    for cid, component in board.components.items():
        for group in component.shorted_terminal_groups():
            for t in group[1:]:
                link((cid, group[0]), (cid, t))
    return adjacency


class TestRandomBoards:
    """Compare union-find classes against plain graph reachability."""

    @pytest.mark.parametrize("seed", range(25))
    def test_matches_reachability(self, seed):
        rng = random.Random(seed)
        board = BoardModel()
        for i in range(rng.randint(2, 8)):
            board.create_component(rng.choice(["Resistor", "NOTGate", "Junction", "Battery"]), (i * 60, 0))
        terminals = [(cid, t) for cid, c in board.components.items() for t in range(c.get_terminal_count())]
        for _ in range(rng.randint(0, 16)):
            _random_edit(rng, board, terminals)

        network = _build(board)
        adjacency = _reference_graph(board)

        for a in terminals:
            reach = _reachable(adjacency, a)
            assert (a in network.floating_terminals) == (reach == {a}), (seed, a)
            for b in terminals:
                same = network.node_of(*a) == network.node_of(*b)
                assert same == (b in reach), (seed, a, b)
            for wire_node_id, node_id in network.wire_node_nodes.items():
                assert (node_id == network.node_of(*a)) == (("w", wire_node_id) in reach), (seed, a, wire_node_id)

    @pytest.mark.parametrize("seed", range(5))
    def test_rebuild_after_random_edits_is_stable(self, seed):
        rng = random.Random(seed)
        board = BoardModel()
        for i in range(6):
            board.create_component(rng.choice(["Resistor", "Junction"]), (i * 60, 0))
        terminals = [(cid, t) for cid, c in board.components.items() for t in range(c.get_terminal_count())]
        for _ in range(12):
            _random_edit(rng, board, terminals)
        first = _build(board)
        second = _build(board)
        assert first.terminal_nodes == second.terminal_nodes
        assert first.wire_node_nodes == second.wire_node_nodes
