"""Tests for the scripting Board API."""

import csv

import pytest
from models.wire import WireData
from scripting import Board, SimulationResult


@pytest.fixture
def chain():
    board = Board()
    board.add_component("Source", position=(0, 0), active=True)
    board.add_component("NOTGate", position=(60, 0))
    board.add_component("NOTGate", position=(120, 0))
    board.connect("S1", 0, "U1", 0)
    board.connect("U1", 1, "U2", 0)
    return board


@pytest.fixture
def divider():
    board = Board()
    board.add_component("Battery", voltage=9)
    board.add_component("Resistor", position=(100, 0))
    board.add_component("Resistor", position=(200, 0))
    board.add_component("Ground", position=(0, 100))
    board.connect("B1", 1, "R1", 0)
    board.connect("R1", 1, "R2", 0)
    board.connect("R2", 1, "B1", 0)
    board.connect("B1", 0, "GND1", 0)
    return board


class TestComponents:
    def test_ids(self, chain):
        assert list(chain.components) == ["S1", "U1", "U2"]

    def test_short_property_names(self):
        board = Board()
        board.add_component("Battery", voltage="6", internal_resistance=0.5)
        assert board.get("B1", "voltage") == 6.0
        assert board.get("B1", "Internal Resistance (Ω)") == 0.5

    def test_unknown_property(self):
        board = Board()
        with pytest.raises(ValueError, match="no property 'colour'"):
            board.add_component("Resistor", colour="red")

    def test_set(self, chain):
        chain.set("S1", "Active", False)
        assert chain.get("S1", "active") is False

    def test_rotation(self):
        board = Board()
        board.add_component("Resistor", rotation=1, flip_h=True)
        assert board.components["R1"].rotation == 1
        assert board.components["R1"].flip_h

    def test_remove(self, chain):
        chain.remove_component("U2")
        assert "U2" not in chain.components

    def test_component_types(self):
        types = Board().component_types
        assert "NOTGate" in types
        assert types[-1] == "Custom"


class TestSimulation:
    def test_inverter_chain(self, chain):
        result = chain.simulate()
        assert isinstance(result, SimulationResult)
        assert result.converged
        assert result.passes == 3
        assert chain.level("U1", 1) is False
        assert chain.level("U2", 1) is True
        assert chain.voltage("U2", 1) == 5.0

    def test_node_ids_shared_across_wire(self, chain):
        chain.simulate()
        assert chain.node_id("S1", 0) == chain.node_id("U1", 0)
        assert chain.node_id("U1", 1) != chain.node_id("U1", 0)

    def test_readings(self, divider):
        divider.simulate()
        readings = divider.readings("R1")
        assert readings["Voltage (V)"] == "4.5"
        assert readings["Resistance (Ω)"] == "1"

    def test_validate(self, chain):
        assert chain.validate().success

    def test_failure_is_reported_not_raised(self):
        board = Board()
        board.model.wires.append(WireData.from_dict({"start": {"node": 3}, "end": {"x": 0, "y": 0}}))
        result = board.simulate()
        assert not result.success
        assert result.error


class TestCustomComponents:
    def test_define_and_use(self, chain):
        inner = Board()
        inner.add_component("InputPort", position=(0, 0))
        inner.add_component("NOTGate", position=(50, 0))
        inner.add_component("OutputPort", position=(100, 0))
        inner.connect("IN1", 0, "U1", 0)
        inner.connect("U1", 1, "OUT1", 0)
        definition_id = chain.define_custom("Inverter", inner)

        chain.add_component("Custom", position=(180, 0), custom="Inverter")
        chain.connect("U2", 1, "X1", 0)
        result = chain.simulate()
        assert result.converged
        assert chain.components["X1"].definition.definition_id == definition_id
        assert chain.level("X1", 1) is False


class TestPersistence:
    def test_save_and_load(self, divider, tmp_path):
        path = tmp_path / "divider.json"
        divider.save(path)
        loaded = Board.load(path)
        assert list(loaded.components) == ["B1", "R1", "R2", "GND1"]
        assert loaded.to_dict() == divider.to_dict()
        loaded.simulate()
        assert loaded.voltage("R1", 1) == pytest.approx(4.5)

    def test_load_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Board.load(tmp_path / "missing.json")

    def test_results_to_csv(self, divider, tmp_path):
        path = tmp_path / "out.csv"
        divider.results_to_csv(divider.simulate(), path)
        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        assert ["R1", "Voltage (V)", "4.5"] in rows

    def test_results_to_csv_rejects_failure(self, divider, tmp_path):
        with pytest.raises(ValueError):
            divider.results_to_csv(SimulationResult(success=False, error="boom"), tmp_path / "x.csv")
