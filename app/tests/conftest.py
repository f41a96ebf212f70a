"""
Shared test fixtures for the circuit board test suite.

All fixtures build pure-Python model objects (no GUI dependencies).
"""

import sys
from pathlib import Path

# Ensure app/ is on sys.path so bare imports (models, simulation, controllers)
# work when running individual test files (e.g., python -m pytest app/tests/unit/test_foo.py).
_app_dir = str(Path(__file__).resolve().parent.parent)
if _app_dir not in sys.path:
    sys.path.insert(0, _app_dir)

import pytest
from controllers.board_controller import BoardController
from controllers.simulation_controller import SimulationController
from models.board import BoardModel
from models.custom import CustomComponentDefinition
from simulation.scheduler import SimulationScheduler


class EventLog:
    """Simple observer that records (event, data) tuples."""

    def __init__(self):
        self.events = []

    def __call__(self, event, data):
        self.events.append((event, data))

    def names(self):
        return [e for e, _ in self.events]

    def count(self, event_name):
        return sum(1 for e, _ in self.events if e == event_name)

    def last(self):
        return self.events[-1] if self.events else None


def add(board, type_id, position=(0, 0), **properties):
    """Create a component on ``board`` and set properties by full name."""
    component = board.create_component(type_id, position)
    for name, value in properties.items():
        component.set_property(name, value)
    return component


def run(board, max_passes=None):
    """Run one scheduler cycle and return the CycleResult."""
    if max_passes is not None:
        board.settings.max_passes = max_passes
    return SimulationScheduler().run_cycle(board)


def value_at(board, result, component_id, terminal):
    return result.state.value(board.node_id_at(component_id, terminal))


def pass_through_definition(name="Buffer"):
    """Definition whose single input is wired straight to its single output."""
    inner = BoardModel()
    port_in = inner.create_component("InputPort", (0, 0))
    port_out = inner.create_component("OutputPort", (100, 0))
    inner.connect(port_in.component_id, 0, port_out.component_id, 0)
    return CustomComponentDefinition.create(name, ["a"], ["y"], inner.to_dict())


def inverter_definition(name="Inverter"):
    """Definition wrapping a single NOT gate."""
    inner = BoardModel()
    port_in = inner.create_component("InputPort", (0, 0))
    gate = inner.create_component("NOTGate", (50, 0))
    port_out = inner.create_component("OutputPort", (100, 0))
    inner.connect(port_in.component_id, 0, gate.component_id, 0)
    inner.connect(gate.component_id, 1, port_out.component_id, 0)
    return CustomComponentDefinition.create(name, ["a"], ["y"], inner.to_dict())


@pytest.fixture
def board():
    return BoardModel()


@pytest.fixture
def controller(board):
    return BoardController(board)


@pytest.fixture
def sim_controller(board, controller):
    return SimulationController(board, controller)


@pytest.fixture
def events(controller):
    log = EventLog()
    controller.add_observer(log)
    return log


@pytest.fixture
def divider_board():
    """
    B1(9 V) -- R1(1 Ω) -- R2(1 Ω) -- back to B1-, with GND1 on B1-.

    The midpoint between R1 and R2 sits at 4.5 V.
    """
    model = BoardModel()
    battery = add(model, "Battery", (0, 0), **{"Voltage (V)": 9})
    r1 = add(model, "Resistor", (100, 0))
    r2 = add(model, "Resistor", (200, 0))
    gnd = add(model, "Ground", (0, 100))
    model.connect(battery.component_id, 1, r1.component_id, 0)
    model.connect(r1.component_id, 1, r2.component_id, 0)
    model.connect(r2.component_id, 1, battery.component_id, 0)
    model.connect(battery.component_id, 0, gnd.component_id, 0)
    return model


@pytest.fixture
def inverter_chain_board():
    """S1 (active) -> U1 (NOT) -> U2 (NOT)."""
    model = BoardModel()
    source = add(model, "Source", (0, 0), Active=True)
    not1 = add(model, "NOTGate", (60, 0))
    not2 = add(model, "NOTGate", (120, 0))
    model.connect(source.component_id, 0, not1.component_id, 0)
    model.connect(not1.component_id, 1, not2.component_id, 0)
    return model


@pytest.fixture
def ring_oscillator_board():
    """A single NOT gate whose output feeds its own input."""
    model = BoardModel()
    gate = add(model, "NOTGate", (0, 0))
    model.connect(gate.component_id, 1, gate.component_id, 0)
    return model
