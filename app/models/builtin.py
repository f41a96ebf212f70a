"""
Built-in component variants.

This module contains no Qt dependencies. Every variant follows the update
contract of models.component.Component: node values are read from the pass
context (values as of the start of the pass) and outputs are written back
as strong drives or current reports. Meters only compute display values.
"""

from typing import Optional

from .component import GRID_SIZE, Capability, Component, SwitchLike, TerminalRole
from .properties import BooleanProperty, ComputedFloatProperty, FloatProperty, StringProperty

# Nominal supply voltage used to derive a bulb's resistance from its rating
BULB_NOMINAL_VOLTAGE = 12.0
BULB_BURNOUT_MULTIPLIER = 2.0
BULB_BURNOUT_CYCLES = 30


def _span(value_a: Optional[float], value_b: Optional[float]) -> float:
    """Absolute voltage across two nodes; floating ends read as 0 V."""
    return abs((value_a or 0.0) - (value_b or 0.0))


class TwoTerminalComponent(Component):
    """Component with terminals on the left and right edge centres."""

    def __init__(self, component_id, position=(0.0, 0.0)):
        super().__init__(component_id, position)
        self.add_connection_point(0.0, 0.5, name="a")
        self.add_connection_point(1.0, 0.5, name="b")


# --- Sources ---


class Battery(TwoTerminalComponent):
    """
    Voltage source with negative terminal on the left.

    The terminals are driven ``voltage`` apart. The reference is taken from
    another component's anchored drive, on the negative terminal first and
    then on the positive one (a battery grounded at its positive terminal
    pushes its negative terminal below 0 V). With no anchored reference the
    negative terminal follows any other drive on its node, or sits at 0 V,
    and both drives are marked relative.

    The internal resistance does not move node voltages. It limits the
    delivered current: a load drawing ``I`` from an ideal source draws
    ``I / (1 + I * r / V)`` from this one.
    """

    component_type = "Battery"
    prefix = "B"
    default_size = (GRID_SIZE * 3, GRID_SIZE * 2)

    def __init__(self, component_id, position=(0.0, 0.0), voltage: float = 1.5, internal_resistance: float = 0.2):
        super().__init__(component_id, position)
        self.connection_points[0].name = "neg"
        self.connection_points[1].name = "pos"
        self.voltage = voltage
        self.internal_resistance = internal_resistance
        self.computed_ampere = 0.0
        self.computed_terminal_voltage = 0.0
        self.add_property(FloatProperty("Voltage (V)", lambda: self.voltage, self._set_voltage))
        self.add_property(
            FloatProperty("Internal Resistance (Ω)", lambda: self.internal_resistance, self._set_internal_resistance)
        )
        self.add_property(ComputedFloatProperty("Ampere (A)", lambda: self.computed_ampere))
        self.add_property(ComputedFloatProperty("Terminal Voltage (V)", lambda: self.computed_terminal_voltage))

    def _set_voltage(self, value: float) -> None:
        self.voltage = value

    def _set_internal_resistance(self, value: float) -> None:
        self.internal_resistance = max(0.0, value)

    def reset_computed(self) -> None:
        self.computed_ampere = 0.0
        self.computed_terminal_voltage = 0.0

    def update(self, context) -> None:
        neg, pos = self.node_index(0), self.node_index(1)
        own = self.component_id
        anchored = True
        reference = context.driven_value(neg, exclude=own, anchored_only=True)
        if reference is None:
            top = context.driven_value(pos, exclude=own, anchored_only=True)
            if top is not None:
                reference = top - self.voltage
            else:
                reference = context.driven_value(neg, exclude=own) or 0.0
                anchored = False
        context.drive(neg, reference, own, anchored)
        context.drive(pos, reference + self.voltage, own, anchored)

    def delivered_current(self, ideal_ampere: float) -> float:
        """Current delivered into a load that would draw ``ideal_ampere`` from an ideal source."""
        if ideal_ampere <= 0 or self.voltage == 0:
            return max(0.0, ideal_ampere)
        return ideal_ampere / (1.0 + ideal_ampere * self.internal_resistance / abs(self.voltage))

    def after_simulation(self, state) -> None:
        ideal = max(state.current_at(self.node_index(0)), state.current_at(self.node_index(1)))
        self.computed_ampere = self.delivered_current(ideal)
        self.computed_terminal_voltage = abs(self.voltage) - self.computed_ampere * self.internal_resistance


class Ground(Component):
    """Reference node at 0 V."""

    component_type = "Ground"
    prefix = "GND"
    default_size = (GRID_SIZE * 2, GRID_SIZE * 2)

    def __init__(self, component_id, position=(0.0, 0.0)):
        super().__init__(component_id, position)
        self.add_connection_point(0.5, 0.0, name="gnd")

    def update(self, context) -> None:
        context.drive(self.node_index(0), 0.0, self.component_id)


class Source(SwitchLike, Component):
    """Toggleable logic source; drives HIGH on its terminal while active."""

    component_type = "Source"
    prefix = "S"
    capabilities = frozenset({Capability.SWITCH_LIKE, Capability.FULL_ROTATION})
    default_size = (GRID_SIZE * 2, GRID_SIZE * 2)

    def __init__(self, component_id, position=(0.0, 0.0), active: bool = False):
        super().__init__(component_id, position)
        self.display_name = "Source"
        self.active = active
        self.add_connection_point(1.0, 0.5, TerminalRole.OUTPUT, "out")
        self.add_property(StringProperty("Name", lambda: self.display_name, self._set_name))
        self.add_property(BooleanProperty("Active", lambda: self.active, self._set_active))

    def _set_name(self, value: str) -> None:
        self.display_name = value

    def _set_active(self, value: bool) -> None:
        self.active = value

    def is_closed(self) -> bool:
        return self.active

    def set_computed_ampere(self, ampere: float) -> None:
        pass

    def update(self, context) -> None:
        if self.active:
            context.drive(self.node_index(0), context.settings.high_voltage, self.component_id)


# --- Switches ---


class Switch(SwitchLike, TwoTerminalComponent):
    """Manual switch; shorts its terminals while closed."""

    component_type = "Switch"
    prefix = "SW"
    capabilities = frozenset({Capability.SWITCH_LIKE, Capability.SHORTS_TERMINALS})
    default_size = (GRID_SIZE * 2, GRID_SIZE * 2)

    def __init__(self, component_id, position=(0.0, 0.0), closed: bool = False):
        super().__init__(component_id, position)
        self.closed = closed
        self.computed_ampere = 0.0
        self.add_property(BooleanProperty("Closed", lambda: self.closed, self._set_closed))
        self.add_property(ComputedFloatProperty("Ampere (A)", lambda: self.computed_ampere))

    def _set_closed(self, value: bool) -> None:
        self.closed = value

    def shorted_terminal_groups(self) -> list[list[int]]:
        return [[0, 1]] if self.closed else []

    def is_closed(self) -> bool:
        return self.closed

    def set_computed_ampere(self, ampere: float) -> None:
        self.computed_ampere = ampere

    def reset_computed(self) -> None:
        self.computed_ampere = 0.0


class Relay(SwitchLike, Component):
    """
    Coil-operated switch.

    While the coil input reads HIGH the relay is closed and drives its
    normally-open terminal with the value present on the common terminal.
    """

    component_type = "Relay"
    prefix = "K"
    capabilities = frozenset({Capability.SWITCH_LIKE, Capability.FULL_ROTATION})
    default_size = (GRID_SIZE * 3, GRID_SIZE * 3)

    def __init__(self, component_id, position=(0.0, 0.0)):
        super().__init__(component_id, position)
        self.add_connection_point(0.0, 0.5, TerminalRole.INPUT, "coil")
        self.add_connection_point(1.0, 0.25, TerminalRole.GENERAL, "com")
        self.add_connection_point(1.0, 0.75, TerminalRole.OUTPUT, "no")
        self.closed = False
        self.computed_ampere = 0.0
        self.add_property(ComputedFloatProperty("Ampere (A)", lambda: self.computed_ampere))

    def is_closed(self) -> bool:
        return self.closed

    def set_computed_ampere(self, ampere: float) -> None:
        self.computed_ampere = ampere

    def reset_computed(self) -> None:
        self.closed = False
        self.computed_ampere = 0.0

    def update(self, context) -> None:
        self.closed = context.is_high(self.node_index(0))
        if not self.closed:
            return
        common = context.value(self.node_index(1))
        if common is not None:
            context.drive(self.node_index(2), common, self.component_id)

    def observable_outputs(self) -> tuple:
        return (self.closed,)


# --- Passive elements ---


class Resistor(TwoTerminalComponent):
    component_type = "Resistor"
    prefix = "R"

    def __init__(self, component_id, position=(0.0, 0.0), resistance: float = 1.0):
        super().__init__(component_id, position)
        self.resistance = resistance
        self.computed_voltage = 0.0
        self.computed_ampere = 0.0
        self.add_property(FloatProperty("Resistance (Ω)", lambda: self.resistance, self._set_resistance))
        self.add_property(ComputedFloatProperty("Voltage (V)", lambda: self.computed_voltage))
        self.add_property(ComputedFloatProperty("Ampere (A)", lambda: self.computed_ampere))

    def _set_resistance(self, value: float) -> None:
        self.resistance = max(0.0, value)

    def couplings(self) -> list[tuple[int, int, float]]:
        return [(0, 1, 1.0 / max(self.resistance, 1e-9))]

    def reset_computed(self) -> None:
        self.computed_voltage = 0.0
        self.computed_ampere = 0.0

    def update(self, context) -> None:
        a, b = self.node_index(0), self.node_index(1)
        volts = _span(context.value(a), context.value(b))
        amps = volts / max(self.resistance, context.settings.min_resistance)
        context.report_current(a, amps)
        context.report_current(b, amps)

    def after_simulation(self, state) -> None:
        self.computed_voltage = _span(state.value(self.node_index(0)), state.value(self.node_index(1)))
        self.computed_ampere = self.computed_voltage / max(self.resistance, state.settings.min_resistance)


class VariableResistor(Component):
    """Potentiometer: fixed ends left/right, wiper on top."""

    component_type = "VariableResistor"
    prefix = "RV"
    default_size = (GRID_SIZE * 4, GRID_SIZE * 2)

    def __init__(self, component_id, position=(0.0, 0.0), resistance: float = 10.0, wiper: float = 0.5):
        super().__init__(component_id, position)
        self.add_connection_point(0.0, 0.5, name="left")
        self.add_connection_point(1.0, 0.5, name="right")
        self.add_connection_point(0.5, 0.0, name="wiper")
        self.resistance = resistance
        self.wiper = wiper
        self.computed_voltage = 0.0
        self.computed_ampere = 0.0
        self.add_property(FloatProperty("Resistance (Ω)", lambda: self.resistance, self._set_resistance))
        self.add_property(FloatProperty("Wiper (0..1)", lambda: self.wiper, self._set_wiper))
        self.add_property(ComputedFloatProperty("Voltage (V)", lambda: self.computed_voltage))
        self.add_property(ComputedFloatProperty("Ampere (A)", lambda: self.computed_ampere))

    def _set_resistance(self, value: float) -> None:
        self.resistance = max(0.0, value)

    def _set_wiper(self, value: float) -> None:
        self.wiper = min(1.0, max(0.0, value))

    def _segment_resistances(self) -> tuple[float, float]:
        return (self.resistance * self.wiper, self.resistance * (1.0 - self.wiper))

    def couplings(self) -> list[tuple[int, int, float]]:
        left, right = self._segment_resistances()
        return [(0, 2, 1.0 / max(left, 1e-9)), (2, 1, 1.0 / max(right, 1e-9))]

    def reset_computed(self) -> None:
        self.computed_voltage = 0.0
        self.computed_ampere = 0.0

    def update(self, context) -> None:
        left_r, right_r = self._segment_resistances()
        wiper_node = self.node_index(2)
        wiper_value = context.value(wiper_node)
        for terminal, resistance in ((0, left_r), (1, right_r)):
            node = self.node_index(terminal)
            amps = _span(context.value(node), wiper_value) / max(resistance, context.settings.min_resistance)
            context.report_current(node, amps)
            context.report_current(wiper_node, amps)

    def after_simulation(self, state) -> None:
        self.computed_voltage = _span(state.value(self.node_index(0)), state.value(self.node_index(1)))
        self.computed_ampere = self.computed_voltage / max(self.resistance, state.settings.min_resistance)


class LightBulb(TwoTerminalComponent):
    """
    Light bulb modelled as a fixed resistance derived from its rated power.

    Running above twice the rated power for BULB_BURNOUT_CYCLES simulation
    cycles burns the bulb out, after which it conducts nothing.
    """

    component_type = "LightBulb"
    prefix = "L"
    default_size = (GRID_SIZE * 2, GRID_SIZE * 2)

    def __init__(self, component_id, position=(0.0, 0.0), rated_power: float = 5.0):
        super().__init__(component_id, position)
        self.rated_power = rated_power
        self.burned_out = False
        self.burnout_counter = 0
        self.computed_voltage = 0.0
        self.computed_ampere = 0.0
        self.computed_power = 0.0
        self.add_property(FloatProperty("Rated Power (W)", lambda: self.rated_power, self._set_rated_power))
        self.add_property(BooleanProperty("Burned Out", lambda: self.burned_out, self._set_burned_out, True))
        self.add_property(ComputedFloatProperty("Voltage (V)", lambda: self.computed_voltage))
        self.add_property(ComputedFloatProperty("Ampere (A)", lambda: self.computed_ampere))
        self.add_property(ComputedFloatProperty("Actual Power (W)", lambda: self.computed_power))
        self.add_property(ComputedFloatProperty("Effective Resistance (Ω)", lambda: self.resistance))

    def _set_rated_power(self, value: float) -> None:
        self.rated_power = max(0.0, value)

    def _set_burned_out(self, value: bool) -> None:
        self.burned_out = value
        if not value:
            self.burnout_counter = 0

    @property
    def resistance(self) -> float:
        if self.rated_power <= 0:
            return 0.0
        return BULB_NOMINAL_VOLTAGE**2 / self.rated_power

    def couplings(self) -> list[tuple[int, int, float]]:
        if self.burned_out or self.rated_power <= 0:
            return []
        return [(0, 1, 1.0 / self.resistance)]

    def reset_computed(self) -> None:
        self.computed_voltage = 0.0
        self.computed_ampere = 0.0
        self.computed_power = 0.0

    def update(self, context) -> None:
        if self.burned_out or self.rated_power <= 0:
            return
        a, b = self.node_index(0), self.node_index(1)
        amps = _span(context.value(a), context.value(b)) / max(self.resistance, context.settings.min_resistance)
        context.report_current(a, amps)
        context.report_current(b, amps)

    def after_simulation(self, state) -> None:
        if self.burned_out or self.rated_power <= 0:
            self.reset_computed()
            return
        self.computed_voltage = _span(state.value(self.node_index(0)), state.value(self.node_index(1)))
        self.computed_ampere = self.computed_voltage / max(self.resistance, state.settings.min_resistance)
        self.computed_power = self.computed_voltage * self.computed_ampere
        self.update_burnout(self.computed_power)

    def update_burnout(self, actual_power: float) -> None:
        if self.burned_out:
            return
        if actual_power > self.rated_power * BULB_BURNOUT_MULTIPLIER:
            self.burnout_counter += 1
            if self.burnout_counter >= BULB_BURNOUT_CYCLES:
                self.burned_out = True
        else:
            self.burnout_counter = max(0, self.burnout_counter - 1)


# --- Meters ---


class Ammeter(TwoTerminalComponent):
    """Ideal ammeter: shorts its terminals and shows the node's current."""

    component_type = "Ammeter"
    prefix = "A"
    capabilities = frozenset({Capability.METER, Capability.SHORTS_TERMINALS})
    default_size = (GRID_SIZE * 3, GRID_SIZE * 2)

    def __init__(self, component_id, position=(0.0, 0.0)):
        super().__init__(component_id, position)
        self.computed_ampere = 0.0
        self.add_property(ComputedFloatProperty("Ampere (A)", lambda: self.computed_ampere))

    def shorted_terminal_groups(self) -> list[list[int]]:
        return [[0, 1]]

    def reset_computed(self) -> None:
        self.computed_ampere = 0.0

    def after_simulation(self, state) -> None:
        self.computed_ampere = state.current_at(self.node_index(0))


class Voltmeter(TwoTerminalComponent):
    component_type = "Voltmeter"
    prefix = "V"
    capabilities = frozenset({Capability.METER})
    default_size = (GRID_SIZE * 3, GRID_SIZE * 2)

    def __init__(self, component_id, position=(0.0, 0.0)):
        super().__init__(component_id, position)
        self.computed_voltage = 0.0
        self.add_property(ComputedFloatProperty("Voltage (V)", lambda: self.computed_voltage))

    def reset_computed(self) -> None:
        self.computed_voltage = 0.0

    def after_simulation(self, state) -> None:
        self.computed_voltage = _span(state.value(self.node_index(0)), state.value(self.node_index(1)))


class Junction(Component):
    """Four-way wire junction."""

    component_type = "Junction"
    prefix = "J"
    capabilities = frozenset({Capability.SHORTS_TERMINALS})
    default_size = (GRID_SIZE * 2, GRID_SIZE * 2)

    def __init__(self, component_id, position=(0.0, 0.0)):
        super().__init__(component_id, position)
        self.add_connection_point(0.5, 0.0, name="top")
        self.add_connection_point(1.0, 0.5, name="right")
        self.add_connection_point(0.5, 1.0, name="bottom")
        self.add_connection_point(0.0, 0.5, name="left")

    def shorted_terminal_groups(self) -> list[list[int]]:
        return [[0, 1, 2, 3]]


# --- Logic gates ---


class LogicGate(Component):
    """
    Base class for logic gates: inputs on the left edge, one output on the right.

    ``output`` is None until the gate is first evaluated in a cycle, so the
    first pass always counts as a change.
    """

    prefix = "U"
    capabilities = frozenset({Capability.LOGIC, Capability.FULL_ROTATION})
    default_size = (GRID_SIZE * 3, GRID_SIZE * 3)
    input_terminals = 2

    def __init__(self, component_id, position=(0.0, 0.0)):
        super().__init__(component_id, position)
        for i in range(self.input_terminals):
            self.add_connection_point(0.0, (i + 1) / (self.input_terminals + 1), TerminalRole.INPUT, f"in{i}")
        self.add_connection_point(1.0, 0.5, TerminalRole.OUTPUT, "out")
        self.output: Optional[bool] = None

    def evaluate(self, inputs: list[bool]) -> bool:
        raise NotImplementedError

    def reset_computed(self) -> None:
        self.output = None

    def update(self, context) -> None:
        inputs = [context.is_high(self.node_index(i)) for i in range(self.input_terminals)]
        self.output = self.evaluate(inputs)
        level = context.settings.high_voltage if self.output else context.settings.low_voltage
        context.drive(self.node_index(self.input_terminals), level, self.component_id)

    def observable_outputs(self) -> tuple:
        return (self.output,)


class ANDGate(LogicGate):
    component_type = "ANDGate"

    def evaluate(self, inputs):
        return all(inputs)


class NANDGate(LogicGate):
    component_type = "NANDGate"

    def evaluate(self, inputs):
        return not all(inputs)


class ORGate(LogicGate):
    component_type = "ORGate"

    def evaluate(self, inputs):
        return any(inputs)


class NORGate(LogicGate):
    component_type = "NORGate"

    def evaluate(self, inputs):
        return not any(inputs)


class XORGate(LogicGate):
    component_type = "XORGate"

    def evaluate(self, inputs):
        return sum(inputs) % 2 == 1


class NOTGate(LogicGate):
    component_type = "NOTGate"
    input_terminals = 1

    def evaluate(self, inputs):
        return not inputs[0]


# --- Custom board ports ---


class InputPort(Component):
    """
    Input of a custom component's internal board.

    When the enclosing custom instance has bound an external value the port
    drives that value (nothing when it is None); otherwise it drives HIGH
    while active, so the board can be exercised on its own.
    """

    component_type = "InputPort"
    prefix = "IN"
    default_size = (GRID_SIZE * 2, GRID_SIZE * 2)

    def __init__(self, component_id, position=(0.0, 0.0), active: bool = False):
        super().__init__(component_id, position)
        self.display_name = "In"
        self.active = active
        self.external_bound = False
        self.external_value: Optional[float] = None
        self.add_connection_point(1.0, 0.5, TerminalRole.OUTPUT, "out")
        self.add_property(StringProperty("Port Name", lambda: self.display_name, self._set_name))
        self.add_property(BooleanProperty("Active", lambda: self.active, self._set_active))

    def _set_name(self, value: str) -> None:
        self.display_name = value

    def _set_active(self, value: bool) -> None:
        self.active = value

    def bind_external(self, value: Optional[float]) -> None:
        self.external_bound = True
        self.external_value = value

    def update(self, context) -> None:
        node = self.node_index(0)
        if self.external_bound:
            if self.external_value is not None:
                context.drive(node, self.external_value, self.component_id)
        elif self.active:
            context.drive(node, context.settings.high_voltage, self.component_id)


class OutputPort(Component):
    """Output of a custom component's internal board; observes its node."""

    component_type = "OutputPort"
    prefix = "OUT"
    default_size = (GRID_SIZE * 2, GRID_SIZE * 2)

    def __init__(self, component_id, position=(0.0, 0.0)):
        super().__init__(component_id, position)
        self.display_name = "Out"
        self.value: Optional[float] = None
        self.add_connection_point(0.0, 0.5, TerminalRole.INPUT, "in")
        self.add_property(StringProperty("Port Name", lambda: self.display_name, self._set_name))

    def _set_name(self, value: str) -> None:
        self.display_name = value

    def reset_computed(self) -> None:
        self.value = None

    def after_simulation(self, state) -> None:
        self.value = state.value(self.node_index(0))
