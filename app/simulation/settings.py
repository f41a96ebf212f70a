"""
simulation/settings.py

Simulation configuration with no Qt dependencies. Settings are stored with
the board snapshot under the "simulation" key.
"""

from dataclasses import asdict, dataclass, fields

DEFAULT_MAX_PASSES = 256
HIGH_VOLTAGE = 5.0
LOW_VOLTAGE = 0.0
LOGIC_THRESHOLD = 2.5
MIN_RESISTANCE = 1e-3


@dataclass
class SimulationSettings:
    """
    Tunables for a simulation cycle.

    Attributes:
        max_passes: Passes allowed before a cycle is declared stalled.
        high_voltage: Voltage driven for logic HIGH.
        low_voltage: Voltage driven for logic LOW.
        logic_threshold: Node values at or above this read as HIGH.
        min_resistance: Lower bound used when estimating currents.
    """

    max_passes: int = DEFAULT_MAX_PASSES
    high_voltage: float = HIGH_VOLTAGE
    low_voltage: float = LOW_VOLTAGE
    logic_threshold: float = LOGIC_THRESHOLD
    min_resistance: float = MIN_RESISTANCE

    def __post_init__(self):
        if isinstance(self.max_passes, bool) or not isinstance(self.max_passes, int) or self.max_passes < 1:
            raise ValueError(f"max_passes must be a positive integer, got {self.max_passes!r}")
        if self.high_voltage <= self.low_voltage:
            raise ValueError("high_voltage must be greater than low_voltage")
        if not (self.low_voltage <= self.logic_threshold <= self.high_voltage):
            raise ValueError("logic_threshold must lie between low_voltage and high_voltage")
        if self.min_resistance <= 0:
            raise ValueError("min_resistance must be positive")

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "SimulationSettings":
        """Build settings from a snapshot section; unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in (data or {}).items() if k in known})
