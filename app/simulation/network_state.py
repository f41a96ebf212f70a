"""
simulation/network_state.py

Per-pass node state with no Qt dependencies.

A pass reads the NetworkState left by the previous pass and writes into a
fresh PassContext. Resolving the context yields the next NetworkState:

1. Strong drives: the highest voltage driven onto a node wins. Disagreeing
   drives on one node are recorded as contention.
2. Weak propagation: undriven nodes joined to strongly driven ones through
   resistive couplings settle so that each takes the conductance-weighted
   mean of all its neighbours. Every such cluster is solved as one linear
   system bounded by its driven nodes. Nodes reached by nothing stay
   floating (None).

A drive is anchored unless its source marked it relative, i.e. derived
from a reference that is itself not tied to an absolute voltage.
"""

from enum import Enum
from typing import Optional

import numpy as np

from .settings import SimulationSettings


class LogicLevel(Enum):
    LOW = 0
    HIGH = 1

    @classmethod
    def of(cls, value: Optional[float], threshold: float) -> "LogicLevel":
        """Logic level of a node value; a floating node reads LOW."""
        if value is not None and value >= threshold:
            return cls.HIGH
        return cls.LOW


class NetworkState:
    """Resolved node values, drives and current reports after one pass."""

    def __init__(self, node_count: int, settings: SimulationSettings):
        self.settings = settings
        self.values: list[Optional[float]] = [None] * node_count
        # node -> {component_id: driven voltage}
        self.drives: dict[int, dict[str, float]] = {}
        # (node, component_id) pairs whose drive is relative
        self.relative: set[tuple[int, str]] = set()
        self.currents: dict[int, float] = {}
        self.contentions: list[int] = []

    @property
    def node_count(self) -> int:
        return len(self.values)

    def value(self, node_id: int) -> Optional[float]:
        if 0 <= node_id < len(self.values):
            return self.values[node_id]
        return None

    def level(self, node_id: int) -> LogicLevel:
        return LogicLevel.of(self.value(node_id), self.settings.logic_threshold)

    def is_high(self, node_id: int) -> bool:
        return self.level(node_id) is LogicLevel.HIGH

    def driven_value(
        self, node_id: int, exclude: Optional[str] = None, anchored_only: bool = False
    ) -> Optional[float]:
        """
        Highest strong drive on a node, ignoring drives from ``exclude``.

        With ``anchored_only`` relative drives are ignored as well.
        """
        drives = [
            v
            for source, v in self.drives.get(node_id, {}).items()
            if source != exclude and not (anchored_only and (node_id, source) in self.relative)
        ]
        return max(drives) if drives else None

    def current_at(self, node_id: int) -> float:
        return self.currents.get(node_id, 0.0)

    def same_values(self, other: "NetworkState") -> bool:
        return self.values == other.values and self.relative == other.relative


class PassContext:
    """
    Write buffer for one pass.

    Reads (value, is_high, driven_value, current_at) always see the state
    from the start of the pass; writes (drive, report_current) only affect
    the state produced by resolve().
    """

    def __init__(self, previous: NetworkState, adjacency: dict[int, list[tuple[int, float]]]):
        self.previous = previous
        self.settings = previous.settings
        self._adjacency = adjacency
        self._drives: dict[int, dict[str, float]] = {}
        self._relative: set[tuple[int, str]] = set()
        self._currents: dict[int, float] = {}

    # --- Reads (start of pass) ---

    def value(self, node_id: int) -> Optional[float]:
        return self.previous.value(node_id)

    def is_high(self, node_id: int) -> bool:
        return self.previous.is_high(node_id)

    def driven_value(
        self, node_id: int, exclude: Optional[str] = None, anchored_only: bool = False
    ) -> Optional[float]:
        return self.previous.driven_value(node_id, exclude, anchored_only)

    def current_at(self, node_id: int) -> float:
        return self.previous.current_at(node_id)

    # --- Writes ---

    def drive(self, node_id: int, voltage: float, source: str, anchored: bool = True) -> None:
        """Force a node voltage on behalf of component ``source``."""
        if node_id < 0:
            return
        self._drives.setdefault(node_id, {})[source] = float(voltage)
        if not anchored:
            self._relative.add((node_id, source))

    def report_current(self, node_id: int, amps: float) -> None:
        if node_id < 0:
            return
        if amps > self._currents.get(node_id, 0.0):
            self._currents[node_id] = amps

    # --- Resolution ---

    def resolve(self) -> NetworkState:
        state = NetworkState(self.previous.node_count, self.settings)
        state.drives = self._drives
        state.relative = self._relative
        state.currents = self._currents

        for node_id in sorted(self._drives):
            voltages = list(self._drives[node_id].values())
            state.values[node_id] = max(voltages)
            if len(set(voltages)) > 1:
                state.contentions.append(node_id)

        seen: set[int] = set()
        for start in range(state.node_count):
            if start in self._drives or start in seen:
                continue
            cluster, boundary = self._weak_cluster(start, seen)
            if boundary:
                self._settle(state, cluster, boundary)
        return state

    def _weak_cluster(self, start: int, seen: set[int]) -> tuple[list[int], set[int]]:
        """Undriven nodes coupled to ``start`` and the driven nodes bounding them."""
        cluster = [start]
        boundary: set[int] = set()
        seen.add(start)
        queue = [start]
        while queue:
            node_id = queue.pop()
            for neighbour, _ in self._adjacency.get(node_id, ()):
                if neighbour in self._drives:
                    boundary.add(neighbour)
                elif neighbour not in seen:
                    seen.add(neighbour)
                    cluster.append(neighbour)
                    queue.append(neighbour)
        return sorted(cluster), boundary

    def _settle(self, state: NetworkState, cluster: list[int], boundary: set[int]) -> None:
        levels = {state.values[node_id] for node_id in boundary}
        if len(levels) == 1:
            level = levels.pop()
            for node_id in cluster:
                state.values[node_id] = level
            return

        # Kirchhoff current balance at every cluster node
        index = {node_id: row for row, node_id in enumerate(cluster)}
        matrix = np.zeros((len(cluster), len(cluster)))
        rhs = np.zeros(len(cluster))
        for node_id, row in index.items():
            for neighbour, conductance in self._adjacency.get(node_id, ()):
                if neighbour == node_id:
                    continue
                matrix[row, row] += conductance
                if neighbour in index:
                    matrix[row, index[neighbour]] -= conductance
                else:
                    rhs[row] += conductance * state.values[neighbour]
        solution = np.linalg.solve(matrix, rhs)
        for node_id, row in index.items():
            state.values[node_id] = float(solution[row])
