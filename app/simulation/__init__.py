from .settings import SimulationSettings
from .circuit_validator import StructuralError, check_structure, validate_board
from .network_builder import DisjointSet, Network, NetworkBuilder
from .network_state import LogicLevel, NetworkState, PassContext
from .scheduler import CycleResult, SimulationScheduler, SimulationState

__all__ = [
    'SimulationSettings',
    'StructuralError',
    'check_structure',
    'validate_board',
    'DisjointSet',
    'Network',
    'NetworkBuilder',
    'LogicLevel',
    'NetworkState',
    'PassContext',
    'CycleResult',
    'SimulationScheduler',
    'SimulationState',
]
