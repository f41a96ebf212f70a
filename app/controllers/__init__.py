"""
Controllers for the circuit board.

This package contains Qt-free controller classes that orchestrate
operations between models and views using an observer pattern.
"""

from .board_controller import BoardController
from .file_controller import FileController, read_board_file, validate_board_data
from .simulation_controller import SimulationController, SimulationResult

__all__ = [
    "BoardController",
    "SimulationController",
    "SimulationResult",
    "FileController",
    "read_board_file",
    "validate_board_data",
]
