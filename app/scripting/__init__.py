"""
Scripting API for programmatic board creation and simulation.

This package provides a headless Python API for creating, modifying,
and simulating boards without a GUI.

Usage::

    from scripting import Board

    board = Board()
    board.add_component("Source", position=(0, 0), active=True)
    board.add_component("NOTGate", position=(60, 0))
    board.connect("S1", 0, "U1", 0)

    result = board.simulate()
    print(result.status, board.level("U1", 1))

    board.save("my_board.json")
"""

# Re-export SimulationResult for convenience
from controllers.simulation_controller import SimulationResult
from scripting.board import Board

__all__ = ["Board", "SimulationResult"]
