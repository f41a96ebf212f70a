"""
simulation/csv_exporter.py

Export simulation results to CSV format.
No Qt dependencies; the file dialog belongs to the view.

Result data is the dict produced by SimulationController.get_results():

    {
        "status": "converged",
        "passes": 4,
        "nodes": {"nodeA": 5.0, "nodeB": None, ...},
        "components": {"R1": {"Voltage (V)": "1.5", ...}, ...},
    }

Floating node values (None) are written as empty cells.
"""

import csv
import io
from datetime import datetime


def _write_header(writer, data, board_name):
    writer.writerow(["# Status", data.get("status", "")])
    writer.writerow(["# Passes", data.get("passes", 0)])
    writer.writerow(["# Date", datetime.now().strftime("%Y-%m-%d %H:%M:%S")])
    if board_name:
        writer.writerow(["# Board", board_name])
    writer.writerow([])


def _node_rows(nodes):
    return [[label, "" if voltage is None else voltage] for label, voltage in nodes.items()]


def export_node_values(data, board_name=""):
    """
    Export node voltages to CSV string.

    Args:
        data: result dict (see module docstring)
        board_name: optional board filename

    Returns:
        str: CSV content
    """
    output = io.StringIO()
    writer = csv.writer(output)
    _write_header(writer, data, board_name)

    writer.writerow(["Node", "Voltage (V)"])
    writer.writerows(_node_rows(data.get("nodes", {})))

    return output.getvalue()


def export_component_readings(data, board_name=""):
    """
    Export displayable component values to CSV string, one row per value.

    Returns:
        str: CSV content
    """
    output = io.StringIO()
    writer = csv.writer(output)
    _write_header(writer, data, board_name)

    writer.writerow(["Component", "Property", "Value"])
    for component_id, readings in data.get("components", {}).items():
        for name, value in readings.items():
            writer.writerow([component_id, name, value])

    return output.getvalue()


def export_results(data, board_name=""):
    """Export node values followed by component readings in one CSV string."""
    output = io.StringIO()
    writer = csv.writer(output)
    _write_header(writer, data, board_name)

    writer.writerow(["Node", "Voltage (V)"])
    writer.writerows(_node_rows(data.get("nodes", {})))
    writer.writerow([])

    writer.writerow(["Component", "Property", "Value"])
    for component_id, readings in data.get("components", {}).items():
        for name, value in readings.items():
            writer.writerow([component_id, name, value])

    return output.getvalue()


def write_csv(content, filepath):
    """
    Write CSV content string to a file.

    Args:
        content: CSV string from one of the export functions
        filepath: destination file path
    """
    with open(filepath, "w", newline="", encoding="utf-8") as f:
        f.write(content)
