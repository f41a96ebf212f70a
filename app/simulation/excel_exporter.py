"""
simulation/excel_exporter.py

Export simulation results to Excel (.xlsx) format.
No Qt dependencies; the file dialog belongs to the view.

Takes the same result dict as simulation/csv_exporter.py.
"""

from datetime import datetime

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

# Fill for nodes that ended the cycle floating
_FLOATING_FILL = PatternFill(start_color="DDDDDD", end_color="DDDDDD", fill_type="solid")


def _add_summary_sheet(wb, data, board_name=""):
    """Add a Summary sheet with cycle metadata."""
    ws = wb.active
    ws.title = "Summary"
    header_font = Font(bold=True)
    ws.append(["Simulation Summary"])
    ws["A1"].font = Font(bold=True, size=14)
    ws.append([])
    ws.append(["Status", data.get("status", "")])
    ws.append(["Passes", data.get("passes", 0)])
    ws.append(["Date", datetime.now().strftime("%Y-%m-%d %H:%M:%S")])
    if board_name:
        ws.append(["Board", board_name])
    warnings = data.get("warnings", [])
    if warnings:
        ws.append([])
        ws.append(["Warnings"])
        for warning in warnings:
            ws.append(["", warning])
    for row in ws.iter_rows(min_row=3, max_col=1):
        row[0].font = header_font
    ws.column_dimensions["A"].width = 18
    ws.column_dimensions["B"].width = 40
    return ws


def _style_header_row(ws, row_num=1):
    """Apply header styling to the first row of a worksheet."""
    header_fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
    header_font = Font(bold=True, color="FFFFFF")
    for cell in ws[row_num]:
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center")


def _export_nodes(wb, nodes):
    ws = wb.create_sheet("Nodes")
    ws.append(["Node", "Voltage (V)"])
    _style_header_row(ws)
    for label, voltage in nodes.items():
        ws.append([label, voltage])
        if voltage is None:
            for cell in ws[ws.max_row]:
                cell.fill = _FLOATING_FILL
    ws.column_dimensions["A"].width = 20
    ws.column_dimensions["B"].width = 15


def _export_components(wb, components):
    ws = wb.create_sheet("Components")
    ws.append(["Component", "Property", "Value"])
    _style_header_row(ws)
    for component_id, readings in components.items():
        for name, value in readings.items():
            ws.append([component_id, name, value])
    ws.column_dimensions["A"].width = 15
    ws.column_dimensions["B"].width = 28
    ws.column_dimensions["C"].width = 15


def export_to_excel(data, filepath, board_name=""):
    """Export simulation results to an Excel workbook.

    Args:
        data: result dict from SimulationController.get_results()
        filepath: path to write the .xlsx file
        board_name: optional board filename for metadata
    """
    wb = Workbook()
    _add_summary_sheet(wb, data, board_name)
    _export_nodes(wb, data.get("nodes", {}))
    _export_components(wb, data.get("components", {}))
    wb.save(filepath)
