"""
Command-line interface for batch board operations.

Run simulations, validate boards, list electrical nodes and export results
without a GUI.

Usage::

    python -m cli simulate board.json
    python -m cli simulate board.json --format csv --output results.csv
    python -m cli simulate board.json --max-passes 64
    python -m cli validate board.json
    python -m cli nodes board.json
    python -m cli export board.json --format xlsx --output results.xlsx
    python -m cli batch boards/ --output-dir results/
"""

import argparse
import glob
import json
import logging
import sys
from pathlib import Path

from controllers.board_controller import BoardController
from controllers.file_controller import read_board_file
from controllers.simulation_controller import SimulationController
from models.board import BoardModel
from simulation.csv_exporter import export_component_readings, export_node_values, export_results

logger = logging.getLogger(__name__)


def try_load_board(filepath: str) -> tuple[BoardModel | None, str]:
    """Load and validate a board JSON file without exiting.

    Returns:
        (model, "") on success, or (None, error_message) on failure.
    """
    path = Path(filepath)
    if not path.exists():
        return None, f"file not found: {filepath}"

    try:
        return read_board_file(path), ""
    except json.JSONDecodeError as e:
        return None, f"invalid JSON in {filepath}: {e}"
    except ValueError as e:
        return None, f"invalid board file: {e}"
    except OSError as e:
        return None, f"cannot read {filepath}: {e}"


def load_board(filepath: str) -> BoardModel:
    """Load and validate a board JSON file.

    Raises:
        SystemExit: On file read or validation errors.
    """
    model, error = try_load_board(filepath)
    if model is None:
        print(f"Error: {error}", file=sys.stderr)
        sys.exit(1)
    return model


def _run(model: BoardModel, max_passes=None):
    controller = BoardController(model)
    sim = SimulationController(model, controller)
    if max_passes is not None:
        sim.set_max_passes(max_passes)
    return sim, sim.run_simulation()


def _emit(text: str, output, what: str = "Results") -> None:
    """Print ``text`` or write it to ``output`` when a path was given."""
    if not output:
        print(text)
        return
    Path(output).write_text(text, encoding="utf-8")
    print(f"{what} written to {output}", file=sys.stderr)


def cmd_simulate(args: argparse.Namespace) -> int:
    """Run one simulation cycle and print the result."""
    model = load_board(args.board)
    try:
        _, result = _run(model, args.max_passes)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not result.success:
        print(f"Simulation failed: {result.error}", file=sys.stderr)
        return 1
    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)

    _emit(_format_result(result, args.format, Path(args.board).stem), args.output)
    if args.strict and result.stalled:
        return 2
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate a board without simulating."""
    model = load_board(args.board)
    sim = SimulationController(model)

    result = sim.validate_board()

    if result.success:
        print(f"Board is valid: {args.board}")
        for warning in result.warnings:
            print(f"  Warning: {warning}")
        return 0

    print(f"Board has errors: {args.board}", file=sys.stderr)
    for err in result.errors:
        print(f"  - {err}", file=sys.stderr)
    return 1


def cmd_nodes(args: argparse.Namespace) -> int:
    """Simulate and list every electrical node with its terminals and value."""
    model = load_board(args.board)
    sim, result = _run(model)
    if not result.success:
        print(f"Simulation failed: {result.error}", file=sys.stderr)
        return 1

    network = sim.last_cycle.network
    state = sim.last_cycle.state
    print(f"{'Node':<12} {'Voltage':>10}  Terminals")
    print("-" * 60)
    for node in network.nodes:
        value = state.value(node.node_id)
        shown = "floating" if value is None else f"{value:.3f}"
        terminals = ", ".join(f"{cid}[{t}]" for cid, t in node.terminals) or "-"
        print(f"{node.get_label():<12} {shown:>10}  {terminals}")
    print(f"\n{network.node_count} nodes, status {result.status} after {result.passes} passes")
    return 0


_CSV_EXPORTERS = {
    "csv": export_results,
    "nodes-csv": export_node_values,
    "components-csv": export_component_readings,
}


def cmd_export(args: argparse.Namespace) -> int:
    """Export the board snapshot, or simulate and export the results."""
    model = load_board(args.board)
    board_name = Path(args.board).stem

    if args.format == "json":
        _emit(json.dumps(model.to_dict(), indent=2), args.output, "JSON")
        return 0
    if args.format == "xlsx" and not args.output:
        print("Error: --output is required for xlsx export", file=sys.stderr)
        return 1

    _, result = _run(model)
    if not result.success:
        print(f"Simulation failed: {result.error}", file=sys.stderr)
        return 1

    if args.format == "xlsx":
        from simulation.excel_exporter import export_to_excel

        export_to_excel(result.data, args.output, board_name)
        print(f"Workbook written to {args.output}", file=sys.stderr)
    else:
        _emit(_CSV_EXPORTERS[args.format](result.data, board_name), args.output, "CSV")
    return 0


def _format_result(result, fmt: str, board_name: str = "") -> str:
    if fmt == "csv":
        return export_results(result.data, board_name)
    return _result_to_json(result)


def _result_to_json(result) -> str:
    output = {
        "success": result.success,
        "status": result.status,
        "passes": result.passes,
        "data": result.data,
    }
    if result.warnings:
        output["warnings"] = result.warnings
    return json.dumps(output, indent=2, default=str)


def _board_files(pattern: str) -> list[Path]:
    """
    Board files named by a directory or a glob pattern.

    Raises:
        ValueError: ``pattern`` is neither.
    """
    path = Path(pattern)
    if path.is_dir():
        return sorted(path.glob("*.json"))
    if any(ch in pattern for ch in "*?["):
        return sorted(Path(p) for p in glob.glob(pattern))
    raise ValueError(f"{pattern} is not a directory or glob pattern")


def _simulate_file(filepath: Path, fmt: str, output_dir) -> tuple[str, str, bool]:
    """Simulate one board file; returns (status, details, ok)."""
    model, error = try_load_board(str(filepath))
    if model is None:
        return "LOAD_ERROR", error, False

    _, result = _run(model)
    if not result.success:
        return "FAIL", result.error.splitlines()[0], False

    if output_dir is not None:
        ext = "csv" if fmt == "csv" else "json"
        target = output_dir / f"{filepath.stem}.{ext}"
        target.write_text(_format_result(result, fmt, filepath.stem), encoding="utf-8")
    return result.status.upper(), f"{result.passes} passes", True


def cmd_batch(args: argparse.Namespace) -> int:
    """Simulate every board file in a directory or matching a glob."""
    try:
        files = _board_files(args.path)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if not files:
        print(f"No .json board files found matching: {args.path}", file=sys.stderr)
        return 1

    output_dir = Path(args.output_dir) if args.output_dir else None
    if output_dir is not None:
        output_dir.mkdir(parents=True, exist_ok=True)

    rows = []
    for filepath in files:
        status, details, ok = _simulate_file(filepath, args.format, output_dir)
        rows.append((filepath.name, status, details, ok))
        logger.info("%s: %s", filepath.name, status)
        if not ok and args.fail_fast:
            break

    print(f"\n{'File':<40} {'Status':<12} Details")
    print("-" * 70)
    for name, status, details, _ in rows:
        print(f"{name:<40} {status:<12} {details}")

    passed = sum(1 for row in rows if row[3])
    print(f"\n{passed}/{len(rows)} succeeded, {len(rows) - passed} failed")
    return 0 if passed == len(rows) else 1


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="circuit-board-cli",
        description="Simulate, validate and export circuit boards from the command line.",
    )
    parser.add_argument("--verbose", "-v", action="count", default=0, help="Log progress (-vv for debug output)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # simulate
    sim_parser = subparsers.add_parser("simulate", help="Run simulation and output results")
    sim_parser.add_argument("board", help="Path to board JSON file")
    sim_parser.add_argument("--format", choices=["json", "csv"], default="json", help="Output format (default: json)")
    sim_parser.add_argument("--output", "-o", help="Write results to file instead of stdout")
    sim_parser.add_argument("--max-passes", type=int, help="Override the pass bound stored in the board file")
    sim_parser.add_argument("--strict", action="store_true", help="Exit with code 2 when the board stalls")

    # validate
    val_parser = subparsers.add_parser("validate", help="Check board for errors without simulating")
    val_parser.add_argument("board", help="Path to board JSON file")

    # nodes
    nodes_parser = subparsers.add_parser("nodes", help="List electrical nodes and their values")
    nodes_parser.add_argument("board", help="Path to board JSON file")

    # export
    exp_parser = subparsers.add_parser("export", help="Export board or results in specified format")
    exp_parser.add_argument("board", help="Path to board JSON file")
    exp_parser.add_argument(
        "--format",
        "-f",
        choices=["json", "csv", "nodes-csv", "components-csv", "xlsx"],
        default="json",
        help="Export format (default: json snapshot)",
    )
    exp_parser.add_argument("--output", "-o", help="Write output to file instead of stdout")

    # batch
    batch_parser = subparsers.add_parser("batch", help="Run simulations on multiple board files")
    batch_parser.add_argument("path", help="Directory or glob pattern matching board JSON files")
    batch_parser.add_argument(
        "--format", choices=["json", "csv"], default="json", help="Output format for per-file results (default: json)"
    )
    batch_parser.add_argument("--output-dir", help="Write per-file results to this directory")
    batch_parser.add_argument("--fail-fast", action="store_true", help="Stop on first error")

    return parser


def main(argv=None) -> int:
    """CLI entry point. Returns exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG if args.verbose > 1 else logging.INFO,
            format="%(levelname)s %(name)s: %(message)s",
        )

    handlers = {
        "simulate": cmd_simulate,
        "validate": cmd_validate,
        "nodes": cmd_nodes,
        "export": cmd_export,
        "batch": cmd_batch,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
