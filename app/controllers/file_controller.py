"""
FileController - Handles board file I/O and session persistence.

File dialog interaction is the responsibility of the view layer.
"""

import json
import logging
import os
from dataclasses import fields
from pathlib import Path
from typing import Optional

from models.board import BoardModel

logger = logging.getLogger(__name__)

SESSION_FILE = "last_session.txt"
AUTOSAVE_FILE = ".autosave_recovery.json"


def validate_board_data(data) -> None:
    """
    Validate JSON structure before loading.

    Checks the shape of a raw snapshot only; references between wires,
    wire nodes and components are checked by the simulation's structural
    validation.

    Raises ValueError with a descriptive message if anything is wrong.
    """
    if not isinstance(data, dict):
        raise ValueError("File does not contain a valid board object.")

    version = data.get("version", 1)
    if not isinstance(version, int) or version > 1:
        raise ValueError(f"Unsupported board file version: {version!r}.")

    for key in ("components", "wires"):
        if key not in data or not isinstance(data[key], list):
            raise ValueError(f"Missing or invalid '{key}' list.")
    for key in ("wire_nodes", "custom_components"):
        if key in data and not isinstance(data[key], list):
            raise ValueError(f"Invalid '{key}' list.")

    comp_ids = set()
    for i, comp in enumerate(data["components"]):
        for key in ("id", "type", "pos"):
            if key not in comp:
                raise ValueError(f"Component #{i + 1} is missing required field '{key}'.")
        pos = comp["pos"]
        if not isinstance(pos, dict) or "x" not in pos or "y" not in pos:
            raise ValueError(f"Component '{comp.get('id', i)}' has invalid position data.")
        if not isinstance(pos["x"], (int, float)) or not isinstance(pos["y"], (int, float)):
            raise ValueError(f"Component '{comp['id']}' position values must be numeric.")
        if comp["id"] in comp_ids:
            raise ValueError(f"Duplicate component id '{comp['id']}'.")
        comp_ids.add(comp["id"])

    node_ids = set()
    for i, node in enumerate(data.get("wire_nodes", [])):
        if "id" not in node or not isinstance(node["id"], int):
            raise ValueError(f"Wire node #{i + 1} is missing an integer 'id'.")
        if node["id"] in node_ids:
            raise ValueError(f"Duplicate wire node id {node['id']}.")
        node_ids.add(node["id"])

    for i, wire in enumerate(data["wires"]):
        for key in ("start", "end"):
            endpoint = wire.get(key)
            if not isinstance(endpoint, dict) or not ("node" in endpoint or ("x" in endpoint and "y" in endpoint)):
                raise ValueError(f"Wire #{i + 1} has an invalid '{key}' endpoint.")


def read_board_file(filepath) -> BoardModel:
    """
    Read, validate and materialize a board file.

    Raises:
        json.JSONDecodeError: If file is not valid JSON.
        ValueError: If file structure is invalid (StructuralError included).
        OSError: If the file cannot be read.
    """
    with open(filepath, "r", encoding="utf-8") as f:
        data = json.load(f)
    validate_board_data(data)
    return BoardModel.from_dict(data)


class FileController:
    """
    Manages board file I/O and session persistence.

    Handles saving/loading board data as JSON and tracking
    the current file path for quick-save and session restore.
    """

    def __init__(
        self,
        model: Optional[BoardModel] = None,
        board_ctrl=None,
        session_file: Optional[str] = SESSION_FILE,
        autosave_file: Optional[str] = None,
    ):
        self.model = model or BoardModel()
        self.board_ctrl = board_ctrl
        self.current_file: Optional[Path] = None
        self._session_file = session_file
        self._autosave_file = Path(autosave_file) if autosave_file else Path.cwd() / AUTOSAVE_FILE

    def _notify(self, event: str) -> None:
        if self.board_ctrl:
            self.board_ctrl._notify(event, None)

    def new_board(self) -> None:
        """Clear the board and reset file state."""
        self.model.clear()
        self.model.custom_library.clear()
        self.current_file = None

    def save_board(self, filepath) -> None:
        """
        Save board to JSON file.

        Args:
            filepath: Path or string to save to.

        Raises:
            OSError: If the file cannot be written.
            TypeError: If model data is not JSON-serializable.
        """
        filepath = Path(filepath)
        data = self.model.to_dict()
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        self.current_file = filepath
        self._save_session()
        logger.info("Saved board to %s", filepath)
        self._notify("model_saved")

    def load_board(self, filepath) -> None:
        """
        Load board from JSON file.

        Validates JSON structure before loading. Updates the model
        in place (preserving the reference so views stay connected).

        Raises:
            json.JSONDecodeError: If file is not valid JSON.
            ValueError: If file structure is invalid.
            OSError: If the file cannot be read.
        """
        filepath = Path(filepath)
        new_model = read_board_file(filepath)
        self._replace_model(new_model)
        self.current_file = filepath
        self._save_session()
        logger.info("Loaded board from %s (%d components)", filepath, len(self.model.components))
        self._notify("model_loaded")

    def _replace_model(self, new_model: BoardModel) -> None:
        for f in fields(BoardModel):
            setattr(self.model, f.name, getattr(new_model, f.name))

    def has_file(self) -> bool:
        """Return whether a current file path is set (for quick-save)."""
        return self.current_file is not None

    def get_title(self, base: str = "Circuit Board") -> str:
        """Get a title based on the current file."""
        if self.current_file:
            return f"{base} - {self.current_file.name}"
        return base

    def _save_session(self) -> None:
        """Save current file path for session restore."""
        if not self._session_file:
            return
        try:
            with open(self._session_file, "w", encoding="utf-8") as f:
                f.write(os.path.abspath(str(self.current_file)) if self.current_file else "")
        except OSError as e:
            logger.debug("Could not save session: %s", e)

    def load_last_session(self) -> Optional[Path]:
        """
        Load last session file path if it exists.

        Returns:
            Path to the last opened file, or None.
        """
        if not self._session_file:
            return None
        try:
            with open(self._session_file, "r", encoding="utf-8") as f:
                path_str = f.read().strip()
        except OSError:
            return None
        if path_str:
            path = Path(path_str)
            if path.exists():
                return path
        return None

    # ------------------------------------------------------------------
    # Auto-save and crash recovery
    # ------------------------------------------------------------------

    def auto_save(self) -> None:
        """Save board to the auto-save recovery file.

        Unlike save_board(), this does NOT update current_file or
        session state.
        """
        try:
            data = self.model.to_dict()
            data["_autosave_source"] = str(self.current_file) if self.current_file else ""
            with open(self._autosave_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except (OSError, TypeError) as e:
            logger.warning("Auto-save failed: %s", e)

    def has_auto_save(self) -> bool:
        """Return True if an auto-save recovery file exists."""
        return self._autosave_file.exists()

    def load_auto_save(self) -> Optional[str]:
        """Load board from the auto-save recovery file.

        Returns:
            The original file path (str) the auto-save was based on,
            or empty string if it was an unsaved board. Returns None
            on failure.
        """
        try:
            with open(self._autosave_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            source_path = data.pop("_autosave_source", "")
            validate_board_data(data)
            new_model = BoardModel.from_dict(data)
        except (OSError, json.JSONDecodeError, ValueError) as e:
            logger.warning("Could not recover auto-save: %s", e)
            return None

        self._replace_model(new_model)
        if source_path:
            self.current_file = Path(source_path)
        self._notify("model_loaded")
        return source_path

    def clear_auto_save(self) -> None:
        """Delete the auto-save recovery file if present."""
        try:
            self._autosave_file.unlink()
        except FileNotFoundError:
            pass
