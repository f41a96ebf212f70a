"""
Wire model - Pure Python data classes for wire segments and wire nodes.

This module contains no Qt dependencies. Coordinates are stored as
tuples (x, y) rather than QPointF.

A wire segment joins two endpoints. Each endpoint is either free (a bare
coordinate) or a reference to a wire node. Wire nodes are the joints of the
wiring graph; a node may be attached to exactly one component terminal.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class WireColor(Enum):
    """Display colour of a wire. Has no electrical meaning."""

    BLACK = "BLACK"
    RED = "RED"
    BLUE = "BLUE"
    GREEN = "GREEN"
    YELLOW = "YELLOW"
    WHITE = "WHITE"


@dataclass(frozen=True)
class Attachment:
    """Back-reference from a wire node to a component terminal."""

    component_id: str
    terminal: int

    def to_dict(self) -> dict:
        return {"component": self.component_id, "terminal": self.terminal}

    @classmethod
    def from_dict(cls, data: dict) -> "Attachment":
        return cls(component_id=data["component"], terminal=int(data["terminal"]))


@dataclass
class WireEndpoint:
    """
    One end of a wire segment.

    ``node_id`` is set when the endpoint sits on a wire node; otherwise the
    endpoint is free and ``x``/``y`` hold its coordinate.
    """

    node_id: Optional[int] = None
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def at_node(cls, node_id: int) -> "WireEndpoint":
        return cls(node_id=node_id)

    @classmethod
    def free(cls, x: float, y: float) -> "WireEndpoint":
        return cls(node_id=None, x=float(x), y=float(y))

    @property
    def is_free(self) -> bool:
        return self.node_id is None

    def to_dict(self) -> dict:
        if self.node_id is not None:
            return {"node": self.node_id}
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict) -> "WireEndpoint":
        if "node" in data and data["node"] is not None:
            return cls.at_node(int(data["node"]))
        return cls.free(data.get("x", 0.0), data.get("y", 0.0))


@dataclass
class WireNode:
    """
    A joint in the wiring graph.

    Tracks the indices (into the board's wire list) of the segments that end
    on it. An attached node follows its terminal's world position.
    """

    node_id: int
    position: tuple[float, float]
    wire_indices: set[int] = field(default_factory=set)
    attachment: Optional[Attachment] = None

    def is_garbage(self) -> bool:
        """A node with no incident segments and no attachment can be pruned."""
        return not self.wire_indices and self.attachment is None

    def is_attached_to(self, component_id: str) -> bool:
        return self.attachment is not None and self.attachment.component_id == component_id

    def to_dict(self) -> dict:
        return {
            "id": self.node_id,
            "pos": {"x": self.position[0], "y": self.position[1]},
            "attachment": self.attachment.to_dict() if self.attachment else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WireNode":
        pos = data.get("pos", {})
        attachment = data.get("attachment")
        return cls(
            node_id=int(data["id"]),
            position=(float(pos.get("x", 0.0)), float(pos.get("y", 0.0))),
            attachment=Attachment.from_dict(attachment) if attachment else None,
        )

    def __repr__(self) -> str:
        target = f", attached={self.attachment.component_id}[{self.attachment.terminal}]" if self.attachment else ""
        return f"WireNode({self.node_id}, pos={self.position}, wires={sorted(self.wire_indices)}{target})"


@dataclass
class WireData:
    """
    A straight wire segment between two endpoints.
    """

    start: WireEndpoint
    end: WireEndpoint
    color: WireColor = WireColor.BLACK

    def endpoints(self) -> tuple[WireEndpoint, WireEndpoint]:
        return (self.start, self.end)

    def node_ids(self) -> list[int]:
        """Wire node ids this segment ends on (0, 1 or 2 entries)."""
        return [e.node_id for e in (self.start, self.end) if e.node_id is not None]

    def touches_node(self, node_id: int) -> bool:
        return self.start.node_id == node_id or self.end.node_id == node_id

    def detach_node(self, node_id: int, position: tuple[float, float]) -> None:
        """Turn every endpoint on ``node_id`` into a free endpoint at ``position``."""
        if self.start.node_id == node_id:
            self.start = WireEndpoint.free(*position)
        if self.end.node_id == node_id:
            self.end = WireEndpoint.free(*position)

    def to_dict(self) -> dict:
        return {
            "start": self.start.to_dict(),
            "end": self.end.to_dict(),
            "color": self.color.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WireData":
        return cls(
            start=WireEndpoint.from_dict(data["start"]),
            end=WireEndpoint.from_dict(data["end"]),
            color=WireColor(data.get("color", WireColor.BLACK.value)),
        )

    def __repr__(self) -> str:
        def _fmt(endpoint: WireEndpoint) -> str:
            if endpoint.node_id is not None:
                return f"n{endpoint.node_id}"
            return f"({endpoint.x:g}, {endpoint.y:g})"

        return f"WireData({_fmt(self.start)} -> {_fmt(self.end)})"
