from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, Union

from .types import Diagram, Point, Table
from .layout_file import capture_layout, write_layout

# ============================================================================
# Host notifications
#
# The diagram core reports two things to whoever persists layouts:
#   table_moved  {"type": "table_moved", "table_id": "public.users", "x": .., "y": ..}
#   save_layout  {"type": "save_layout", "tables": {"public.users": {"x": .., "y": ..}}}
# Both are fire-and-forget.
# ============================================================================

logger = logging.getLogger(__name__)


class MessageError(ValueError):
    """Raised for a host message that is not valid JSON or has an unknown shape."""


@dataclass(slots=True, frozen=True)
class TableMoved:
    table_id: str
    x: float
    y: float

    def to_message(self) -> dict[str, Any]:
        return {"type": "table_moved", "table_id": self.table_id, "x": self.x, "y": self.y}


@dataclass(slots=True)
class SaveLayout:
    tables: dict[str, Point] = field(default_factory=dict)

    def to_message(self) -> dict[str, Any]:
        return {
            "type": "save_layout",
            "tables": {name: {"x": p.x, "y": p.y} for name, p in self.tables.items()},
        }


Event = Union[TableMoved, SaveLayout]


class NotificationChannel(Protocol):
    def notify(self, event: Event) -> None: ...


def encode_message(event: Event) -> str:
    return json.dumps(event.to_message())


def parse_message(body: str) -> Event:
    try:
        raw = json.loads(body)
    except json.JSONDecodeError as err:
        raise MessageError(f"Failed to parse message: {err}") from err
    if not isinstance(raw, dict):
        raise MessageError("Message must be a JSON object")

    kind = raw.get("type")
    try:
        if kind == "table_moved":
            return TableMoved(
                table_id=str(raw["table_id"]),
                x=_coord(raw["x"]),
                y=_coord(raw["y"]),
            )
        if kind == "save_layout":
            return SaveLayout(
                tables={
                    str(name): Point(x=_coord(pos["x"]), y=_coord(pos["y"]))
                    for name, pos in raw["tables"].items()
                }
            )
    except (KeyError, TypeError, AttributeError) as err:
        raise MessageError(f"Malformed {kind} message: {err}") from err
    raise MessageError(f"Unknown message type: {kind!r}")


def _coord(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"non-numeric coordinate {value!r}")
    return float(value)


def find_table_by_name(diagram: Diagram, full_name: str) -> Table | None:
    """First table whose schema-qualified name matches."""
    for table in diagram.tables:
        if table.id.full_name == full_name:
            return table
    return None


# ============================================================================
# Host-side store
# ============================================================================


class RecordingChannel:
    """Channel that keeps every event, for hosts that poll and for tests."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    def notify(self, event: Event) -> None:
        self.events.append(event)


class LayoutStore:
    """Applies notifications to the host's copy of the diagram and saves the layout file."""

    def __init__(self, diagram: Diagram, layout_path: Path, source_path: Path) -> None:
        self.diagram = diagram
        self.layout_path = layout_path
        self.source_path = source_path

    def notify(self, event: Event) -> None:
        if isinstance(event, TableMoved):
            self._move(event.table_id, event.x, event.y)
        else:
            for name, pos in event.tables.items():
                self._move(name, pos.x, pos.y)
        self.save()

    def handle_message(self, body: str) -> None:
        self.notify(parse_message(body))

    def save(self) -> None:
        write_layout(self.layout_path, capture_layout(self.diagram, self.source_path.name))

    def _move(self, full_name: str, x: float, y: float) -> None:
        table = find_table_by_name(self.diagram, full_name)
        if table is None:
            logger.warning("Ignoring position for unknown table %s", full_name)
            return
        table.position = Point(x=x, y=y)
