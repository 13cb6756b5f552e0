from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Literal

from .styles import HEADER_HEIGHT, MIN_TABLE_WIDTH, ROW_HEIGHT

# ============================================================================
# Diagram model -- tables, columns and foreign-key relationships
#
# A Diagram is created once from a loader (DBML text or a host-supplied
# dict) and then passed explicitly to every layout and routing function.
# `position` and `width` start out unset and are filled in by the width
# estimator and the auto-layout engines.
# ============================================================================

RelationType = Literal["OneToOne", "OneToMany", "ManyToOne", "ManyToMany"]

RELATION_TYPES: tuple[RelationType, ...] = ("OneToOne", "OneToMany", "ManyToOne", "ManyToMany")

# Which side of a table a relationship line attaches to
Side = Literal["left", "right", "top", "bottom"]

# Crow's foot marker kinds:
#   'one-mandatory'   ||  exactly one
#   'one-optional'    |o  zero or one
#   'many-mandatory'  |<  one or more
#   'many-optional'   o<  zero or more
MarkerKind = Literal["one-mandatory", "one-optional", "many-mandatory", "many-optional"]


class DiagramError(ValueError):
    """Raised when a diagram handed over by a loader is malformed."""


@dataclass(slots=True)
class Point:
    x: float
    y: float


@dataclass(slots=True, frozen=True)
class TableId:
    """Schema-qualified table identifier. Equality is structural."""

    schema: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.schema}.{self.name}"

    def __str__(self) -> str:
        return self.full_name


@dataclass(slots=True)
class Column:
    name: str
    type_raw: str
    is_pk: bool = False
    is_nullable: bool = True


@dataclass(slots=True)
class Table:
    id: TableId
    columns: list[Column] = field(default_factory=list)
    # World coordinates of the top-left corner; None until placed
    position: Point | None = None
    # Box width derived from content; None until measured
    width: float | None = None

    def find_column(self, name: str) -> Column | None:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def column_index(self, name: str) -> int | None:
        for i, column in enumerate(self.columns):
            if column.name == name:
                return i
        return None


@dataclass(slots=True)
class EndPoint:
    table_id: TableId
    column_names: list[str] = field(default_factory=list)

    @property
    def first_column(self) -> str:
        return self.column_names[0] if self.column_names else ""


@dataclass(slots=True)
class Relationship:
    relation_type: RelationType
    # The "from" end (left-hand side of a DBML ref)
    source: EndPoint
    # The "to" end (right-hand side of a DBML ref)
    target: EndPoint


@dataclass(slots=True)
class Diagram:
    tables: list[Table] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)


# ============================================================================
# Layout options -- user-facing configuration for the auto-layout engines
# ============================================================================

LayoutStrategy = Literal["grid", "layered"]


@dataclass(slots=True)
class LayoutOptions:
    # Pixel position of the top-left grid cell
    start_x: float = 50
    start_y: float = 50
    # Gap between adjacent grid columns / rows
    spacing_x: float = 100
    spacing_y: float = 80
    # Height used for grid rows that hold no table
    default_row_height: float = 200
    # Ring search gives up at this radius (exclusive)
    max_search_radius: int = 20
    strategy: LayoutStrategy = "grid"
    # Layered strategy only
    node_spacing: float = 60
    layer_spacing: float = 100


@dataclass(slots=True)
class RenderOptions:
    bg: str | None = None
    fg: str | None = None
    header: str | None = None
    header_text: str | None = None
    line: str | None = None
    accent: str | None = None
    muted: str | None = None
    border: str | None = None
    font: str | None = None
    padding: float | None = None
    transparent: bool | None = None


# ============================================================================
# Lookups and geometry fallbacks
# ============================================================================


def build_table_index(diagram: Diagram) -> dict[TableId, int]:
    """Map each table id to its index. The first table with a given id wins."""
    index: dict[TableId, int] = {}
    for i, table in enumerate(diagram.tables):
        index.setdefault(table.id, i)
    return index


def resolved_position(table: Table) -> Point:
    """Current position, or the origin when the table has not been placed."""
    if table.position is None:
        return Point(x=0.0, y=0.0)
    return table.position


def resolved_width(table: Table) -> float:
    """Measured width, or the minimum width when the table has not been measured."""
    if table.width is None:
        return MIN_TABLE_WIDTH
    return table.width


def table_height(table: Table) -> float:
    """Header plus one row per column (header-only for a table with no columns)."""
    return HEADER_HEIGHT + len(table.columns) * ROW_HEIGHT


# ============================================================================
# Dict conversion -- the JSON shape exchanged with the host
# ============================================================================


def diagram_from_dict(data: dict[str, Any]) -> Diagram:
    """Build a Diagram from its JSON-compatible dict form.

    Validates coordinates and relation types; raises DiagramError on
    malformed input so the layout core never sees bad numbers.
    """
    try:
        raw_tables = data.get("tables", [])
        raw_relationships = data.get("relationships", [])
    except AttributeError as err:
        raise DiagramError("Diagram must be a mapping") from err

    tables: list[Table] = []
    try:
        for raw in raw_tables:
            tables.append(_table_from_dict(raw))
    except (KeyError, TypeError, AttributeError) as err:
        raise DiagramError(f"Malformed table entry: {err!r}") from err

    relationships: list[Relationship] = []
    try:
        for raw in raw_relationships:
            relation_type = raw.get("relation_type")
            if relation_type not in RELATION_TYPES:
                raise DiagramError(f"Unknown relation type: {relation_type!r}")
            relationships.append(
                Relationship(
                    relation_type=relation_type,
                    source=_endpoint_from_dict(raw.get("from")),
                    target=_endpoint_from_dict(raw.get("to")),
                )
            )
    except (KeyError, TypeError, AttributeError) as err:
        raise DiagramError(f"Malformed relationship entry: {err!r}") from err

    return Diagram(tables=tables, relationships=relationships)


def _table_from_dict(raw: dict[str, Any]) -> Table:
    table_id = _table_id_from_dict(raw.get("id"))
    columns = [
        Column(
            name=str(c["name"]),
            type_raw=str(c.get("type_raw", "")),
            is_pk=bool(c.get("is_pk", False)),
            is_nullable=bool(c.get("is_nullable", True)),
        )
        for c in raw.get("columns", [])
    ]
    position = raw.get("position")
    width = raw.get("width")
    return Table(
        id=table_id,
        columns=columns,
        position=_point_from_dict(position, table_id) if position is not None else None,
        width=_number(width, f"width of {table_id}") if width is not None else None,
    )


def diagram_to_dict(diagram: Diagram) -> dict[str, Any]:
    """Inverse of diagram_from_dict."""
    return {
        "tables": [
            {
                "id": {"schema": t.id.schema, "name": t.id.name},
                "columns": [
                    {
                        "name": c.name,
                        "type_raw": c.type_raw,
                        "is_pk": c.is_pk,
                        "is_nullable": c.is_nullable,
                    }
                    for c in t.columns
                ],
                "position": None if t.position is None else {"x": t.position.x, "y": t.position.y},
                "width": t.width,
            }
            for t in diagram.tables
        ],
        "relationships": [
            {
                "relation_type": r.relation_type,
                "from": _endpoint_to_dict(r.source),
                "to": _endpoint_to_dict(r.target),
            }
            for r in diagram.relationships
        ],
    }


def _table_id_from_dict(raw: Any) -> TableId:
    if not isinstance(raw, dict) or "name" not in raw:
        raise DiagramError(f"Invalid table id: {raw!r}")
    return TableId(schema=str(raw.get("schema", "public")), name=str(raw["name"]))


def _endpoint_from_dict(raw: Any) -> EndPoint:
    if not isinstance(raw, dict):
        raise DiagramError(f"Invalid relationship endpoint: {raw!r}")
    return EndPoint(
        table_id=_table_id_from_dict(raw.get("table_id")),
        column_names=[str(n) for n in raw.get("column_names", [])],
    )


def _endpoint_to_dict(endpoint: EndPoint) -> dict[str, Any]:
    return {
        "table_id": {"schema": endpoint.table_id.schema, "name": endpoint.table_id.name},
        "column_names": list(endpoint.column_names),
    }


def _point_from_dict(raw: Any, table_id: TableId) -> Point:
    if not isinstance(raw, dict):
        raise DiagramError(f"Invalid position for {table_id}: {raw!r}")
    return Point(
        x=_number(raw.get("x"), f"x of {table_id}"),
        y=_number(raw.get("y"), f"y of {table_id}"),
    )


def _number(value: Any, what: str) -> float:
    # bool is an int subclass but never a coordinate
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DiagramError(f"Non-numeric {what}: {value!r}")
    if not math.isfinite(value):
        raise DiagramError(f"Non-finite {what}: {value!r}")
    return float(value)
