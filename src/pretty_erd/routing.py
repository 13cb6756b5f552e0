from __future__ import annotations

from dataclasses import dataclass

from .types import (
    Diagram,
    Point,
    Side,
    Table,
    TableId,
    build_table_index,
    resolved_position,
    resolved_width,
    table_height,
)
from .styles import HEADER_HEIGHT, ROW_HEIGHT

# ============================================================================
# Relationship routing
#
# 1. compute_routes: pick the attachment side on each table and the raw
#    connection point (column row center on left/right, box center on
#    top/bottom).
# 2. distribute_endpoints: when several endpoints share the same side of
#    the same table, spread them evenly along that side so lines don't
#    stack on top of each other.
# ============================================================================


@dataclass(slots=True)
class TableBox:
    """Axis-aligned bounding box of a table (top-left origin)."""

    x: float
    y: float
    width: float
    height: float

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2


@dataclass(slots=True)
class Route:
    from_idx: int
    to_idx: int
    from_side: Side
    to_side: Side
    from_point: Point
    to_point: Point

    def side(self, endpoint: str) -> Side:
        return self.from_side if endpoint == "from" else self.to_side

    def point(self, endpoint: str) -> Point:
        return self.from_point if endpoint == "from" else self.to_point

    def table_index(self, endpoint: str) -> int:
        return self.from_idx if endpoint == "from" else self.to_idx


def table_box(table: Table) -> TableBox:
    pos = resolved_position(table)
    return TableBox(x=pos.x, y=pos.y, width=resolved_width(table), height=table_height(table))


# ============================================================================
# Side selection
# ============================================================================


def determine_sides(from_box: TableBox, to_box: TableBox) -> tuple[Side, Side]:
    """Choose attachment sides from the relative placement of two boxes.

    Horizontally overlapping boxes (stacked in one column) connect
    bottom-to-top; otherwise they connect right-to-left.
    """
    h_overlap = (
        from_box.x < to_box.x + to_box.width
        and to_box.x < from_box.x + from_box.width
    )
    if h_overlap:
        if from_box.center_y < to_box.center_y:
            return ("bottom", "top")
        return ("top", "bottom")
    if from_box.x < to_box.x:
        return ("right", "left")
    return ("left", "right")


def column_row_center(table: Table, column_name: str) -> float:
    """Y of a column row's center, relative to the table top (row 0 if absent)."""
    idx = table.column_index(column_name)
    if idx is None:
        idx = 0
    return HEADER_HEIGHT + idx * ROW_HEIGHT + ROW_HEIGHT / 2


def connection_point(table: Table, side: Side, column_name: str) -> Point:
    box = table_box(table)
    if side == "left":
        return Point(x=box.x, y=box.y + column_row_center(table, column_name))
    if side == "right":
        return Point(x=box.x + box.width, y=box.y + column_row_center(table, column_name))
    if side == "top":
        return Point(x=box.x + box.width / 2, y=box.y)
    return Point(x=box.x + box.width / 2, y=box.y + box.height)


# ============================================================================
# Route computation
# ============================================================================


def compute_routes(
    diagram: Diagram,
    index: dict[TableId, int] | None = None,
) -> list[Route | None]:
    """One route per relationship, in relationship order.

    A relationship whose endpoint table does not exist gets None.
    """
    if index is None:
        index = build_table_index(diagram)

    routes: list[Route | None] = []
    for rel in diagram.relationships:
        fi = index.get(rel.source.table_id)
        ti = index.get(rel.target.table_id)
        if fi is None or ti is None:
            routes.append(None)
            continue

        from_table = diagram.tables[fi]
        to_table = diagram.tables[ti]
        from_side, to_side = determine_sides(table_box(from_table), table_box(to_table))

        routes.append(
            Route(
                from_idx=fi,
                to_idx=ti,
                from_side=from_side,
                to_side=to_side,
                from_point=connection_point(from_table, from_side, rel.source.first_column),
                to_point=connection_point(to_table, to_side, rel.target.first_column),
            )
        )
    return routes


# ============================================================================
# Endpoint distribution
# ============================================================================


def group_endpoints(routes: list[Route | None]) -> dict[tuple[int, Side], list[tuple[int, str]]]:
    """Group (route index, "from"/"to") pairs by the (table, side) they attach to.

    Groups and their members keep the order in which routes were produced.
    """
    groups: dict[tuple[int, Side], list[tuple[int, str]]] = {}
    for i, route in enumerate(routes):
        if route is None:
            continue
        for endpoint in ("from", "to"):
            key = (route.table_index(endpoint), route.side(endpoint))
            groups.setdefault(key, []).append((i, endpoint))
    return groups


def distribute_endpoints(diagram: Diagram, routes: list[Route | None]) -> None:
    """Spread endpoints that share a table side, mutating `routes` in place.

    The j-th of N endpoints (1-based) sits at fraction j / (N + 1) of the
    side's span: the rows below the header on left/right sides, the full
    width on top/bottom sides.
    """
    for (table_idx, side), members in group_endpoints(routes).items():
        count = len(members)
        if count <= 1:
            continue

        box = table_box(diagram.tables[table_idx])
        for j, (route_idx, endpoint) in enumerate(members, start=1):
            point = routes[route_idx].point(endpoint)  # type: ignore[union-attr]
            fraction = j / (count + 1)
            if side in ("left", "right"):
                point.y = box.y + HEADER_HEIGHT + (box.height - HEADER_HEIGHT) * fraction
            else:
                point.x = box.x + box.width * fraction
