from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass

from .types import (
    Diagram,
    LayoutOptions,
    Point,
    build_table_index,
    resolved_width,
    table_height,
)
from .styles import MIN_TABLE_WIDTH

# ============================================================================
# Grid auto-layout
#
# Places tables on a signed integer grid with a breadth-first walk of the
# relationship graph, starting from the most connected table at (0, 0).
# Each newly reached table takes the first free neighbor cell of the table
# it was reached from, in the fixed order right, down, left, up -- which
# grows a "cross" around hub tables. When all four are taken, the nearest
# free cell on a ring around the current cell is used instead.
#
# Grid cells are then mapped to pixels: every grid column is as wide as its
# widest table and every grid row as tall as its tallest table.
# ============================================================================

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class GridCoord:
    """Logical grid cell -- column and row may be negative before normalization."""

    col: int
    row: int

    def offset(self, dcol: int, drow: int) -> GridCoord:
        return GridCoord(col=self.col + dcol, row=self.row + drow)


ORIGIN = GridCoord(col=0, row=0)

# Neighbor preference: right, down, left, up
DIRECTIONS: tuple[tuple[int, int], ...] = ((1, 0), (0, 1), (-1, 0), (0, -1))


# ============================================================================
# Graph helpers
# ============================================================================


def build_adjacency(diagram: Diagram) -> list[list[int]]:
    """Undirected adjacency lists over table indices, in relationship order.

    Relationships whose endpoints do not resolve to a table are skipped.
    """
    index = build_table_index(diagram)
    adjacency: list[list[int]] = [[] for _ in diagram.tables]
    for rel in diagram.relationships:
        fi = index.get(rel.source.table_id)
        ti = index.get(rel.target.table_id)
        if fi is None or ti is None:
            continue
        adjacency[fi].append(ti)
        adjacency[ti].append(fi)
    return adjacency


def choose_root(adjacency: list[list[int]]) -> int:
    """Index of the table with the highest degree; the lowest index wins ties."""
    root = 0
    max_degree = 0
    for i, neighbors in enumerate(adjacency):
        if len(neighbors) > max_degree:
            max_degree = len(neighbors)
            root = i
    return root


def find_nearest_empty(
    center: GridCoord,
    occupied: set[GridCoord],
    max_radius: int = 20,
) -> GridCoord | None:
    """First free cell on the smallest square ring around `center`.

    Rings are scanned for radius 1, 2, ... below `max_radius`; within a
    ring cells are visited column-major (dx outer, dy inner) and only
    cells on the ring's perimeter are tested.
    """
    for radius in range(1, max_radius):
        for dx in range(-radius, radius + 1):
            for dy in range(-radius, radius + 1):
                if abs(dx) != radius and abs(dy) != radius:
                    continue
                cell = center.offset(dx, dy)
                if cell not in occupied:
                    return cell
    return None


# ============================================================================
# Grid placement
# ============================================================================


def place_on_grid(diagram: Diagram, options: LayoutOptions | None = None) -> dict[int, GridCoord]:
    """Assign a unique grid cell to every table index.

    Returns an insertion-ordered mapping of table index -> cell. A table is
    missing from the result only if the ring search ran out of radius.
    """
    if options is None:
        options = LayoutOptions()
    if not diagram.tables:
        return {}

    adjacency = build_adjacency(diagram)
    root = choose_root(adjacency)

    cells: dict[int, GridCoord] = {root: ORIGIN}
    occupied: set[GridCoord] = {ORIGIN}
    visited: set[int] = {root}
    queue: deque[tuple[int, GridCoord]] = deque([(root, ORIGIN)])

    def claim(table_idx: int, cell: GridCoord) -> None:
        cells[table_idx] = cell
        occupied.add(cell)

    while queue:
        current, at = queue.popleft()
        for neighbor in adjacency[current]:
            if neighbor in visited:
                continue
            visited.add(neighbor)

            cell = None
            for dcol, drow in DIRECTIONS:
                candidate = at.offset(dcol, drow)
                if candidate not in occupied:
                    cell = candidate
                    break
            if cell is None:
                cell = find_nearest_empty(at, occupied, options.max_search_radius)
            if cell is None:
                # Retried from the origin with the disconnected tables below
                continue

            claim(neighbor, cell)
            queue.append((neighbor, cell))

    # Tables the walk never reached (other components), in table order
    for i in range(len(diagram.tables)):
        if i in cells:
            continue
        cell = find_nearest_empty(ORIGIN, occupied, options.max_search_radius)
        if cell is None:
            logger.warning(
                "No free grid cell within radius %d for table %s",
                options.max_search_radius,
                diagram.tables[i].id,
            )
            continue
        claim(i, cell)

    return cells


# ============================================================================
# Grid -> pixel conversion
# ============================================================================


def grid_to_pixels(
    diagram: Diagram,
    cells: dict[int, GridCoord],
    options: LayoutOptions | None = None,
) -> dict[int, Point]:
    """Convert grid cells to top-left pixel positions.

    The leftmost used column starts at `start_x`; each column further right
    adds the width of every column in between plus `spacing_x`. Rows work
    the same way with heights and `spacing_y`.
    """
    if options is None:
        options = LayoutOptions()
    if not cells:
        return {}

    min_col = min(c.col for c in cells.values())
    min_row = min(c.row for c in cells.values())

    col_widths: dict[int, float] = {}
    row_heights: dict[int, float] = {}
    for i, cell in cells.items():
        table = diagram.tables[i]
        col_widths[cell.col] = max(col_widths.get(cell.col, 0), resolved_width(table))
        row_heights[cell.row] = max(row_heights.get(cell.row, 0), table_height(table))

    positions: dict[int, Point] = {}
    for i, cell in cells.items():
        x = options.start_x
        for col in range(min_col, cell.col):
            x += col_widths.get(col, MIN_TABLE_WIDTH) + options.spacing_x
        y = options.start_y
        for row in range(min_row, cell.row):
            y += row_heights.get(row, options.default_row_height) + options.spacing_y
        positions[i] = Point(x=x, y=y)
    return positions


def auto_layout(
    diagram: Diagram,
    options: LayoutOptions | None = None,
    *,
    preserve_existing: bool = False,
) -> dict[int, GridCoord]:
    """Position tables on the grid layout.

    Every table takes part in grid placement so the result is the same no
    matter which tables already have a position. With `preserve_existing`,
    only tables whose position is unset are moved.

    Returns the grid cell assigned to each table index.
    """
    cells = place_on_grid(diagram, options)
    positions = grid_to_pixels(diagram, cells, options)
    for i, position in positions.items():
        table = diagram.tables[i]
        if preserve_existing and table.position is not None:
            continue
        table.position = position
    return cells
