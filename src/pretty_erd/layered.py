from __future__ import annotations

from grandalf.graphs import Vertex, Edge, Graph
from grandalf.layouts import SugiyamaLayout

from .types import (
    Diagram,
    LayoutOptions,
    Point,
    build_table_index,
    resolved_width,
    table_height,
)

# ============================================================================
# Layered auto-layout
#
# Alternative to the grid layout: grandalf's Sugiyama layout, run per
# connected component with layers flowing left to right. Components are
# stacked top to bottom in order of their first table.
# ============================================================================


class _VertexView:
    """Minimal view object required by grandalf's SugiyamaLayout."""

    def __init__(self, w: float, h: float) -> None:
        self.w = w
        self.h = h
        # xy is set by the layout engine (center coordinates)
        self.xy = (0.0, 0.0)


def _component_positions(vertices: list[Vertex]) -> dict[int, Point]:
    """Top-left positions of one component, relative to its own bounding box."""
    if len(vertices) == 1:
        return {vertices[0].data: Point(x=0.0, y=0.0)}

    # grandalf lays layers out along its y axis; rotate a quarter turn so
    # layers become columns, which swaps each box's width and height.
    sizes: dict[int, tuple[float, float]] = {v.data: (v.view.h, v.view.w) for v in vertices}

    boxes: dict[int, tuple[float, float]] = {}
    for v in vertices:
        cx, cy = v.view.xy[1], v.view.xy[0]
        w, h = sizes[v.data]
        boxes[v.data] = (cx - w / 2, cy - h / 2)

    min_x = min(x for x, _ in boxes.values())
    min_y = min(y for _, y in boxes.values())
    return {i: Point(x=x - min_x, y=y - min_y) for i, (x, y) in boxes.items()}


def layered_layout(
    diagram: Diagram,
    options: LayoutOptions | None = None,
    *,
    preserve_existing: bool = False,
) -> None:
    """Position tables with the Sugiyama layered layout."""
    if options is None:
        options = LayoutOptions()
    if not diagram.tables:
        return

    vertices: list[Vertex] = []
    for i, table in enumerate(diagram.tables):
        v = Vertex(i)
        # Width and height are swapped for the left-to-right rotation
        v.view = _VertexView(w=table_height(table), h=resolved_width(table))
        vertices.append(v)

    index = build_table_index(diagram)
    edges: list[Edge] = []
    seen: set[tuple[int, int]] = set()
    for rel in diagram.relationships:
        fi = index.get(rel.source.table_id)
        ti = index.get(rel.target.table_id)
        if fi is None or ti is None or fi == ti:
            continue
        pair = (min(fi, ti), max(fi, ti))
        if pair in seen:
            continue
        seen.add(pair)
        # Referenced table first so parents sit left of their children
        edges.append(Edge(vertices[ti], vertices[fi]))

    g = Graph(vertices, edges)
    cores = sorted(g.C, key=lambda core: min(v.data for v in core.sV))

    positions: dict[int, Point] = {}
    cursor_y = options.start_y
    for gc in cores:
        comp = sorted(gc.sV, key=lambda v: v.data)
        if len(comp) > 1:
            try:
                sug = SugiyamaLayout(gc)
                sug.xspace = options.node_spacing
                sug.yspace = options.layer_spacing
                sug.init_all()
                sug.draw()
            except Exception as err:
                raise RuntimeError(f"Grandalf layout failed (layered layout): {err}") from err

        local = _component_positions(comp)
        bottom = 0.0
        for i, p in local.items():
            positions[i] = Point(x=options.start_x + p.x, y=cursor_y + p.y)
            bottom = max(bottom, p.y + table_height(diagram.tables[i]))
        cursor_y += bottom + options.spacing_y

    for i, position in positions.items():
        table = diagram.tables[i]
        if preserve_existing and table.position is not None:
            continue
        table.position = position
