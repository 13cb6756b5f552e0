from __future__ import annotations

import math

from .types import Diagram, MarkerKind, Point, Side, Table, resolved_position, resolved_width, table_height
from .geometry import Bounds, RelationshipGeometry, compute_geometry, diagram_bounds
from .curves import side_angle
from .sizing import column_label
from .theme import DiagramColors, build_style_block, svg_open_tag
from .styles import (
    BORDER_RADIUS,
    BODY_FONT,
    HEADER_FONT,
    HEADER_HEIGHT,
    PADDING_X,
    ROW_HEIGHT,
    STROKE_WIDTHS,
    TEXT_BASELINE_SHIFT,
)

# ============================================================================
# ER diagram SVG renderer
#
# Renders a laid-out diagram to SVG. Colors are CSS custom properties set on
# the root element by the theme module.
#
# Render order:
#   1. Relationship lines (behind tables)
#   2. Table boxes (header + column rows)
#   3. Cardinality markers (crow's foot notation)
# ============================================================================

DEFAULT_PADDING = 50


def render_svg(
    diagram: Diagram,
    colors: DiagramColors,
    font: str = "monospace",
    transparent: bool = False,
    padding: float = DEFAULT_PADDING,
) -> str:
    """Render a laid-out diagram as an SVG string.

    Args:
        diagram: Diagram whose tables have positions and widths.
        colors: DiagramColors for the palette.
        font: Font family for table text.
        transparent: If True, renders with transparent background.
        padding: Margin around the content bounds.
    """
    geometry = compute_geometry(diagram)

    bounds = diagram_bounds(diagram) or Bounds(0.0, 0.0, 0.0, 0.0)
    width = bounds.width + padding * 2
    height = bounds.height + padding * 2

    parts: list[str] = []
    parts.append(svg_open_tag(width, height, colors, transparent))
    parts.append(build_style_block(font))
    parts.append(f'<g transform="translate({padding - bounds.min_x},{padding - bounds.min_y})">')

    # 1. Relationship lines
    for geo in geometry:
        parts.append(_render_relationship_line(geo))

    # 2. Tables
    for table in diagram.tables:
        parts.append(_render_table(table))

    # 3. Markers at both ends
    for geo in geometry:
        parts.append(_render_marker(geo.route.from_point, geo.route.from_side, geo.from_marker))
        parts.append(_render_marker(geo.route.to_point, geo.route.to_side, geo.to_marker))

    parts.append("</g>")
    parts.append("</svg>")
    return "\n".join(parts)


# ============================================================================
# Table rendering
# ============================================================================


def _render_table(table: Table) -> str:
    pos = resolved_position(table)
    x, y = pos.x, pos.y
    w = resolved_width(table)
    h = table_height(table)
    r = BORDER_RADIUS

    parts: list[str] = []

    # Outer box
    parts.append(
        f'<rect x="{x}" y="{y}" width="{w}" height="{h}" rx="{r}" ry="{r}" '
        f'fill="var(--surface)" stroke="var(--border)" '
        f'stroke-width="{STROKE_WIDTHS["table_border"]}" />'
    )

    # Header band: rounded top, square bottom
    parts.append(
        f'<path d="M {x} {y + HEADER_HEIGHT} L {x} {y + r} Q {x} {y} {x + r} {y} '
        f'L {x + w - r} {y} Q {x + w} {y} {x + w} {y + r} L {x + w} {y + HEADER_HEIGHT} Z" '
        f'fill="var(--header)" />'
    )
    parts.append(
        f'<text class="header" x="{x + PADDING_X}" y="{y + HEADER_HEIGHT / 2}" '
        f'dy="{TEXT_BASELINE_SHIFT}" font-size="{HEADER_FONT.size}">'
        f"{_escape_xml(table.id.name)}</text>"
    )

    # Separator
    parts.append(
        f'<line x1="{x}" y1="{y + HEADER_HEIGHT}" x2="{x + w}" y2="{y + HEADER_HEIGHT}" '
        f'stroke="var(--border)" stroke-width="{STROKE_WIDTHS["separator"]}" />'
    )

    # Column rows: name left, type right
    for i, column in enumerate(table.columns):
        row_y = y + HEADER_HEIGHT + i * ROW_HEIGHT + ROW_HEIGHT / 2
        name_class = "pk" if column.is_pk else "col"
        parts.append(
            f'<text class="{name_class}" x="{x + PADDING_X}" y="{row_y}" '
            f'dy="{TEXT_BASELINE_SHIFT}" font-size="{BODY_FONT.size}">'
            f"{_escape_xml(column_label(column))}</text>"
        )
        parts.append(
            f'<text class="type" x="{x + w - PADDING_X}" y="{row_y}" text-anchor="end" '
            f'dy="{TEXT_BASELINE_SHIFT}" font-size="{BODY_FONT.size}">'
            f"{_escape_xml(column.type_raw)}</text>"
        )

    return "\n".join(parts)


# ============================================================================
# Relationship rendering
# ============================================================================


def _render_relationship_line(geo: RelationshipGeometry) -> str:
    return (
        f'<path class="rel" d="{geo.path.to_svg()}" '
        f'stroke-width="{STROKE_WIDTHS["relation"]}" />'
    )


def _render_marker(point: Point, side: Side, kind: MarkerKind) -> str:
    """Crow's foot marker drawn in a frame whose +x axis points away from the table.

      one-mandatory   ||   two bars
      one-optional    |o   bar + circle
      many-mandatory  <|   crow's foot + bar
      many-optional   <o   crow's foot + circle
    """
    angle = math.degrees(side_angle(side))
    sw = STROKE_WIDTHS["relation"]
    shapes: list[str] = []

    def bar(at: float) -> None:
        shapes.append(f'<line x1="{at}" y1="-8" x2="{at}" y2="8" />')

    def circle(at: float) -> None:
        shapes.append(f'<circle cx="{at}" cy="0" r="5" fill="var(--surface)" />')

    def crow_foot() -> None:
        shapes.append('<path d="M 12 0 L 0 -8 M 12 0 L 0 8" fill="none" />')

    if kind == "one-mandatory":
        bar(6)
        bar(12)
    elif kind == "one-optional":
        bar(6)
        circle(14)
    elif kind == "many-mandatory":
        bar(16)
        crow_foot()
    else:
        circle(18)
        crow_foot()

    return (
        f'<g class="marker" transform="translate({point.x},{point.y}) rotate({angle})" '
        f'stroke-width="{sw}">' + "".join(shapes) + "</g>"
    )


# ============================================================================
# Utilities
# ============================================================================


def _escape_xml(text: str) -> str:
    """Escape special XML characters in text content."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )
