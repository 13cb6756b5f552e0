"""pretty-erd: ER diagram auto-layout, relationship routing and SVG rendering."""

from __future__ import annotations

from .types import (
    Column,
    Diagram,
    DiagramError,
    EndPoint,
    LayoutOptions,
    Point,
    Relationship,
    RenderOptions,
    Table,
    TableId,
    diagram_from_dict,
    diagram_to_dict,
)
from .theme import DiagramColors, THEMES, DEFAULTS
from .parser import DbmlParseError, parse_dbml
from .layout import auto_layout
from .layered import layered_layout
from .geometry import compute_geometry
from .layout_file import LayoutData, LayoutFileError, apply_layout, read_layout, write_layout
from .session import DiagramSession
from .renderer import DEFAULT_PADDING, render_svg

__all__ = [
    "render_dbml",
    "parse_dbml",
    "auto_layout",
    "layered_layout",
    "compute_geometry",
    "diagram_from_dict",
    "diagram_to_dict",
    "read_layout",
    "write_layout",
    "apply_layout",
    "DiagramSession",
    "THEMES",
    "DEFAULTS",
    "RenderOptions",
    "LayoutOptions",
    "LayoutData",
    "DiagramColors",
    "Diagram",
    "Table",
    "TableId",
    "Column",
    "EndPoint",
    "Relationship",
    "Point",
    "DbmlParseError",
    "DiagramError",
    "LayoutFileError",
]


def _build_colors(options: RenderOptions) -> DiagramColors:
    """Build DiagramColors from render options."""
    return DiagramColors(
        bg=options.bg or DEFAULTS["bg"],
        fg=options.fg or DEFAULTS["fg"],
        header=options.header,
        header_text=options.header_text,
        line=options.line,
        accent=options.accent,
        muted=options.muted,
        border=options.border,
    )


def render_dbml(
    text: str,
    options: RenderOptions | None = None,
    layout: LayoutData | None = None,
    layout_options: LayoutOptions | None = None,
) -> str:
    """Render DBML source to an SVG string.

    Tables named in ``layout`` keep their saved positions; the rest are
    placed by the auto-layout selected in ``layout_options``.
    """
    if options is None:
        options = RenderOptions()

    diagram = parse_dbml(text)
    if layout is not None:
        apply_layout(diagram, layout)

    DiagramSession(diagram, options=layout_options).prepare()

    return render_svg(
        diagram,
        _build_colors(options),
        font=options.font or "monospace",
        transparent=options.transparent or False,
        padding=DEFAULT_PADDING if options.padding is None else options.padding,
    )
