from __future__ import annotations

from dataclasses import dataclass

from .types import (
    Diagram,
    LayoutOptions,
    Point,
    resolved_position,
    resolved_width,
    table_height,
)
from .styles import EstimatingTextMeasurer, TextMeasurer
from .sizing import compute_widths
from .layout import auto_layout
from .layered import layered_layout
from .geometry import Bounds, RelationshipGeometry, compute_geometry, diagram_bounds
from .events import NotificationChannel, SaveLayout, TableMoved

# ============================================================================
# Interactive diagram session
#
# Owns the one Diagram a view works on and drives the pipeline for it:
#   prepare()      widths + auto-layout for tables without a saved position
#   frame()        relationship geometry for the current positions
#   move_table()   drag updates; finish_move() reports the final position
#   reset_layout() forget all positions, lay out again, report them all
# Pointer and wheel handling stay with the host; it calls in here.
# ============================================================================


@dataclass(slots=True)
class Viewport:
    scale: float
    pan_x: float
    pan_y: float

    def screen_to_world(self, sx: float, sy: float) -> Point:
        return Point(x=(sx - self.pan_x) / self.scale, y=(sy - self.pan_y) / self.scale)


class DiagramSession:
    def __init__(
        self,
        diagram: Diagram,
        channel: NotificationChannel | None = None,
        measurer: TextMeasurer | None = None,
        options: LayoutOptions | None = None,
    ) -> None:
        self.diagram = diagram
        self.channel = channel
        self.measurer = measurer or EstimatingTextMeasurer()
        self.options = options or LayoutOptions()

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def prepare(self) -> None:
        compute_widths(self.diagram, self.measurer)
        if any(t.position is None for t in self.diagram.tables):
            self._run_layout(preserve_existing=True)

    def reset_layout(self) -> None:
        for table in self.diagram.tables:
            table.position = None
        self._run_layout(preserve_existing=False)

        tables = {
            t.id.full_name: Point(x=t.position.x, y=t.position.y)
            for t in self.diagram.tables
            if t.position is not None
        }
        self._emit(SaveLayout(tables=tables))

    def _run_layout(self, preserve_existing: bool) -> None:
        if self.options.strategy == "layered":
            layered_layout(self.diagram, self.options, preserve_existing=preserve_existing)
        else:
            auto_layout(self.diagram, self.options, preserve_existing=preserve_existing)

    # ------------------------------------------------------------------
    # Per-frame geometry
    # ------------------------------------------------------------------

    def frame(self) -> list[RelationshipGeometry]:
        return compute_geometry(self.diagram)

    def bounds(self) -> Bounds | None:
        return diagram_bounds(self.diagram)

    def fit_to_view(
        self,
        width: float,
        height: float,
        padding: float = 50,
        max_scale: float = 2,
    ) -> Viewport:
        """Scale and pan that center the whole diagram in a width x height view."""
        bounds = self.bounds()
        if bounds is None:
            return Viewport(scale=1.0, pan_x=0.0, pan_y=0.0)

        content_w = bounds.width + padding * 2
        content_h = bounds.height + padding * 2
        scale = min(width / content_w, height / content_h, max_scale)
        pan_x = (width - content_w * scale) / 2 - bounds.min_x * scale + padding * scale
        pan_y = (height - content_h * scale) / 2 - bounds.min_y * scale + padding * scale
        return Viewport(scale=scale, pan_x=pan_x, pan_y=pan_y)

    # ------------------------------------------------------------------
    # Dragging
    # ------------------------------------------------------------------

    def hit_test(self, x: float, y: float) -> int | None:
        """Index of the topmost (last drawn) table containing the world point."""
        for i in range(len(self.diagram.tables) - 1, -1, -1):
            table = self.diagram.tables[i]
            p = resolved_position(table)
            if p.x <= x <= p.x + resolved_width(table) and p.y <= y <= p.y + table_height(table):
                return i
        return None

    def move_table(self, index: int, x: float, y: float) -> None:
        self.diagram.tables[index].position = Point(x=x, y=y)

    def finish_move(self, index: int) -> None:
        table = self.diagram.tables[index]
        pos = resolved_position(table)
        self._emit(TableMoved(table_id=table.id.full_name, x=pos.x, y=pos.y))

    def _emit(self, event: TableMoved | SaveLayout) -> None:
        if self.channel is not None:
            self.channel.notify(event)
