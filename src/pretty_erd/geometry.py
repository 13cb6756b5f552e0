from __future__ import annotations

from dataclasses import dataclass

from .types import (
    Diagram,
    MarkerKind,
    Relationship,
    build_table_index,
    resolved_position,
    resolved_width,
    table_height,
)
from .routing import Route, compute_routes, distribute_endpoints
from .markers import resolve_markers
from .curves import RelationshipPath, build_relationship_path

# ============================================================================
# Per-frame relationship geometry
#
# routes -> endpoint distribution -> markers -> curve paths. Cheap enough to
# rerun on every pointer move during a drag; nothing here is cached.
# ============================================================================


@dataclass(slots=True)
class RelationshipGeometry:
    relationship: Relationship
    route: Route
    from_marker: MarkerKind
    to_marker: MarkerKind
    path: RelationshipPath


def compute_geometry(diagram: Diagram) -> list[RelationshipGeometry]:
    """Geometry for every routable relationship, in relationship order."""
    routes = compute_routes(diagram, build_table_index(diagram))
    distribute_endpoints(diagram, routes)

    result: list[RelationshipGeometry] = []
    for rel, route in zip(diagram.relationships, routes):
        if route is None:
            continue
        from_marker, to_marker = resolve_markers(
            rel, diagram.tables[route.from_idx], diagram.tables[route.to_idx]
        )
        result.append(
            RelationshipGeometry(
                relationship=rel,
                route=route,
                from_marker=from_marker,
                to_marker=to_marker,
                path=build_relationship_path(route),
            )
        )
    return result


# ============================================================================
# Content bounds
# ============================================================================


@dataclass(slots=True)
class Bounds:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y


def diagram_bounds(diagram: Diagram) -> Bounds | None:
    """Box around every table (unplaced tables count as sitting at the origin)."""
    if not diagram.tables:
        return None
    boxes = [
        (resolved_position(t), resolved_width(t), table_height(t))
        for t in diagram.tables
    ]
    return Bounds(
        min_x=min(p.x for p, _, _ in boxes),
        min_y=min(p.y for p, _, _ in boxes),
        max_x=max(p.x + w for p, w, _ in boxes),
        max_y=max(p.y + h for p, _, h in boxes),
    )
