from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal

from .types import Point, Side
from .routing import Route
from .styles import MARKER_LENGTH

# ============================================================================
# Relationship curve shapes
#
# Every relationship line is: a straight stub leaving the start side (where
# the start marker sits), one cubic Bezier, and a straight stub entering the
# end side. The Bezier control points depend on which sides are joined:
#
#   horizontal  left/right -> left/right   tangents horizontal, bend at mid x
#   vertical    top/bottom -> top/bottom   tangents vertical, bend at mid y
#   mixed       one of each                corner at the perpendicular meet
# ============================================================================

CurveShape = Literal["horizontal", "vertical", "mixed"]

# Outward angle of each side in radians (y axis points down)
SIDE_ANGLES: dict[Side, float] = {
    "right": 0.0,
    "left": math.pi,
    "bottom": math.pi / 2,
    "top": -math.pi / 2,
}

# Exact outward unit vectors, so axis-aligned offsets stay exact
SIDE_DIRECTIONS: dict[Side, tuple[float, float]] = {
    "right": (1.0, 0.0),
    "left": (-1.0, 0.0),
    "bottom": (0.0, 1.0),
    "top": (0.0, -1.0),
}

_HORIZONTAL_SIDES = ("left", "right")


def classify_curve(from_side: Side, to_side: Side) -> CurveShape:
    from_h = from_side in _HORIZONTAL_SIDES
    to_h = to_side in _HORIZONTAL_SIDES
    if from_h and to_h:
        return "horizontal"
    if not from_h and not to_h:
        return "vertical"
    return "mixed"


def side_angle(side: Side) -> float:
    return SIDE_ANGLES[side]


def side_direction(side: Side) -> tuple[float, float]:
    return SIDE_DIRECTIONS[side]


def offset_point(point: Point, side: Side, distance: float = MARKER_LENGTH) -> Point:
    """Move `point` outward from its side by `distance`."""
    dx, dy = SIDE_DIRECTIONS[side]
    return Point(x=point.x + dx * distance, y=point.y + dy * distance)


@dataclass(slots=True)
class RelationshipPath:
    """Stub, cubic Bezier, stub -- everything a surface needs to stroke a line."""

    shape: CurveShape
    start: Point
    curve_start: Point
    control1: Point
    control2: Point
    curve_end: Point
    end: Point

    def to_svg(self) -> str:
        """SVG path data: M start L curve_start C c1 c2 curve_end L end."""
        return (
            f"M {_fmt(self.start)} L {_fmt(self.curve_start)} "
            f"C {_fmt(self.control1)} {_fmt(self.control2)} {_fmt(self.curve_end)} "
            f"L {_fmt(self.end)}"
        )


def build_relationship_path(route: Route, clearance: float = MARKER_LENGTH) -> RelationshipPath:
    shape = classify_curve(route.from_side, route.to_side)
    a = offset_point(route.from_point, route.from_side, clearance)
    b = offset_point(route.to_point, route.to_side, clearance)

    if shape == "horizontal":
        mid_x = (a.x + b.x) / 2
        c1 = Point(x=mid_x, y=a.y)
        c2 = Point(x=mid_x, y=b.y)
    elif shape == "vertical":
        mid_y = (a.y + b.y) / 2
        c1 = Point(x=a.x, y=mid_y)
        c2 = Point(x=b.x, y=mid_y)
    else:
        c1 = Point(x=b.x, y=a.y)
        c2 = Point(x=b.x, y=b.y)

    return RelationshipPath(
        shape=shape,
        start=Point(x=route.from_point.x, y=route.from_point.y),
        curve_start=a,
        control1=c1,
        control2=c2,
        curve_end=b,
        end=Point(x=route.to_point.x, y=route.to_point.y),
    )


def _fmt(p: Point) -> str:
    return f"{_num(p.x)} {_num(p.y)}"


def _num(v: float) -> str:
    # 12.0 -> "12", 12.5 -> "12.5"
    return f"{v:.2f}".rstrip("0").rstrip(".")
