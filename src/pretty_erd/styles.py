from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

# ============================================================================
# Font metrics: table text is set in a monospace stack, so every glyph
# advances by the same fraction of the font size.
# ============================================================================

MONO_ADVANCE = 0.6


@dataclass(slots=True, frozen=True)
class FontSpec:
    size: float
    weight: int = 400
    family: str = "monospace"

    @property
    def css(self) -> str:
        bold = "bold " if self.weight >= 600 else ""
        return f"{bold}{self.size}px {self.family}"


def mono_text_width(text: str, font: FontSpec) -> float:
    """Width in px of `text` set in `font`; weight never changes the advance."""
    return len(text) * font.size * MONO_ADVANCE


class TextMeasurer(Protocol):
    """Text measurement service supplied by the rendering host."""

    def measure(self, text: str, font: FontSpec) -> float: ...


class EstimatingTextMeasurer:
    """Character-count measurer used when no real font backend is available
    (SVG export, tests).
    """

    def measure(self, text: str, font: FontSpec) -> float:
        return mono_text_width(text, font)


MONO_FONT_STACK = "'JetBrains Mono', 'SF Mono', 'Fira Code', ui-monospace, monospace"

# Fixed fonts (px)
BODY_FONT = FontSpec(size=14, weight=400)
HEADER_FONT = FontSpec(size=15, weight=700)

# ============================================================================
# Table box geometry
# ============================================================================

MIN_TABLE_WIDTH = 160
HEADER_HEIGHT = 36
ROW_HEIGHT = 28
PADDING_X = 12
BORDER_RADIUS = 4

# Gap between a column name and its type in a row
COLUMN_GAP = 8

# Prefix for primary key column names
KEY_GLYPH = "\N{KEY} "

# ============================================================================
# Relationship lines
# ============================================================================

# Straight stub drawn past each marker before the curve starts
MARKER_LENGTH = 24

STROKE_WIDTHS = {
    "table_border": 1,
    "separator": 1,
    "relation": 1.5,
}

TEXT_BASELINE_SHIFT = "0.35em"
