from __future__ import annotations

from .types import Column, Diagram, Table
from .styles import (
    BODY_FONT,
    COLUMN_GAP,
    HEADER_FONT,
    KEY_GLYPH,
    MIN_TABLE_WIDTH,
    PADDING_X,
    EstimatingTextMeasurer,
    TextMeasurer,
)

# ============================================================================
# Table width estimation
#
# Each table box is as wide as its widest line of text:
#   header:  table name at the bold header font
#   rows:    [key glyph] column name + gap + type at the body font
# plus horizontal padding on both sides, never narrower than MIN_TABLE_WIDTH.
# ============================================================================


def column_label(column: Column) -> str:
    """Display text for a column name (primary keys get a key glyph)."""
    if column.is_pk:
        return KEY_GLYPH + column.name
    return column.name


def estimate_table_width(table: Table, measurer: TextMeasurer) -> float:
    max_row_w = 0.0
    for column in table.columns:
        row_w = (
            measurer.measure(column_label(column), BODY_FONT)
            + COLUMN_GAP
            + measurer.measure(column.type_raw, BODY_FONT)
        )
        if row_w > max_row_w:
            max_row_w = row_w

    header_w = measurer.measure(table.id.name, HEADER_FONT)
    content_w = max(max_row_w, header_w)
    return max(MIN_TABLE_WIDTH, content_w + 2 * PADDING_X)


def compute_widths(diagram: Diagram, measurer: TextMeasurer | None = None) -> None:
    """Set `width` on every table from its content."""
    if measurer is None:
        measurer = EstimatingTextMeasurer()
    for table in diagram.tables:
        table.width = estimate_table_width(table, measurer)
