"""Tests for table width estimation and the text measurement helpers."""
from __future__ import annotations

import pytest

from pretty_erd.sizing import column_label, compute_widths, estimate_table_width
from pretty_erd.styles import (
    BODY_FONT,
    HEADER_FONT,
    EstimatingTextMeasurer,
    FontSpec,
    mono_text_width,
)
from pretty_erd.types import Column, Diagram, Table, TableId


class FixedMeasurer:
    """Every character is 10px wide regardless of font."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, FontSpec]] = []

    def measure(self, text: str, font: FontSpec) -> float:
        self.calls.append((text, font))
        return len(text) * 10.0


def table(name: str, *columns: Column) -> Table:
    return Table(id=TableId(schema="public", name=name), columns=list(columns))


# ============================================================================
# Estimates
# ============================================================================


class TestEstimates:
    def test_mono_width_is_uniform(self):
        assert mono_text_width("abcd", FontSpec(size=10)) == pytest.approx(24.0)
        assert mono_text_width("iiii", FontSpec(size=10)) == mono_text_width("WWWW", FontSpec(size=10))

    def test_weight_does_not_change_mono_width(self):
        m = EstimatingTextMeasurer()
        assert m.measure("Hello", FontSpec(size=14, weight=700)) == m.measure("Hello", FontSpec(size=14))

    def test_key_glyph_counts_as_one_character(self):
        assert EstimatingTextMeasurer().measure("\N{KEY} id", BODY_FONT) == pytest.approx(4 * 14 * 0.6)

    def test_font_spec_css(self):
        assert HEADER_FONT.css == "bold 15px monospace"
        assert BODY_FONT.css == "14px monospace"


# ============================================================================
# Table widths
# ============================================================================


class TestColumnLabel:
    def test_primary_key_gets_key_glyph(self):
        assert column_label(Column("id", "int", is_pk=True)) == "\N{KEY} id"
        assert column_label(Column("name", "text")) == "name"


class TestEstimateTableWidth:
    def test_short_content_uses_minimum_width(self):
        t = table("t", Column("id", "int"))
        assert estimate_table_width(t, EstimatingTextMeasurer()) == 160

    def test_widest_row_sets_width(self):
        t = table("t", Column("a_very_long_column_name_here", "varchar(255)"), Column("id", "int"))
        # 28 * 8.4 + 8 + 12 * 8.4 + 2 * 12
        assert estimate_table_width(t, EstimatingTextMeasurer()) == pytest.approx(368.0)

    def test_header_can_set_width(self):
        t = table("x" * 20, Column("id", "int"))
        # 20 chars * 9px at the 15px header font, plus padding
        assert estimate_table_width(t, EstimatingTextMeasurer()) == pytest.approx(204.0)

    def test_primary_key_glyph_counts_toward_width(self):
        plain = table("t", Column("c" * 20, "int"))
        keyed = table("t", Column("c" * 20, "int", is_pk=True))
        m = FixedMeasurer()
        assert estimate_table_width(keyed, m) - estimate_table_width(plain, m) == pytest.approx(20.0)

    def test_uses_header_and_body_fonts(self):
        m = FixedMeasurer()
        estimate_table_width(table("users", Column("id", "int")), m)
        assert ("users", HEADER_FONT) in m.calls
        assert ("id", BODY_FONT) in m.calls
        assert ("int", BODY_FONT) in m.calls

    def test_zero_column_table(self):
        assert estimate_table_width(table("t"), FixedMeasurer()) == 160


class TestComputeWidths:
    def test_sets_width_on_every_table(self):
        d = Diagram(tables=[table("a"), table("b", Column("c" * 30, "text"))])
        compute_widths(d, FixedMeasurer())
        assert d.tables[0].width == 160
        assert d.tables[1].width == pytest.approx(300 + 8 + 40 + 24)

    def test_defaults_to_estimating_measurer(self):
        d = Diagram(tables=[table("a", Column("id", "int"))])
        compute_widths(d)
        assert d.tables[0].width == 160
