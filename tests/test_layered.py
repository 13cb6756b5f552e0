"""Tests for the grandalf-backed layered layout strategy."""
from __future__ import annotations

from pretty_erd.layered import layered_layout
from pretty_erd.types import (
    Column,
    Diagram,
    EndPoint,
    LayoutOptions,
    Point,
    Relationship,
    Table,
    TableId,
    resolved_width,
    table_height,
)


def tid(name: str) -> TableId:
    return TableId(schema="public", name=name)


def make_diagram(names: list[str], edges: list[tuple[str, str]]) -> Diagram:
    return Diagram(
        tables=[Table(id=tid(n), columns=[Column("id", "int"), Column("ref_id", "int")]) for n in names],
        relationships=[
            Relationship("ManyToOne", EndPoint(tid(a), ["ref_id"]), EndPoint(tid(b), ["id"]))
            for a, b in edges
        ],
    )


def overlaps(a: Table, b: Table) -> bool:
    return (
        a.position.x < b.position.x + resolved_width(b)
        and b.position.x < a.position.x + resolved_width(a)
        and a.position.y < b.position.y + table_height(b)
        and b.position.y < a.position.y + table_height(a)
    )


class TestLayeredLayout:
    def test_empty_diagram_is_a_no_op(self):
        d = Diagram()
        layered_layout(d)
        assert d.tables == []

    def test_single_table_at_start(self):
        d = make_diagram(["a"], [])
        layered_layout(d)
        assert d.tables[0].position == Point(x=50, y=50)

    def test_unconnected_tables_stack_vertically(self):
        d = make_diagram(["a", "b"], [])
        layered_layout(d)
        assert d.tables[0].position == Point(x=50, y=50)
        assert d.tables[1].position == Point(x=50, y=50 + 92 + 80)

    def test_referenced_table_sits_left_of_referencing(self):
        d = make_diagram(["orders", "customers"], [("orders", "customers")])
        layered_layout(d)
        orders, customers = d.tables
        assert customers.position.x + resolved_width(customers) <= orders.position.x

    def test_chain_has_no_overlaps(self):
        d = make_diagram(["a", "b", "c", "d"], [("b", "a"), ("c", "b"), ("d", "b")])
        layered_layout(d)
        for i, a in enumerate(d.tables):
            for b in d.tables[i + 1:]:
                assert not overlaps(a, b)

    def test_component_starts_at_origin_corner(self):
        d = make_diagram(["a", "b", "c"], [("b", "a"), ("c", "a")])
        layered_layout(d)
        assert min(t.position.x for t in d.tables) == 50
        assert min(t.position.y for t in d.tables) == 50

    def test_components_do_not_overlap(self):
        d = make_diagram(["a", "b", "c", "d"], [("b", "a"), ("d", "c")])
        layered_layout(d)
        first_bottom = max(d.tables[i].position.y + table_height(d.tables[i]) for i in (0, 1))
        assert min(d.tables[i].position.y for i in (2, 3)) >= first_bottom + 80

    def test_duplicate_and_self_relationships_are_ignored(self):
        d = make_diagram(["a", "b"], [("b", "a"), ("a", "b"), ("a", "a")])
        layered_layout(d)
        assert all(t.position is not None for t in d.tables)
        assert not overlaps(d.tables[0], d.tables[1])

    def test_dangling_relationships_are_ignored(self):
        d = make_diagram(["a"], [("a", "ghost")])
        layered_layout(d)
        assert d.tables[0].position == Point(x=50, y=50)

    def test_preserve_existing(self):
        d = make_diagram(["a", "b"], [("b", "a")])
        d.tables[0].position = Point(x=-5, y=-5)
        layered_layout(d, preserve_existing=True)
        assert d.tables[0].position == Point(x=-5, y=-5)
        assert d.tables[1].position is not None

    def test_honors_start_options(self):
        d = make_diagram(["a"], [])
        layered_layout(d, LayoutOptions(start_x=0, start_y=0))
        assert d.tables[0].position == Point(x=0, y=0)
