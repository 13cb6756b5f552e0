"""Tests for the interactive diagram session -- preparation, dragging,
layout reset and fit-to-view.
"""
from __future__ import annotations

import pytest

from pretty_erd.events import RecordingChannel, SaveLayout, TableMoved
from pretty_erd.session import DiagramSession, Viewport
from pretty_erd.types import (
    Column,
    Diagram,
    EndPoint,
    LayoutOptions,
    Point,
    Relationship,
    Table,
    TableId,
)


def tid(name: str) -> TableId:
    return TableId(schema="public", name=name)


def blog() -> Diagram:
    return Diagram(
        tables=[
            Table(id=tid("users"), columns=[Column("id", "int", is_pk=True)]),
            Table(id=tid("posts"), columns=[Column("id", "int", is_pk=True), Column("user_id", "int")]),
        ],
        relationships=[
            Relationship("ManyToOne", EndPoint(tid("posts"), ["user_id"]), EndPoint(tid("users"), ["id"])),
        ],
    )


# ============================================================================
# Preparation
# ============================================================================


class TestPrepare:
    def test_measures_and_places_every_table(self):
        d = blog()
        DiagramSession(d).prepare()
        assert all(t.width == 160 for t in d.tables)
        assert d.tables[0].position == Point(x=50, y=50)
        assert d.tables[1].position == Point(x=50 + 160 + 100, y=50)

    def test_keeps_saved_positions(self):
        d = blog()
        d.tables[0].position = Point(x=-100, y=-100)
        DiagramSession(d).prepare()
        assert d.tables[0].position == Point(x=-100, y=-100)
        assert d.tables[1].position is not None

    def test_skips_layout_when_everything_is_placed(self):
        d = blog()
        d.tables[0].position = Point(x=1, y=1)
        d.tables[1].position = Point(x=2, y=2)
        DiagramSession(d).prepare()
        assert [t.position for t in d.tables] == [Point(x=1, y=1), Point(x=2, y=2)]

    def test_layered_strategy(self):
        d = blog()
        DiagramSession(d, options=LayoutOptions(strategy="layered")).prepare()
        users, posts = d.tables
        assert users.position.x < posts.position.x

    def test_prepare_emits_nothing(self):
        ch = RecordingChannel()
        DiagramSession(blog(), channel=ch).prepare()
        assert ch.events == []


# ============================================================================
# Frames and hit testing
# ============================================================================


class TestFrame:
    def test_frame_returns_relationship_geometry(self):
        s = DiagramSession(blog())
        s.prepare()
        (geo,) = s.frame()
        assert (geo.route.from_side, geo.route.to_side) == ("left", "right")
        assert (geo.from_marker, geo.to_marker) == ("many-optional", "one-optional")

    def test_frame_follows_moves(self):
        s = DiagramSession(blog())
        s.prepare()
        s.move_table(1, 50, 400)
        (geo,) = s.frame()
        assert (geo.route.from_side, geo.route.to_side) == ("top", "bottom")


class TestHitTest:
    def test_hits_table_including_edges(self):
        s = DiagramSession(blog())
        s.prepare()
        assert s.hit_test(50, 50) == 0
        assert s.hit_test(210, 114) == 0
        assert s.hit_test(320, 60) == 1

    def test_miss(self):
        s = DiagramSession(blog())
        s.prepare()
        assert s.hit_test(250, 60) is None
        assert s.hit_test(0, 0) is None

    def test_topmost_table_wins(self):
        d = blog()
        for t in d.tables:
            t.position = Point(x=0, y=0)
        assert DiagramSession(d).hit_test(10, 10) == 1


# ============================================================================
# Dragging and reset
# ============================================================================


class TestDragging:
    def test_move_does_not_notify(self):
        ch = RecordingChannel()
        s = DiagramSession(blog(), channel=ch)
        s.prepare()
        s.move_table(0, 5, 6)
        assert s.diagram.tables[0].position == Point(x=5, y=6)
        assert ch.events == []

    def test_finish_move_notifies_final_position(self):
        ch = RecordingChannel()
        s = DiagramSession(blog(), channel=ch)
        s.prepare()
        s.move_table(1, 10, 20)
        s.move_table(1, 30, 40)
        s.finish_move(1)
        assert ch.events == [TableMoved(table_id="public.posts", x=30, y=40)]

    def test_no_channel_is_fine(self):
        s = DiagramSession(blog())
        s.prepare()
        s.finish_move(0)


class TestResetLayout:
    def test_relayouts_and_reports_every_table(self):
        ch = RecordingChannel()
        s = DiagramSession(blog(), channel=ch)
        s.prepare()
        s.move_table(0, 999, 999)
        s.reset_layout()

        assert s.diagram.tables[0].position == Point(x=50, y=50)
        (event,) = ch.events
        assert isinstance(event, SaveLayout)
        assert event.tables == {
            "public.users": Point(x=50, y=50),
            "public.posts": Point(x=310, y=50),
        }


# ============================================================================
# Fit to view
# ============================================================================


class TestFitToView:
    def test_empty_diagram_is_identity(self):
        assert DiagramSession(Diagram()).fit_to_view(800, 600) == Viewport(scale=1.0, pan_x=0.0, pan_y=0.0)

    def test_scale_is_capped(self):
        d = Diagram(tables=[Table(id=tid("t"), position=Point(x=50, y=50), width=160)])
        vp = DiagramSession(d).fit_to_view(1000, 1000)
        assert vp.scale == 2
        assert vp.pan_x == pytest.approx(240)
        assert vp.pan_y == pytest.approx(364)

    def test_content_is_centered(self):
        s = DiagramSession(blog())
        s.prepare()
        vp = s.fit_to_view(400, 300)
        b = s.bounds()
        left = b.min_x * vp.scale + vp.pan_x
        right = b.max_x * vp.scale + vp.pan_x
        assert left == pytest.approx(400 - right)
        assert vp.scale < 2

    def test_screen_to_world_inverts_viewport(self):
        vp = Viewport(scale=2, pan_x=10, pan_y=20)
        assert vp.screen_to_world(110, 220) == Point(x=50, y=100)
