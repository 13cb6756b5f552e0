"""Tests for the command line interface -- `pretty-erd generate`."""
from __future__ import annotations

from typer.testing import CliRunner

from pretty_erd.cli import app
from pretty_erd.layout_file import LayoutData, write_layout
from pretty_erd.types import Point

SCHEMA = """
Table users {
  id int [pk]
}

Table posts {
  id int [pk]
  user_id int [not null, ref: > users.id]
}
"""

runner = CliRunner()


def write_schema(tmp_path):
    path = tmp_path / "blog.dbml"
    path.write_text(SCHEMA)
    return path


# ============================================================================
# generate
# ============================================================================


class TestGenerate:
    def test_writes_svg_next_to_input(self, tmp_path):
        source = write_schema(tmp_path)
        result = runner.invoke(app, ["generate", str(source)])
        assert result.exit_code == 0, result.output
        svg = (tmp_path / "blog.svg").read_text()
        assert svg.startswith("<svg")
        assert ">users</text>" in svg
        assert "Wrote" in result.output

    def test_output_option(self, tmp_path):
        source = write_schema(tmp_path)
        target = tmp_path / "out" / "diagram.svg"
        target.parent.mkdir()
        result = runner.invoke(app, ["generate", str(source), "-o", str(target)])
        assert result.exit_code == 0, result.output
        assert target.exists()
        assert not (tmp_path / "blog.svg").exists()

    def test_applies_default_layout_file(self, tmp_path):
        source = write_schema(tmp_path)
        write_layout(
            tmp_path / "blog.layout.toml",
            LayoutData(source="blog.dbml", tables={"public.users": Point(x=-700, y=-700)}),
        )
        result = runner.invoke(app, ["generate", str(source)])
        assert result.exit_code == 0, result.output
        assert '<rect x="-700.0" y="-700.0"' in (tmp_path / "blog.svg").read_text()

    def test_layout_option(self, tmp_path):
        source = write_schema(tmp_path)
        layout = tmp_path / "saved.toml"
        write_layout(layout, LayoutData(source="blog.dbml", tables={"public.posts": Point(x=-300, y=-300)}))
        result = runner.invoke(app, ["generate", str(source), "--layout", str(layout)])
        assert result.exit_code == 0, result.output
        assert '<rect x="-300.0" y="-300.0"' in (tmp_path / "blog.svg").read_text()

    def test_auto_layout_ignores_saved_layout(self, tmp_path):
        source = write_schema(tmp_path)
        write_layout(
            tmp_path / "blog.layout.toml",
            LayoutData(source="blog.dbml", tables={"public.users": Point(x=-700, y=-700)}),
        )
        result = runner.invoke(app, ["generate", str(source), "--auto-layout"])
        assert result.exit_code == 0, result.output
        svg = (tmp_path / "blog.svg").read_text()
        assert "-700" not in svg
        assert '<rect x="50" y="50"' in svg

    def test_missing_input(self, tmp_path):
        result = runner.invoke(app, ["generate", str(tmp_path / "nope.dbml")])
        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_invalid_dbml(self, tmp_path):
        source = tmp_path / "broken.dbml"
        source.write_text("Table broken {\n  id int")
        result = runner.invoke(app, ["generate", str(source)])
        assert result.exit_code == 1
        assert "Unterminated" in result.output
        assert not (tmp_path / "broken.svg").exists()

    def test_malformed_layout_file(self, tmp_path):
        source = write_schema(tmp_path)
        (tmp_path / "blog.layout.toml").write_text("meta = 1\n")
        result = runner.invoke(app, ["generate", str(source)])
        assert result.exit_code == 1
        assert "Failed" in result.output
