from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from . import render_dbml
from .layout_file import LayoutFileError, default_layout_path, read_layout
from .parser import DbmlParseError

app = typer.Typer(no_args_is_help=True)
console = Console()


@app.callback()
def main() -> None:
    """Render DBML schemas as ER diagrams."""


@app.command("generate")
def generate(
    input_path: Path = typer.Argument(..., help="DBML file to render."),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="SVG file to write. Defaults to <input>.svg.",
    ),
    layout: Path | None = typer.Option(
        None, help="Saved layout to apply. Defaults to <input>.layout.toml.",
    ),
    auto_layout: bool = typer.Option(
        False, "--auto-layout", help="Place every table automatically, ignoring the saved layout.",
    ),
) -> None:
    if not input_path.exists():
        console.print(f"[red]File not found:[/] {escape(str(input_path))}")
        raise typer.Exit(code=1)

    output_path = output or input_path.with_suffix(".svg")
    layout_path = layout or default_layout_path(input_path)

    try:
        saved = None
        if not auto_layout and layout_path.exists():
            saved = read_layout(layout_path)
            console.print(f"[cyan]Using layout[/] {escape(str(layout_path))}")
        svg = render_dbml(input_path.read_text(encoding="utf-8"), layout=saved)
    except (DbmlParseError, LayoutFileError) as err:
        console.print(f"[red]Failed to render {escape(str(input_path))}:[/] {escape(str(err))}")
        raise typer.Exit(code=1) from err

    output_path.write_text(svg, encoding="utf-8")
    console.print(f"[green]Wrote[/] {escape(str(output_path))}")


if __name__ == "__main__":
    app()
