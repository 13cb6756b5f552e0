from __future__ import annotations

from dataclasses import dataclass

from .styles import MONO_FONT_STACK

# ============================================================================
# Types
# ============================================================================


@dataclass(slots=True)
class DiagramColors:
    """Diagram color configuration.

    Required: bg + fg. Everything else falls back to the classic palette
    (blue header band, red primary keys, grey relationship lines).
    """

    bg: str
    fg: str
    header: str | None = None
    header_text: str | None = None
    line: str | None = None
    accent: str | None = None
    muted: str | None = None
    border: str | None = None
    surface: str | None = None


# ============================================================================
# Defaults
# ============================================================================

DEFAULTS = {
    "bg": "#f5f5f5",
    "fg": "#333333",
    "header": "#3498db",
    "header_text": "#ffffff",
    "line": "#666666",
    "accent": "#e74c3c",
    "muted": "#888888",
    "border": "#cccccc",
    "surface": "#ffffff",
}

# ============================================================================
# Well-known theme palettes
# ============================================================================

THEMES: dict[str, DiagramColors] = {
    "classic": DiagramColors(bg="#f5f5f5", fg="#333333"),
    "zinc-dark": DiagramColors(
        bg="#18181B", fg="#FAFAFA",
        header="#3f3f46", line="#71717a", accent="#f87171",
        muted="#a1a1aa", border="#3f3f46", surface="#27272a",
    ),
    "github-light": DiagramColors(
        bg="#ffffff", fg="#1f2328",
        header="#0969da", line="#59636e", accent="#cf222e",
        muted="#59636e", border="#d1d9e0", surface="#ffffff",
    ),
    "github-dark": DiagramColors(
        bg="#0d1117", fg="#e6edf3",
        header="#1f6feb", line="#9198a1", accent="#ff7b72",
        muted="#9198a1", border="#3d444d", surface="#161b22",
    ),
    "nord": DiagramColors(
        bg="#2e3440", fg="#d8dee9",
        header="#5e81ac", line="#616e88", accent="#bf616a",
        muted="#81a1c1", border="#4c566a", surface="#3b4252",
    ),
}


def resolve_color(colors: DiagramColors, name: str) -> str:
    value = getattr(colors, name)
    return value if value else DEFAULTS[name]


# ============================================================================
# SVG style block
# ============================================================================


def build_style_block(font: str) -> str:
    """CSS variable derivation rules for the SVG <style> block."""
    return "\n".join([
        "<style>",
        f"  text {{ font-family: {font}, {MONO_FONT_STACK}; }}",
        "  .header { fill: var(--header-text); font-weight: bold; }",
        "  .col { fill: var(--fg); }",
        "  .pk { fill: var(--accent); }",
        "  .type { fill: var(--muted); }",
        "  .rel { fill: none; stroke: var(--line); }",
        "  .marker { stroke: var(--line); }",
        "</style>",
    ])


def svg_open_tag(
    width: float,
    height: float,
    colors: DiagramColors,
    transparent: bool = False,
) -> str:
    """Build the SVG opening tag with CSS variables set as inline styles."""
    names = ("bg", "fg", "header", "header_text", "line", "accent", "muted", "border", "surface")
    vars_str = ";".join(f"--{n.replace('_', '-')}:{resolve_color(colors, n)}" for n in names)
    bg_style = "" if transparent else ";background:var(--bg)"

    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 {width} {height}" '
        f'width="{width}" height="{height}" style="{vars_str}{bg_style}">'
    )
