from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

import tomli_w

from .types import Diagram, Point

# ============================================================================
# Layout file -- saved table positions next to the DBML source
#
#   schema.dbml  ->  schema.layout.toml
#
#   [meta]
#   version = 1
#   source = "schema.dbml"
#
#   [tables."public.users"]
#   x = 100.0
#   y = 200.0
# ============================================================================

logger = logging.getLogger(__name__)

LAYOUT_VERSION = 1


class LayoutFileError(ValueError):
    """Raised when a layout file cannot be read, parsed or written."""


@dataclass(slots=True)
class LayoutData:
    source: str
    version: int = LAYOUT_VERSION
    # Keyed by schema-qualified table name
    tables: dict[str, Point] = field(default_factory=dict)


def default_layout_path(input_path: Path) -> Path:
    return input_path.with_suffix(".layout.toml")


def read_layout(path: Path) -> LayoutData:
    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except OSError as err:
        raise LayoutFileError(f"Failed to read {path}: {err}") from err
    except tomllib.TOMLDecodeError as err:
        raise LayoutFileError(f"Failed to parse {path}: {err}") from err

    meta = raw.get("meta", {})
    if not isinstance(meta, dict):
        raise LayoutFileError(f"Failed to parse {path}: [meta] must be a table")
    version = meta.get("version", LAYOUT_VERSION)
    if not isinstance(version, int) or isinstance(version, bool):
        raise LayoutFileError(f"Failed to parse {path}: bad version {version!r}")
    raw_tables = raw.get("tables", {})
    if not isinstance(raw_tables, dict):
        raise LayoutFileError(f"Failed to parse {path}: [tables] must be a table")

    tables: dict[str, Point] = {}
    for name, pos in raw_tables.items():
        x = pos.get("x") if isinstance(pos, dict) else None
        y = pos.get("y") if isinstance(pos, dict) else None
        if not _is_number(x) or not _is_number(y):
            raise LayoutFileError(f"Failed to parse {path}: bad position for {name!r}")
        tables[name] = Point(x=float(x), y=float(y))

    logger.debug("Read %d table positions from %s", len(tables), path)
    return LayoutData(
        source=str(meta.get("source", "")),
        version=version,
        tables=tables,
    )


def write_layout(path: Path, data: LayoutData) -> None:
    doc = {
        "meta": {"version": data.version, "source": data.source},
        "tables": {name: {"x": float(p.x), "y": float(p.y)} for name, p in data.tables.items()},
    }
    try:
        with open(path, "wb") as f:
            tomli_w.dump(doc, f)
    except OSError as err:
        raise LayoutFileError(f"Failed to write {path}: {err}") from err
    logger.debug("Wrote %d table positions to %s", len(data.tables), path)


def apply_layout(diagram: Diagram, data: LayoutData) -> None:
    """Restore saved positions onto tables whose full name matches."""
    for table in diagram.tables:
        saved = data.tables.get(table.id.full_name)
        if saved is not None:
            table.position = Point(x=saved.x, y=saved.y)


def capture_layout(diagram: Diagram, source: str) -> LayoutData:
    """Snapshot the positions of every placed table."""
    tables: dict[str, Point] = {}
    for table in diagram.tables:
        if table.position is not None:
            tables[table.id.full_name] = Point(x=table.position.x, y=table.position.y)
    return LayoutData(source=source, tables=tables)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
