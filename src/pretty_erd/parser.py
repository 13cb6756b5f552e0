from __future__ import annotations

import logging
import re

from .types import Column, Diagram, EndPoint, RelationType, Relationship, Table, TableId

# ============================================================================
# DBML parser
#
# Parses the subset of DBML needed to draw a diagram:
#
#   Table public.users as U [headercolor: #3498db] {
#     id int [pk, increment]
#     email varchar(255) [not null, unique]
#     team_id int [ref: > teams.id]
#     indexes { ... }
#     Note: 'ignored'
#   }
#   Ref: posts.user_id > users.id
#   Ref fk_name { orders.(a, b) > items.(a, b) }
#
# Relation operators:
#   >   many-to-one
#   <   one-to-many
#   -   one-to-one
#   <>  many-to-many
#
# Project, Enum, TableGroup and Note blocks are skipped.
# ============================================================================

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = "public"

RELATION_OPERATORS: dict[str, RelationType] = {
    ">": "ManyToOne",
    "<": "OneToMany",
    "-": "OneToOne",
    "<>": "ManyToMany",
}

_IDENT = r'(?:"[^"]+"|`[^`]+`|[\w$]+)'
_TABLE_REF = rf"{_IDENT}(?:\.{_IDENT})?"

_TABLE_START = re.compile(
    rf"^table\s+({_TABLE_REF})(?:\s+as\s+({_IDENT}))?\s*(?:\[[^\]]*\])?\s*\{{$",
    re.IGNORECASE,
)
_SKIPPED_BLOCK = re.compile(r"^(project|enum|tablegroup|note|indexes)\b[^{]*\{", re.IGNORECASE)
_REF_LINE = re.compile(r"^ref(?:\s+[\w\"]+)?\s*:\s*(.+)$", re.IGNORECASE)
_REF_BLOCK = re.compile(r"^ref(?:\s+[\w\"]+)?\s*\{(.*)$", re.IGNORECASE)
_ENDPOINT = rf"{_IDENT}(?:\.{_IDENT})*(?:\.\s*\([^)]*\))?"
_REF_BODY = re.compile(rf"^({_ENDPOINT})\s*(<>|<|>|-)\s*({_ENDPOINT})\s*(?:\[[^\]]*\])?$")
_TYPE = r'(?:"[^"]+"|[^\s\[(]+(?:\s*\([^)]*\))?(?:\[\])?)'
_COLUMN = re.compile(rf"^({_IDENT})\s+({_TYPE})\s*(?:\[(.*)\])?$")
_INLINE_REF = re.compile(r"^ref\s*:\s*(<>|<|>|-)\s*(.+)$", re.IGNORECASE)
_SETTING_SPLIT = re.compile(r"""(?:[^,'"(]|'[^']*'|"[^"]*"|\([^)]*\))+""")


class DbmlParseError(ValueError):
    """Raised on DBML the parser cannot make sense of."""

    def __init__(self, message: str, line: int) -> None:
        super().__init__(f"line {line}: {message}")
        self.line = line


def parse_dbml(text: str) -> Diagram:
    """Parse DBML source text into a Diagram.

    Standalone refs come first (in source order), then inline column refs
    (in table and column order).
    """
    tables: list[Table] = []
    aliases: dict[str, TableId] = {}
    refs: list[tuple[int, EndPoint, str, str]] = []
    inline_refs: list[tuple[int, EndPoint, str, str]] = []

    current: Table | None = None
    skip_depth = 0
    in_ref_block = False

    for lineno, line in _logical_lines(text):
        # --- Inside a skipped block (Project, Enum, indexes, ...) ---
        if skip_depth > 0:
            skip_depth += line.count("{") - line.count("}")
            continue

        # --- Inside `Ref { ... }` ---
        if in_ref_block:
            if line == "}":
                in_ref_block = False
                continue
            refs.append(_parse_ref_body(line, lineno))
            continue

        # --- Inside a table body ---
        if current is not None:
            if line == "}":
                current = None
                continue
            if _SKIPPED_BLOCK.match(line):
                skip_depth = _block_depth(line)
                continue
            if re.match(r"^note\s*:", line, re.IGNORECASE):
                continue
            column, inline = _parse_column(line, lineno, current.id)
            current.columns.append(column)
            inline_refs.extend(inline)
            continue

        # --- Top level ---
        table_match = _TABLE_START.match(line)
        if table_match:
            table_id = _parse_table_id(table_match.group(1))
            current = Table(id=table_id)
            tables.append(current)
            if table_match.group(2):
                aliases[_unquote(table_match.group(2))] = table_id
            continue

        ref_match = _REF_LINE.match(line)
        if ref_match:
            refs.append(_parse_ref_body(ref_match.group(1).strip(), lineno))
            continue

        ref_block = _REF_BLOCK.match(line)
        if ref_block:
            body = ref_block.group(1).strip()
            if body.endswith("}"):
                refs.append(_parse_ref_body(body[:-1].strip(), lineno))
            elif body:
                refs.append(_parse_ref_body(body, lineno))
                in_ref_block = True
            else:
                in_ref_block = True
            continue

        if _SKIPPED_BLOCK.match(line):
            skip_depth = _block_depth(line)
            continue

        if re.match(r"^(project|enum|tablegroup|note)\b", line, re.IGNORECASE):
            # Single-line declaration, e.g. `Note: '...'`
            continue

        raise DbmlParseError(f"Unexpected statement: {line!r}", lineno)

    if current is not None:
        raise DbmlParseError(f"Unterminated table block for {current.id}", _last_line(text))
    if skip_depth > 0 or in_ref_block:
        raise DbmlParseError("Unterminated block", _last_line(text))

    relationships: list[Relationship] = []
    for ref_line, source, op, rhs in refs + inline_refs:
        target = _parse_endpoint(rhs, ref_line)
        relationships.append(
            Relationship(
                relation_type=RELATION_OPERATORS[op],
                source=_resolve_alias(source, aliases),
                target=_resolve_alias(target, aliases),
            )
        )

    logger.debug("Parsed %d tables and %d relationships", len(tables), len(relationships))
    return Diagram(tables=tables, relationships=relationships)


def _last_line(text: str) -> int:
    return text.count("\n") + 1


def _block_depth(line: str) -> int:
    # Zero for a block opened and closed on the same line
    return line.count("{") - line.count("}")


# ============================================================================
# Lexical helpers
# ============================================================================


def _logical_lines(text: str) -> list[tuple[int, str]]:
    """Strip comments and blank lines; returns (1-based line number, text)."""
    text = re.sub(r"/\*.*?\*/", lambda m: "\n" * m.group(0).count("\n"), text, flags=re.DOTALL)
    out: list[tuple[int, str]] = []
    for i, raw in enumerate(text.split("\n"), start=1):
        line = _strip_line_comment(raw).strip()
        if not line:
            continue
        # `}` sharing a line with content closes after it
        if line.endswith("}") and line != "}" and "{" not in line:
            out.append((i, line[:-1].strip()))
            out.append((i, "}"))
            continue
        out.append((i, line))
    return out


def _strip_line_comment(line: str) -> str:
    quote: str | None = None
    for i, ch in enumerate(line):
        if quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"', "`"):
            quote = ch
        elif ch == "/" and line[i : i + 2] == "//":
            return line[:i]
    return line


def _unquote(name: str) -> str:
    if len(name) >= 2 and name[0] == name[-1] and name[0] in ('"', "`"):
        return name[1:-1]
    return name


def _split_ident_path(text: str) -> list[str]:
    return [_unquote(p) for p in re.findall(_IDENT, text)]


def _parse_table_id(text: str) -> TableId:
    parts = _split_ident_path(text)
    if len(parts) == 1:
        return TableId(schema=DEFAULT_SCHEMA, name=parts[0])
    return TableId(schema=parts[0], name=parts[1])


# ============================================================================
# Columns and settings
# ============================================================================


def _parse_column(
    line: str,
    lineno: int,
    table_id: TableId,
) -> tuple[Column, list[tuple[int, EndPoint, str, str]]]:
    match = _COLUMN.match(line)
    if not match:
        raise DbmlParseError(f"Invalid column definition: {line!r}", lineno)

    name = _unquote(match.group(1))
    column = Column(name=name, type_raw=_unquote(match.group(2).strip()))
    inline: list[tuple[int, EndPoint, str, str]] = []

    for setting in _split_settings(match.group(3) or ""):
        lower = setting.lower()
        if lower in ("pk", "primary key"):
            column.is_pk = True
        elif lower == "not null":
            column.is_nullable = False
        elif lower == "null":
            column.is_nullable = True
        elif lower.startswith("ref"):
            ref_match = _INLINE_REF.match(setting)
            if not ref_match:
                raise DbmlParseError(f"Invalid inline ref: {setting!r}", lineno)
            source = EndPoint(table_id=table_id, column_names=[name])
            inline.append((lineno, source, ref_match.group(1), ref_match.group(2).strip()))

    return column, inline


def _split_settings(text: str) -> list[str]:
    return [s.strip() for s in _SETTING_SPLIT.findall(text) if s.strip()]


# ============================================================================
# Refs
# ============================================================================


def _parse_ref_body(body: str, lineno: int) -> tuple[int, EndPoint, str, str]:
    match = _REF_BODY.match(body)
    if not match:
        raise DbmlParseError(f"Invalid ref: {body!r}", lineno)
    return (lineno, _parse_endpoint(match.group(1), lineno), match.group(2), match.group(3))


def _parse_endpoint(text: str, lineno: int) -> EndPoint:
    """`[schema.]table.column` or `[schema.]table.(col1, col2)`."""
    text = text.strip()
    composite = re.match(r"^(.+?)\.\s*\(([^)]*)\)$", text)
    if composite:
        table_parts = _split_ident_path(composite.group(1))
        columns = [_unquote(c.strip()) for c in composite.group(2).split(",") if c.strip()]
    else:
        parts = _split_ident_path(text)
        if len(parts) < 2:
            raise DbmlParseError(f"Ref endpoint needs table.column: {text!r}", lineno)
        table_parts, columns = parts[:-1], [parts[-1]]

    if len(table_parts) == 1:
        table_id = TableId(schema=DEFAULT_SCHEMA, name=table_parts[0])
    elif len(table_parts) == 2:
        table_id = TableId(schema=table_parts[0], name=table_parts[1])
    else:
        raise DbmlParseError(f"Invalid ref endpoint: {text!r}", lineno)
    return EndPoint(table_id=table_id, column_names=columns)


def _resolve_alias(endpoint: EndPoint, aliases: dict[str, TableId]) -> EndPoint:
    tid = endpoint.table_id
    if tid.schema == DEFAULT_SCHEMA and tid.name in aliases:
        return EndPoint(table_id=aliases[tid.name], column_names=endpoint.column_names)
    return endpoint
