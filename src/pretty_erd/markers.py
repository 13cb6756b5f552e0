from __future__ import annotations

from .types import MarkerKind, Relationship, Table

# ============================================================================
# Cardinality markers (crow's foot / IE notation)
#
# The relation type fixes one/many at each end; the nullability of the
# foreign key column decides mandatory vs optional:
#
#   ManyToOne   FK on `from`   many-* / one-*
#   OneToMany   FK on `to`     one-*  / many-*
#   OneToOne    FK on `from`   one-*  / one-*   (same optionality)
#   ManyToMany  --             many-optional / many-optional
#
# A foreign key column that cannot be found counts as nullable.
# ============================================================================


def fk_is_nullable(column_names: list[str], table: Table) -> bool:
    name = column_names[0] if column_names else ""
    column = table.find_column(name)
    if column is None:
        return True
    return column.is_nullable


def _one(optional: bool) -> MarkerKind:
    return "one-optional" if optional else "one-mandatory"


def _many(optional: bool) -> MarkerKind:
    return "many-optional" if optional else "many-mandatory"


def resolve_markers(
    rel: Relationship,
    from_table: Table,
    to_table: Table,
) -> tuple[MarkerKind, MarkerKind]:
    """Marker kinds for the `from` and `to` ends of a relationship."""
    if rel.relation_type == "ManyToOne":
        nullable = fk_is_nullable(rel.source.column_names, from_table)
        return (_many(nullable), _one(nullable))
    if rel.relation_type == "OneToMany":
        nullable = fk_is_nullable(rel.target.column_names, to_table)
        return (_one(nullable), _many(nullable))
    if rel.relation_type == "OneToOne":
        nullable = fk_is_nullable(rel.source.column_names, from_table)
        return (_one(nullable), _one(nullable))
    return ("many-optional", "many-optional")
