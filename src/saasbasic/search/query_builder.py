# src/saasbasic/search/query_builder.py
"""
Per-entity SELECT construction.

Table, column and clause fragments come from registered entity configs
(operator-controlled). Query terms and filter values are always sent as
bound parameters.
"""
from __future__ import annotations

import re
from typing import Any, Iterable, Mapping, Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import REGCONFIG
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.sql.selectable import Select

from saasbasic.search.errors import InvalidFilterError
from saasbasic.search.models import (
    EntityConfig,
    FieldConfig,
    FuzzySearchConfig,
    JoinType,
    SearchOptions,
    SearchType,
)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")
_FILTER_SCALARS = (str, int, float, bool, type(None))

FULLTEXT_LANGUAGE = "english"
LIKE_ESCAPE = "\\"


def tokenize(query: str, min_length: int) -> list[str]:
    """Whitespace split; drop terms shorter than ``min_length``."""
    return [t for t in (query or "").split() if len(t) >= min_length]


def escape_like(term: str) -> str:
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def validate_filters(filters: Mapping[str, Any]) -> None:
    for field, value in (filters or {}).items():
        if not isinstance(field, str) or not _IDENTIFIER.match(field):
            raise InvalidFilterError(f"Invalid filter field: {field!r}", field=field)
        if not isinstance(value, _FILTER_SCALARS):
            raise InvalidFilterError(
                f"Filter {field!r} only supports equality on a scalar value",
                field=field,
            )


def _column(name: str) -> ColumnElement:
    return sa.literal_column(name)


def fuzzy_pattern(term: str) -> str:
    # short terms stay plain substrings; longer ones allow gaps between characters
    if len(term) <= 3:
        return f"%{escape_like(term)}%"
    return "%" + "%".join(escape_like(ch) for ch in term) + "%"


def build_field_condition(
    field: FieldConfig,
    term: str,
    config: FuzzySearchConfig,
    dialect_name: str = "postgresql",
) -> Optional[ColumnElement]:
    if len(term) < field.min_length:
        return None

    raw = _column(field.name)
    if config.case_sensitive:
        col, needle = raw, term
    else:
        col, needle = sa.func.lower(raw), term.lower()

    kind = SearchType(field.search_type)
    if kind is SearchType.EXACT:
        return col == needle
    if kind is SearchType.PREFIX:
        return col.like(f"{escape_like(needle)}%", escape=LIKE_ESCAPE)
    if kind is SearchType.FULLTEXT and dialect_name == "postgresql":
        return sa.func.to_tsvector(sa.cast(FULLTEXT_LANGUAGE, REGCONFIG), raw).op("@@")(
            sa.func.plainto_tsquery(sa.cast(FULLTEXT_LANGUAGE, REGCONFIG), needle)
        )
    if kind is SearchType.FUZZY:
        return col.like(fuzzy_pattern(needle), escape=LIKE_ESCAPE)
    # contains, and fulltext where the backend has no native support
    return col.like(f"%{escape_like(needle)}%", escape=LIKE_ESCAPE)


def build_search_condition(
    fields: Iterable[FieldConfig],
    terms: Sequence[str],
    config: FuzzySearchConfig,
    dialect_name: str = "postgresql",
) -> Optional[ColumnElement]:
    conditions = []
    for field in fields:
        for term in terms:
            cond = build_field_condition(field, term, config, dialect_name)
            if cond is not None:
                conditions.append(cond)
    if not conditions:
        return None
    return sa.or_(*conditions)


def _table(name: str) -> sa.TableClause:
    schema, _, table = name.rpartition(".")
    return sa.table(table, schema=schema or None)


def _from_clause(entity: EntityConfig):
    current = _table(entity.table_name)
    for join in entity.join_tables:
        target = _table(join.table)
        onclause = sa.text(join.condition)
        kind = JoinType(join.type)
        if kind is JoinType.LEFT:
            current = current.join(target, onclause, isouter=True)
        elif kind is JoinType.RIGHT:
            # X RIGHT JOIN t ON c  ==  t LEFT JOIN X ON c
            current = target.join(current, onclause, isouter=True)
        else:
            current = current.join(target, onclause)
    return current


def build_entity_query(
    entity: EntityConfig,
    options: SearchOptions,
    config: FuzzySearchConfig,
    dialect_name: str = "postgresql",
    terms: Optional[Sequence[str]] = None,
) -> Optional[Select]:
    """
    One SELECT for one entity, or None when no search predicate survives
    (the entity then contributes no rows).
    """
    if terms is None:
        terms = tokenize(options.query, config.min_search_length)
    condition = build_search_condition(entity.search_fields, terms, config, dialect_name)
    if condition is None:
        return None

    # row keys come from the cursor: "customers.id" -> id, "x AS y" -> y
    projection = sa.text(", ".join(entity.select_fields) or "*")
    stmt = sa.select(projection).select_from(_from_clause(entity))

    if entity.where_clause:
        stmt = stmt.where(sa.text(entity.where_clause))

    perms = entity.permissions
    if options.tenant_id is not None and perms.tenant_field:
        stmt = stmt.where(_column(perms.tenant_field) == options.tenant_id)
    if options.user_id is not None and perms.ownership_field:
        stmt = stmt.where(_column(perms.ownership_field) == options.user_id)

    for field, value in (options.filters or {}).items():
        stmt = stmt.where(_column(field) == value)

    stmt = stmt.where(condition)

    if entity.order_by:
        stmt = stmt.order_by(sa.text(entity.order_by))
    if entity.group_by:
        stmt = stmt.group_by(sa.text(entity.group_by))
    return stmt
