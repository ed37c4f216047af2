# tests/test_query_builder.py
from __future__ import annotations

import pytest
from sqlalchemy.dialects import postgresql, sqlite

from saasbasic.search.errors import InvalidFilterError
from saasbasic.search.models import (
    EntityConfig,
    FieldConfig,
    FuzzySearchConfig,
    JoinConfig,
    PermissionConfig,
    SearchOptions,
    SearchType,
)
from saasbasic.search.query_builder import (
    build_entity_query,
    build_field_condition,
    escape_like,
    fuzzy_pattern,
    tokenize,
    validate_filters,
)

CFG = FuzzySearchConfig()


def _compile(stmt, dialect=None):
    compiled = stmt.compile(dialect=dialect or postgresql.dialect())
    return str(compiled), dict(compiled.params)


def _entity(**kw) -> EntityConfig:
    base = dict(
        table_name="customers",
        search_fields=[FieldConfig(name="name"), FieldConfig(name="email", weight=0.8)],
        select_fields=["id", "name", "email"],
        permissions=PermissionConfig(tenant_field="organization_id"),
    )
    base.update(kw)
    return EntityConfig(**base)


def test_tokenize_drops_short_terms():
    assert tokenize("  acme  a corp ", 2) == ["acme", "corp"]


def test_escape_like_metacharacters():
    assert escape_like("50%_off\\") == "50\\%\\_off\\\\"


def test_fuzzy_pattern_widens_long_terms_only():
    assert fuzzy_pattern("abc") == "%abc%"
    assert fuzzy_pattern("abcd") == "%a%b%c%d%"


@pytest.mark.parametrize(
    "kind,expected",
    [
        (SearchType.EXACT, "acme"),
        (SearchType.PREFIX, "acme%"),
        (SearchType.CONTAINS, "%acme%"),
        (SearchType.FUZZY, "%a%c%m%e%"),
    ],
)
def test_field_condition_binds_term(kind, expected):
    cond = build_field_condition(FieldConfig(name="name", search_type=kind), "ACME", CFG)
    sql, params = _compile(cond)
    assert "lower(name)" in sql
    assert expected in params.values()


def test_field_condition_respects_min_length():
    field = FieldConfig(name="name", min_length=5)
    assert build_field_condition(field, "acme", CFG) is None


def test_fulltext_uses_tsvector_on_postgres_only():
    field = FieldConfig(name="message", search_type="fulltext")
    pg_sql, _ = _compile(build_field_condition(field, "pricing", CFG, "postgresql"))
    assert "to_tsvector" in pg_sql and "plainto_tsquery" in pg_sql

    cond = build_field_condition(field, "pricing", CFG, "sqlite")
    lite_sql, params = _compile(cond, sqlite.dialect())
    assert "LIKE" in lite_sql
    assert "%pricing%" in params.values()


def test_case_sensitive_skips_lower():
    cfg = CFG.model_copy(update={"case_sensitive": True})
    sql, params = _compile(build_field_condition(FieldConfig(name="name"), "Acme", cfg))
    assert "lower(" not in sql
    assert "%Acme%" in params.values()


def test_entity_query_never_inlines_terms():
    hostile = "x'; DROP TABLE users; --"
    options = SearchOptions(query=hostile)
    stmt = build_entity_query(_entity(), options, CFG)
    sql, params = _compile(stmt)
    assert "DROP" not in sql.upper()
    assert "users" not in sql
    assert "%drop%" in params.values()
    assert "%x';%" in params.values()


def test_entity_query_shape():
    entity = _entity(where_clause="active = true", order_by="name")
    options = SearchOptions(query="acme", tenant_id=7, filters={"status": "active"})
    sql, params = _compile(build_entity_query(entity, options, CFG))

    assert sql.startswith("SELECT id, name, email")
    assert "FROM customers" in sql
    assert "active = true" in sql
    assert "organization_id = " in sql
    assert "status = " in sql
    assert "ORDER BY name" in sql
    assert 7 in params.values()
    assert "active" in params.values()
    # one predicate per (field, term)
    assert sql.count(" LIKE ") == 2


def test_entity_query_without_tenant_identity_has_no_tenant_filter():
    sql, _ = _compile(build_entity_query(_entity(), SearchOptions(query="acme"), CFG))
    assert "organization_id" not in sql


def test_ownership_filter_uses_user_id():
    entity = _entity(permissions=PermissionConfig(ownership_field="owner_id"))
    sql, params = _compile(build_entity_query(entity, SearchOptions(query="acme", user_id=3), CFG))
    assert "owner_id = " in sql
    assert 3 in params.values()


def test_entity_query_none_when_no_predicate():
    entity = _entity(search_fields=[FieldConfig(name="name", min_length=10)])
    assert build_entity_query(entity, SearchOptions(query="acme"), CFG) is None
    assert build_entity_query(_entity(), SearchOptions(query="a"), CFG) is None


def test_select_star_without_select_fields():
    sql, _ = _compile(build_entity_query(_entity(select_fields=[]), SearchOptions(query="acme"), CFG))
    assert sql.startswith("SELECT *")


def test_joins_in_order_and_right_join_rewritten():
    entity = _entity(
        table_name="customers",
        select_fields=["customers.id", "customers.name", "plans.name AS plan_name"],
        join_tables=[
            JoinConfig(table="plans", condition="plans.id = customers.plan_id", type="left"),
            JoinConfig(table="organizations", condition="organizations.id = customers.organization_id",
                       type="RIGHT"),
        ],
    )
    sql, _ = _compile(build_entity_query(entity, SearchOptions(query="acme"), CFG))
    assert "organizations LEFT OUTER JOIN (customers LEFT OUTER JOIN plans" in sql
    assert "RIGHT" not in sql


def test_unknown_join_type_is_inner():
    assert JoinConfig(table="t", condition="1 = 1", type="CROSS").type.value == "INNER"


def test_schema_qualified_table():
    sql, _ = _compile(build_entity_query(_entity(table_name="crm.customers"), SearchOptions(query="acme"), CFG))
    assert "FROM crm.customers" in sql


@pytest.mark.parametrize(
    "filters",
    [
        {"name; DROP TABLE users": 1},
        {"1abc": 1},
        {"a.b.c": 1},
        {"status": ["a", "b"]},
        {"status": {"$ne": 1}},
    ],
)
def test_invalid_filters_rejected(filters):
    with pytest.raises(InvalidFilterError):
        validate_filters(filters)


def test_valid_filters_accepted():
    validate_filters({"status": "active", "customers.plan_id": 3, "active": True, "deleted_at": None})
