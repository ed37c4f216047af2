# tests/test_registry.py
from __future__ import annotations

import threading

import pytest

from saasbasic.search.errors import EntityValidationError
from saasbasic.search.models import EntityConfig, FieldConfig, FuzzySearchConfig, PermissionConfig
from saasbasic.search.registry import EntityRegistry, SearchConfigStore, register_default_entities


def _widgets(display_name: str = "Widgets") -> EntityConfig:
    return EntityConfig(
        table_name="widgets",
        display_name=display_name,
        search_fields=[FieldConfig(name="title")],
    )


def test_register_twice_keeps_latest():
    reg = EntityRegistry()
    reg.register("widgets", _widgets("Old"))
    reg.register("widgets", _widgets("New"))
    assert list(reg.entities()) == ["widgets"]
    assert reg.get("widgets").display_name == "New"
    assert len(reg) == 1


@pytest.mark.parametrize(
    "name,config",
    [
        ("", EntityConfig(table_name="widgets", search_fields=[FieldConfig(name="title")])),
        ("widgets", EntityConfig(table_name="", search_fields=[FieldConfig(name="title")])),
        ("widgets", EntityConfig(table_name="widgets", search_fields=[])),
    ],
)
def test_invalid_registration_is_rejected(name, config):
    reg = EntityRegistry()
    with pytest.raises(EntityValidationError):
        reg.register(name, config)
    assert len(reg) == 0


def test_unregister():
    reg = EntityRegistry()
    reg.register("widgets", _widgets())
    assert reg.unregister("widgets") is True
    assert reg.unregister("widgets") is False
    assert "widgets" not in reg


def test_snapshot_is_not_affected_by_later_writes():
    reg = EntityRegistry()
    reg.register("widgets", _widgets())
    before = reg.snapshot()
    reg.register("gadgets", _widgets())
    assert list(before) == ["widgets"]
    assert set(reg.snapshot()) == {"widgets", "gadgets"}
    with pytest.raises(TypeError):
        before["x"] = None  # read-only view


def test_formatter_is_stored_with_entity():
    reg = EntityRegistry()

    def fmt(entity_type, row):
        return "t", "d"

    reg.register("widgets", _widgets(), fmt)
    assert reg.formatter_for("widgets") is fmt
    assert reg.formatter_for("missing") is None


def test_concurrent_registration_never_duplicates():
    reg = EntityRegistry()
    names = [f"type_{i % 10}" for i in range(200)]

    def worker(name):
        reg.register(name, _widgets(name))

    threads = [threading.Thread(target=worker, args=(n,)) for n in names]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(reg.entities()) == sorted({*names})


def test_default_entities():
    reg = EntityRegistry()
    register_default_entities(reg)
    assert set(reg.entities()) == {"users", "customers", "contacts", "plans", "emails"}
    assert reg.get("plans").permissions.require_auth is False
    assert reg.get("customers").permissions.tenant_field == "organization_id"
    weights = {f.name: f.weight for f in reg.get("users").search_fields}
    assert weights == {"first_name": 1.0, "last_name": 1.0, "email": 0.8, "username": 0.9}


def test_organization_field_alias():
    perms = PermissionConfig.model_validate({"organization_field": "org_id"})
    assert perms.tenant_field == "org_id"


def test_config_store_clamps_out_of_range_values():
    store = SearchConfigStore()
    stored = store.replace(FuzzySearchConfig(min_search_length=0, max_results=-5, score_threshold=-1))
    assert stored.min_search_length == 1
    assert stored.max_results == 50
    assert stored.score_threshold == 0.0
    assert store.get() == stored


def test_config_store_full_replacement():
    store = SearchConfigStore(FuzzySearchConfig(exact_match_boost=3.0))
    store.replace(FuzzySearchConfig(min_search_length=4))
    assert store.get().min_search_length == 4
    # not a patch: untouched fields go back to defaults
    assert store.get().exact_match_boost == 2.0
