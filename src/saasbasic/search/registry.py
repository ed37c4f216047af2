# src/saasbasic/search/registry.py
from __future__ import annotations

import threading
from types import MappingProxyType
from typing import Mapping, NamedTuple, Optional

from saasbasic.app_logger import get_logger
from saasbasic.search.errors import EntityValidationError
from saasbasic.search.formatters import DEFAULT_FORMATTERS, Formatter
from saasbasic.search.models import (
    EntityConfig,
    FieldConfig,
    FuzzySearchConfig,
    PermissionConfig,
    SearchType,
)

log = get_logger("search.registry")


class RegisteredEntity(NamedTuple):
    config: EntityConfig
    formatter: Optional[Formatter]


def validate_entity(name: str, config: EntityConfig) -> None:
    if not name or not name.strip():
        raise EntityValidationError("Entity type is required")
    if not (config.table_name or "").strip():
        raise EntityValidationError("Table name is required", entity_type=name)
    if not config.search_fields:
        raise EntityValidationError("At least one search field is required", entity_type=name)


class EntityRegistry:
    """
    Entity type name -> EntityConfig.

    Writers serialize on a lock and publish a fresh read-only snapshot;
    readers grab whatever snapshot is current and never block.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot: Mapping[str, RegisteredEntity] = MappingProxyType({})

    def register(
        self,
        name: str,
        config: EntityConfig,
        formatter: Optional[Formatter] = None,
    ) -> EntityConfig:
        validate_entity(name, config)
        name = name.strip()
        with self._lock:
            entries = dict(self._snapshot)
            replaced = name in entries
            entries[name] = RegisteredEntity(config, formatter)
            self._snapshot = MappingProxyType(entries)
        log.info("%s search entity %s (table=%s, fields=%d)",
                 "re-registered" if replaced else "registered",
                 name, config.table_name, len(config.search_fields))
        return config

    def unregister(self, name: str) -> bool:
        with self._lock:
            if name not in self._snapshot:
                return False
            entries = dict(self._snapshot)
            entries.pop(name)
            self._snapshot = MappingProxyType(entries)
        log.info("unregistered search entity %s", name)
        return True

    def get(self, name: str) -> Optional[EntityConfig]:
        entry = self._snapshot.get(name)
        return entry.config if entry else None

    def formatter_for(self, name: str) -> Optional[Formatter]:
        entry = self._snapshot.get(name)
        return entry.formatter if entry else None

    def snapshot(self) -> Mapping[str, RegisteredEntity]:
        return self._snapshot

    def entities(self) -> dict[str, EntityConfig]:
        return {name: entry.config for name, entry in self._snapshot.items()}

    def __contains__(self, name: object) -> bool:
        return name in self._snapshot

    def __len__(self) -> int:
        return len(self._snapshot)


class SearchConfigStore:
    """Owns the single FuzzySearchConfig; get/replace are thread-safe."""

    def __init__(self, config: Optional[FuzzySearchConfig] = None) -> None:
        self._lock = threading.Lock()
        self._config = (config or FuzzySearchConfig()).sanitized()

    def get(self) -> FuzzySearchConfig:
        return self._config

    def replace(self, config: FuzzySearchConfig) -> FuzzySearchConfig:
        clean = config.sanitized()
        with self._lock:
            self._config = clean
        log.info("search config replaced: %s", clean.model_dump())
        return clean


def _fields(*specs: tuple) -> list[FieldConfig]:
    return [FieldConfig(name=n, weight=w, search_type=t) for n, w, t in specs]


def register_default_entities(registry: EntityRegistry) -> None:
    """Seed the common SaaS entities with their hand-tuned weights."""
    tenant_scoped = PermissionConfig(require_auth=True, tenant_field="organization_id")

    registry.register("users", EntityConfig(
        table_name="users",
        display_name="Users",
        search_fields=_fields(
            ("first_name", 1.0, SearchType.CONTAINS),
            ("last_name", 1.0, SearchType.CONTAINS),
            ("email", 0.8, SearchType.CONTAINS),
            ("username", 0.9, SearchType.PREFIX),
        ),
        select_fields=["id", "first_name", "last_name", "email", "username", "created_at"],
        where_clause="active = true",
        order_by="first_name, last_name",
        permissions=tenant_scoped,
    ), DEFAULT_FORMATTERS["users"])

    registry.register("customers", EntityConfig(
        table_name="customers",
        display_name="Customers",
        search_fields=_fields(
            ("name", 1.0, SearchType.CONTAINS),
            ("email", 0.8, SearchType.CONTAINS),
            ("phone", 0.6, SearchType.CONTAINS),
            ("company", 0.7, SearchType.CONTAINS),
        ),
        select_fields=["id", "name", "email", "phone", "company", "created_at"],
        order_by="name",
        permissions=tenant_scoped,
    ), DEFAULT_FORMATTERS["customers"])

    registry.register("contacts", EntityConfig(
        table_name="contacts",
        display_name="Contacts",
        search_fields=_fields(
            ("name", 1.0, SearchType.CONTAINS),
            ("email", 0.8, SearchType.CONTAINS),
            ("phone", 0.6, SearchType.CONTAINS),
            ("message", 0.4, SearchType.FULLTEXT),
        ),
        select_fields=["id", "name", "email", "phone", "subject", "message", "created_at"],
        order_by="created_at DESC",
        permissions=tenant_scoped,
    ), DEFAULT_FORMATTERS["contacts"])

    # plans are publicly searchable
    registry.register("plans", EntityConfig(
        table_name="plans",
        display_name="Plans",
        search_fields=_fields(
            ("name", 1.0, SearchType.CONTAINS),
            ("description", 0.6, SearchType.FULLTEXT),
            ("features", 0.4, SearchType.CONTAINS),
        ),
        select_fields=["id", "name", "description", "features", "price", "currency", "invoice_period"],
        where_clause="active = true",
        order_by="price ASC",
        permissions=PermissionConfig(require_auth=False),
    ), DEFAULT_FORMATTERS["plans"])

    registry.register("emails", EntityConfig(
        table_name="emails",
        display_name="Emails",
        search_fields=_fields(
            ("subject", 1.0, SearchType.CONTAINS),
            ("to_email", 0.8, SearchType.CONTAINS),
            ("from_email", 0.6, SearchType.CONTAINS),
            ("body", 0.4, SearchType.FULLTEXT),
        ),
        select_fields=["id", "subject", "to_email", "from_email", "body", "status", "sent_at"],
        order_by="sent_at DESC",
        permissions=tenant_scoped,
    ), DEFAULT_FORMATTERS["emails"])
