# src/saasbasic/search/__init__.py
from saasbasic.search.errors import (
    EntityValidationError,
    InvalidFilterError,
    SearchError,
    SearchExecutionError,
)
from saasbasic.search.models import (
    EntityConfig,
    FieldConfig,
    FuzzySearchConfig,
    JoinConfig,
    JoinType,
    PermissionConfig,
    SearchOptions,
    SearchResponse,
    SearchResult,
    SearchType,
)
from saasbasic.search.registry import EntityRegistry, SearchConfigStore, register_default_entities
from saasbasic.search.service import FuzzySearchService

__all__ = [
    "EntityConfig",
    "EntityRegistry",
    "EntityValidationError",
    "FieldConfig",
    "FuzzySearchConfig",
    "FuzzySearchService",
    "InvalidFilterError",
    "JoinConfig",
    "JoinType",
    "PermissionConfig",
    "SearchConfigStore",
    "SearchError",
    "SearchExecutionError",
    "SearchOptions",
    "SearchResponse",
    "SearchResult",
    "SearchType",
    "register_default_entities",
]
