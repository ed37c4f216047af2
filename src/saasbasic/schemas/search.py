# src/saasbasic/schemas/search.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from saasbasic.schemas.base import APIModel
from saasbasic.search.models import (
    EntityConfig,
    FieldConfig,
    FuzzySearchConfig,
    JoinConfig,
    PermissionConfig,
)


class SearchRequest(APIModel):
    """Body of POST /search. Caller identity never comes from here."""

    query: str = Field(..., min_length=1, description="Free-text query")
    entity_types: List[str] = Field(default_factory=list)
    filters: Dict[str, Any] = Field(default_factory=dict)
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None
    offset: int = 0
    limit: int = 0
    include_count: bool = Field(True, description="Accepted and ignored; total is always returned")
    include_aggregations: bool = False
    highlight_fields: List[str] = Field(default_factory=list)


class EntityTypeInfo(APIModel):
    name: str
    display_name: str
    search_fields: List[str]
    description: str = ""
    require_auth: bool = False

    @classmethod
    def from_config(cls, name: str, config: EntityConfig) -> "EntityTypeInfo":
        return cls(
            name=name,
            display_name=config.label,
            search_fields=[f.name for f in config.search_fields],
            description=f"Search within {config.label} records",
            require_auth=config.permissions.require_auth,
        )


class EntityTypesResponse(APIModel):
    entity_types: Dict[str, EntityTypeInfo]


class SuggestionsResponse(APIModel):
    query: str
    suggestions: List[str]


class SearchConfigResponse(APIModel):
    config: FuzzySearchConfig
    entity_types: Dict[str, EntityTypeInfo]


class ConfigUpdateResponse(APIModel):
    message: str = "Configuration updated successfully"
    config: FuzzySearchConfig


class RegisterEntityRequest(APIModel):
    """Admin payload for a new or replaced entity type; same shape as EntityConfig."""

    table_name: str = ""
    display_name: str = ""
    search_fields: List[FieldConfig] = Field(default_factory=list)
    select_fields: List[str] = Field(default_factory=list)
    join_tables: List[JoinConfig] = Field(default_factory=list)
    where_clause: Optional[str] = None
    order_by: Optional[str] = None
    group_by: Optional[str] = None
    permissions: PermissionConfig = Field(default_factory=PermissionConfig)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def to_entity(self) -> EntityConfig:
        return EntityConfig.model_validate(self.model_dump())


class RegisterEntityResponse(APIModel):
    message: str
    entity_type: str
    config: EntityConfig


class UnregisterEntityResponse(APIModel):
    message: str
    entity_type: str


class SearchStatsResponse(APIModel):
    total_entity_types: int
    entity_types: List[str]
    search_config: FuzzySearchConfig
    status: str


class SearchHealthResponse(APIModel):
    status: str
    service: str
    entity_types: int
    last_check: datetime
