# src/saasbasic/search/models.py
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional, List, Dict

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class SearchType(str, Enum):
    EXACT = "exact"
    PREFIX = "prefix"
    CONTAINS = "contains"
    FULLTEXT = "fulltext"
    FUZZY = "fuzzy"


class JoinType(str, Enum):
    INNER = "INNER"
    LEFT = "LEFT"
    RIGHT = "RIGHT"


class _SearchModel(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        use_enum_values=False,
    )


class FieldConfig(_SearchModel):
    """One searchable column within an entity."""

    name: str = Field(..., min_length=1)
    weight: float = Field(1.0, ge=0)
    search_type: SearchType = SearchType.CONTAINS
    boost: float = 0.0
    min_length: int = Field(0, ge=0)
    # carried for config compatibility; only `required` affects scoring
    analyzer: Optional[str] = None
    required: bool = False
    transform: Optional[str] = None

    @field_validator("search_type", mode="before")
    @classmethod
    def _lower_search_type(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v


class JoinConfig(_SearchModel):
    table: str = Field(..., min_length=1)
    condition: str = Field(..., min_length=1)
    type: JoinType = JoinType.INNER

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, v: Any) -> Any:
        # unknown join kinds behave as INNER
        if v is None:
            return JoinType.INNER
        if isinstance(v, str):
            v = v.strip().upper()
            return v if v in JoinType.__members__ else JoinType.INNER
        return v


class PermissionConfig(_SearchModel):
    require_auth: bool = False
    allowed_roles: List[str] = Field(default_factory=list)
    ownership_field: Optional[str] = None
    # older configs call it organization_field
    tenant_field: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("tenant_field", "organization_field"),
    )


class EntityConfig(_SearchModel):
    """How one entity type is queried and scored."""

    table_name: str
    display_name: str = ""
    search_fields: List[FieldConfig] = Field(default_factory=list)
    select_fields: List[str] = Field(default_factory=list)
    join_tables: List[JoinConfig] = Field(default_factory=list)
    where_clause: Optional[str] = None
    order_by: Optional[str] = None
    group_by: Optional[str] = None
    permissions: PermissionConfig = Field(default_factory=PermissionConfig)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def label(self) -> str:
        return self.display_name or self.table_name.replace("_", " ").title()


class FuzzySearchConfig(_SearchModel):
    """Process-wide search tuning; replaced wholesale, never patched."""

    min_search_length: int = 2
    max_results: int = 50
    score_threshold: float = 0.1
    enable_highlight: bool = True
    case_sensitive: bool = False
    exact_match_boost: float = 2.0
    prefix_match_boost: float = 1.5
    enable_stemming: bool = False  # placeholder
    enable_synonyms: bool = False  # placeholder

    def sanitized(self) -> "FuzzySearchConfig":
        """Clamp out-of-range values to safe defaults."""
        updates: dict[str, Any] = {}
        if self.min_search_length < 1:
            updates["min_search_length"] = 1
        if self.max_results <= 0:
            updates["max_results"] = 50
        if self.score_threshold < 0:
            updates["score_threshold"] = 0.0
        return self.model_copy(update=updates) if updates else self


class SearchOptions(_SearchModel):
    query: str = ""
    entity_types: List[str] = Field(default_factory=list)
    filters: Dict[str, Any] = Field(default_factory=dict)
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None
    offset: int = 0
    limit: int = 0
    user_id: Optional[int] = None
    tenant_id: Optional[int] = None
    roles: List[str] = Field(default_factory=list)
    # accepted for client compatibility; total is always counted since ranking needs every row
    include_count: bool = True
    include_aggregations: bool = False
    highlight_fields: List[str] = Field(default_factory=list)

    @property
    def has_identity(self) -> bool:
        return self.user_id is not None or self.tenant_id is not None


class SearchResult(_SearchModel):
    id: Any = None
    type: str
    title: str = ""
    description: str = ""
    url: str = ""
    score: float = Field(0.0, ge=0)
    highlights: List[str] = Field(default_factory=list)
    data: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SearchResponse(_SearchModel):
    query: str
    total: int = 0
    results: List[SearchResult] = Field(default_factory=list)
    categories: Dict[str, int] = Field(default_factory=dict)
    suggestions: List[str] = Field(default_factory=list)
    aggregations: Optional[Dict[str, Any]] = None
    execution_time: float = 0.0  # milliseconds
