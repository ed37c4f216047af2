# src/saasbasic/api/routers/search.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from saasbasic.api.deps import get_search_service
from saasbasic.app_logger import get_logger
from saasbasic.auth.deps import caller_identity, get_current_user, require_admin, require_auth
from saasbasic.schemas.search import (
    ConfigUpdateResponse,
    EntityTypeInfo,
    EntityTypesResponse,
    RegisterEntityRequest,
    RegisterEntityResponse,
    SearchConfigResponse,
    SearchHealthResponse,
    SearchRequest,
    SearchStatsResponse,
    SuggestionsResponse,
    UnregisterEntityResponse,
)
from saasbasic.search.models import FuzzySearchConfig, SearchOptions, SearchResponse
from saasbasic.search.service import FuzzySearchService

router = APIRouter(prefix="/search", tags=["search"])
admin_router = APIRouter(prefix="/admin/search", tags=["search-admin"])
log = get_logger("routers.search")

QUICK_SEARCH_DEFAULT_LIMIT = 10


def _options(body: SearchRequest, claims: Optional[dict], **overrides) -> SearchOptions:
    data = body.model_dump()
    data.update(caller_identity(claims))
    data.update(overrides)
    return SearchOptions.model_validate(data)


def _type_infos(service: FuzzySearchService) -> dict[str, EntityTypeInfo]:
    return {
        name: EntityTypeInfo.from_config(name, config)
        for name, config in service.get_entity_types().items()
    }


# ---------------------------------------------------------------------------
# Public / optional-auth endpoints
# ---------------------------------------------------------------------------
@router.get("/quick", response_model=SearchResponse)
async def quick_search(
    q: str = Query("", description="Free-text query"),
    types: str = Query("", description="Comma separated entity types"),
    limit: int = Query(QUICK_SEARCH_DEFAULT_LIMIT),
    offset: int = Query(0),
    claims: Optional[dict] = Depends(get_current_user),
    service: FuzzySearchService = Depends(get_search_service),
) -> SearchResponse:
    if not q:
        raise HTTPException(status_code=400, detail="Query parameter 'q' is required")

    options = SearchOptions(
        query=q,
        entity_types=[t.strip() for t in types.split(",") if t.strip()],
        limit=limit if limit > 0 else QUICK_SEARCH_DEFAULT_LIMIT,
        offset=max(offset, 0),
        **caller_identity(claims),
    )
    return await service.search(options)


@router.get("/types", response_model=EntityTypesResponse)
async def list_entity_types(
    service: FuzzySearchService = Depends(get_search_service),
) -> EntityTypesResponse:
    return EntityTypesResponse(entity_types=_type_infos(service))


@router.get("/suggestions", response_model=SuggestionsResponse)
async def search_suggestions(
    q: str = Query(""),
    service: FuzzySearchService = Depends(get_search_service),
) -> SuggestionsResponse:
    if not q:
        raise HTTPException(status_code=400, detail="Query parameter 'q' is required")
    return SuggestionsResponse(query=q, suggestions=service.suggestion_hints())


@router.get("/health", response_model=SearchHealthResponse)
async def search_health(
    service: FuzzySearchService = Depends(get_search_service),
) -> SearchHealthResponse:
    return SearchHealthResponse.model_validate(service.health())


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------
@router.post("", response_model=SearchResponse)
@router.post("/advanced", response_model=SearchResponse)
async def search(
    body: SearchRequest,
    claims: dict = Depends(require_auth),
    service: FuzzySearchService = Depends(get_search_service),
) -> SearchResponse:
    """
    Full search across the requested (or all) entity types.

    user_id / tenant_id / roles are taken from the verified token only.
    """
    return await service.search(_options(body, claims))


@router.post("/entities/{entity_type}", response_model=SearchResponse)
async def search_in_entity(
    entity_type: str,
    body: SearchRequest,
    claims: dict = Depends(require_auth),
    service: FuzzySearchService = Depends(get_search_service),
) -> SearchResponse:
    entity_types = service.get_entity_types()
    if entity_type not in entity_types:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "invalid_entity_type",
                "reason": f"Unknown entity type: {entity_type}",
                "valid_types": sorted(entity_types),
            },
        )
    return await service.search(_options(body, claims, entity_types=[entity_type]))


@router.get("/config", response_model=SearchConfigResponse)
async def get_search_config(
    _claims: dict = Depends(require_auth),
    service: FuzzySearchService = Depends(get_search_service),
) -> SearchConfigResponse:
    return SearchConfigResponse(config=service.get_config(), entity_types=_type_infos(service))


@router.get("/stats", response_model=SearchStatsResponse)
async def search_stats(
    _claims: dict = Depends(require_auth),
    service: FuzzySearchService = Depends(get_search_service),
) -> SearchStatsResponse:
    return SearchStatsResponse.model_validate(service.stats())


# ---------------------------------------------------------------------------
# Admin endpoints
# ---------------------------------------------------------------------------
@admin_router.put("/config", response_model=ConfigUpdateResponse)
async def update_search_config(
    body: FuzzySearchConfig,
    admin: dict = Depends(require_admin),
    service: FuzzySearchService = Depends(get_search_service),
) -> ConfigUpdateResponse:
    stored = service.update_config(body)
    log.info("search config updated by user_id=%s", admin.get("user_id"))
    return ConfigUpdateResponse(config=stored)


@admin_router.post("/entities/{entity_type}", response_model=RegisterEntityResponse)
async def register_entity(
    entity_type: str,
    body: RegisterEntityRequest,
    admin: dict = Depends(require_admin),
    service: FuzzySearchService = Depends(get_search_service),
) -> RegisterEntityResponse:
    # EntityValidationError is mapped to 400 by the app's exception handler
    config = service.register_entity(entity_type, body.to_entity())
    log.info("entity type %s registered by user_id=%s", entity_type, admin.get("user_id"))
    return RegisterEntityResponse(
        message="Entity type registered successfully",
        entity_type=entity_type,
        config=config,
    )


@admin_router.delete("/entities/{entity_type}", response_model=UnregisterEntityResponse)
async def unregister_entity(
    entity_type: str,
    _admin: dict = Depends(require_admin),
    service: FuzzySearchService = Depends(get_search_service),
) -> UnregisterEntityResponse:
    if not service.unregister_entity(entity_type):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Entity type not found: {entity_type}",
        )
    return UnregisterEntityResponse(
        message="Entity type unregistered successfully",
        entity_type=entity_type,
    )


@admin_router.get("/stats", response_model=SearchStatsResponse)
async def admin_search_stats(
    _admin: dict = Depends(require_admin),
    service: FuzzySearchService = Depends(get_search_service),
) -> SearchStatsResponse:
    return SearchStatsResponse.model_validate(service.stats())
