# src/saasbasic/api/deps.py
from __future__ import annotations

from fastapi import HTTPException, Request, status

from saasbasic.search.service import FuzzySearchService


def get_search_service(request: Request) -> FuzzySearchService:
    """The app-scoped search service installed by the lifespan."""
    service = getattr(request.app.state, "search_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Search service is not ready",
        )
    return service
