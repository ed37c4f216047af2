from __future__ import annotations


class SearchError(Exception):
    """Base class for search engine failures surfaced to callers."""

    error = "search_error"

    def __init__(self, reason: str, **context):
        super().__init__(reason)
        self.reason = reason
        self.context = context


class EntityValidationError(SearchError):
    """An entity registration was rejected."""

    error = "invalid_entity"


class InvalidFilterError(SearchError):
    """A caller-supplied filter names something that is not a column identifier."""

    error = "invalid_filter"


class SearchExecutionError(SearchError):
    """Every attempted entity query failed."""

    error = "search_unavailable"
