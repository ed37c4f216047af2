# src/saasbasic/search/service.py
from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Mapping, NamedTuple, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from saasbasic.app_logger import get_logger
from saasbasic.search.errors import SearchExecutionError
from saasbasic.search.formatters import Formatter, build_url, generic_formatter
from saasbasic.search.models import (
    EntityConfig,
    FuzzySearchConfig,
    SearchOptions,
    SearchResponse,
    SearchResult,
)
from saasbasic.search.query_builder import build_entity_query, tokenize, validate_filters
from saasbasic.search.registry import (
    EntityRegistry,
    RegisteredEntity,
    SearchConfigStore,
    register_default_entities,
)
from saasbasic.search.scoring import (
    generate_highlights,
    paginate,
    relevance_score,
    sort_results,
)

log = get_logger("search.service")

GENERIC_SUGGESTIONS = (
    "Try using different keywords",
    "Check your spelling",
    "Use more general terms",
    "Try searching in specific categories",
)


class _EntityOutcome(NamedTuple):
    name: str
    results: list[SearchResult]
    attempted: bool
    failed: bool


def _as_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return None
    return None


class FuzzySearchService:
    """
    Multi-entity fuzzy search: registry lookup, one query per entity type,
    scoring, then a single globally sorted and paginated result list.
    """

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        *,
        config: Optional[FuzzySearchConfig] = None,
        registry: Optional[EntityRegistry] = None,
        register_defaults: bool = True,
        max_concurrency: int = 4,
        timeout: Optional[float] = None,
        url_prefix: str = "/api/v1",
    ) -> None:
        self._sessionmaker = sessionmaker
        self._config = SearchConfigStore(config)
        self.registry = registry if registry is not None else EntityRegistry()
        self._max_concurrency = max(1, int(max_concurrency))
        self._timeout = timeout
        self._url_prefix = url_prefix
        if register_defaults:
            register_default_entities(self.registry)

    # ------------------------------------------------------------------
    # Registry / config
    # ------------------------------------------------------------------
    def register_entity(
        self,
        name: str,
        config: EntityConfig,
        formatter: Optional[Formatter] = None,
    ) -> EntityConfig:
        return self.registry.register(name, config, formatter)

    def unregister_entity(self, name: str) -> bool:
        return self.registry.unregister(name)

    def get_entity_types(self) -> dict[str, EntityConfig]:
        return self.registry.entities()

    def get_config(self) -> FuzzySearchConfig:
        return self._config.get()

    def update_config(self, config: FuzzySearchConfig) -> FuzzySearchConfig:
        return self._config.replace(config)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------
    async def search(
        self,
        options: SearchOptions,
        *,
        timeout: Optional[float] = None,
    ) -> SearchResponse:
        started = time.perf_counter()
        config = self._config.get()
        query = (options.query or "").strip()

        if len(query) < config.min_search_length:
            return SearchResponse(query=options.query, execution_time=self._elapsed(started))

        validate_filters(options.filters)

        limit = options.limit
        if limit <= 0 or limit > config.max_results:
            limit = config.max_results
        offset = max(options.offset, 0)

        terms = tokenize(query, config.min_search_length)
        targets = self._resolve_targets(options)

        outcomes = await self._run_entities(
            targets, options, config, terms,
            timeout if timeout is not None else self._timeout,
        )

        attempted = [o for o in outcomes if o.attempted]
        if attempted and all(o.failed for o in attempted):
            raise SearchExecutionError(
                "All entity searches failed",
                entity_types=[o.name for o in attempted],
            )

        candidates: list[SearchResult] = []
        categories: dict[str, int] = {}
        for outcome in outcomes:
            if outcome.failed:
                continue
            candidates.extend(outcome.results)
            categories[outcome.name] = len(outcome.results)

        ranked = sort_results(candidates, options.sort_by, options.sort_order)
        total = len(ranked)
        page = paginate(ranked, offset, limit)

        response = SearchResponse(
            query=options.query,
            total=total,
            results=page,
            categories=categories,
            suggestions=self.generate_suggestions(options.query) if not page else [],
            aggregations=self._aggregations(ranked, categories) if options.include_aggregations else None,
            execution_time=self._elapsed(started),
        )
        log.info(
            "search q=%r types=%s total=%d returned=%d took=%.1fms",
            query, list(categories), total, len(page), response.execution_time,
        )
        return response

    def _resolve_targets(self, options: SearchOptions) -> list[tuple[str, RegisteredEntity]]:
        snapshot = self.registry.snapshot()
        names: Sequence[str] = options.entity_types or list(snapshot)
        roles = set(options.roles or ())

        targets: list[tuple[str, RegisteredEntity]] = []
        seen: set[str] = set()
        for name in names:
            if name in seen:
                continue
            seen.add(name)
            entry = snapshot.get(name)
            if entry is None:
                log.debug("search: unknown entity type %r skipped", name)
                continue
            perms = entry.config.permissions
            if perms.require_auth and not options.has_identity:
                log.debug("search: %s requires auth; skipped for anonymous caller", name)
                continue
            if perms.allowed_roles and not roles.intersection(perms.allowed_roles):
                log.debug("search: %s not visible to roles %s", name, sorted(roles))
                continue
            targets.append((name, entry))
        return targets

    async def _run_entities(
        self,
        targets: Sequence[tuple[str, RegisteredEntity]],
        options: SearchOptions,
        config: FuzzySearchConfig,
        terms: Sequence[str],
        timeout: Optional[float],
    ) -> list[_EntityOutcome]:
        if not targets:
            return []

        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout if timeout else None
        gate = asyncio.Semaphore(self._max_concurrency)

        async def run(name: str, entry: RegisteredEntity) -> _EntityOutcome:
            async with gate:
                remaining = None
                if deadline is not None:
                    remaining = deadline - loop.time()
                    if remaining <= 0:
                        log.warning("search deadline reached before %s; skipped", name)
                        return _EntityOutcome(name, [], True, True)
                try:
                    results = await asyncio.wait_for(
                        self._search_entity(name, entry, options, config, terms),
                        remaining,
                    )
                except asyncio.TimeoutError:
                    log.warning("search of %s exceeded the request deadline; skipped", name)
                    return _EntityOutcome(name, [], True, True)
                except Exception as e:
                    log.warning("search of %s failed; skipped: %s", name, e)
                    return _EntityOutcome(name, [], True, True)
                if results is None:
                    return _EntityOutcome(name, [], False, False)
                return _EntityOutcome(name, results, True, False)

        return list(await asyncio.gather(*(run(n, e) for n, e in targets)))

    async def _search_entity(
        self,
        name: str,
        entry: RegisteredEntity,
        options: SearchOptions,
        config: FuzzySearchConfig,
        terms: Sequence[str],
    ) -> Optional[list[SearchResult]]:
        entity = entry.config
        async with self._sessionmaker() as session:
            dialect = session.get_bind().dialect.name
            stmt = build_entity_query(entity, options, config, dialect, terms)
            if stmt is None:
                return None
            result_set = await session.execute(stmt)
            keys = list(result_set.keys())
            # joined SELECT * can repeat a name; the last column wins
            rows = [dict(zip(keys, values)) for values in result_set.all()]

        results: list[SearchResult] = []
        for row in rows:
            result = self._to_result(name, entry, row, options, config, terms)
            if result.score >= config.score_threshold:
                results.append(result)
        log.debug("search %s: %d rows, %d above threshold", name, len(rows), len(results))
        return results

    def _to_result(
        self,
        name: str,
        entry: RegisteredEntity,
        row: Mapping[str, Any],
        options: SearchOptions,
        config: FuzzySearchConfig,
        terms: Sequence[str],
    ) -> SearchResult:
        entity = entry.config
        formatter = entry.formatter or generic_formatter
        title, description = formatter(name, row)
        item_id = row.get("id")

        highlights: list[str] = []
        if config.enable_highlight:
            highlights = generate_highlights(
                entity.search_fields, row, terms, config,
                only=options.highlight_fields or None,
            )

        return SearchResult(
            id=item_id,
            type=name,
            title=title,
            description=description,
            url=build_url(name, item_id, self._url_prefix),
            score=relevance_score(entity.search_fields, row, terms, config),
            highlights=highlights,
            data=dict(row),
            metadata=dict(entity.metadata),
            created_at=_as_datetime(row.get("created_at")),
            updated_at=_as_datetime(row.get("updated_at")),
        )

    @staticmethod
    def _aggregations(results: Sequence[SearchResult], categories: Mapping[str, int]) -> dict[str, Any]:
        scores = [r.score for r in results]
        return {
            "types": dict(categories),
            "score": {
                "count": len(scores),
                "min": min(scores) if scores else None,
                "max": max(scores) if scores else None,
                "avg": (sum(scores) / len(scores)) if scores else None,
            },
        }

    @staticmethod
    def _elapsed(started: float) -> float:
        return round((time.perf_counter() - started) * 1000.0, 3)

    # ------------------------------------------------------------------
    # Suggestions / introspection
    # ------------------------------------------------------------------
    def generate_suggestions(self, query: str) -> list[str]:
        suggestions = list(GENERIC_SUGGESTIONS)
        for config in self.registry.entities().values():
            suggestions.append(f"Search in {config.label}")
        return suggestions

    def suggestion_hints(self) -> list[str]:
        hints = list(GENERIC_SUGGESTIONS[:3])
        for config in self.registry.entities().values():
            hints.append(f"Search {config.label} by name")
            hints.append(f"Find {config.label} by email")
        return hints

    def stats(self) -> dict[str, Any]:
        entities = self.registry.entities()
        return {
            "total_entity_types": len(entities),
            "entity_types": sorted(entities),
            "search_config": self.get_config().model_dump(),
            "status": "active",
        }

    def health(self) -> dict[str, Any]:
        return {
            "status": "healthy",
            "service": "fuzzy_search",
            "entity_types": len(self.registry),
            "last_check": datetime.now(timezone.utc).isoformat(),
        }
