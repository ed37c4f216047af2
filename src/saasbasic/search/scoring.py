# src/saasbasic/search/scoring.py
from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from saasbasic.search.models import FieldConfig, FuzzySearchConfig, SearchResult

HIGHLIGHT_PRE = "<mark>"
HIGHLIGHT_POST = "</mark>"

FUZZY_MIN_TERM_LENGTH = 3
FUZZY_MIN_RATIO = 0.5
FUZZY_WEIGHT = 0.5
CONTAINS_SCORE = 1.0


def row_text(row: Mapping[str, Any], name: str) -> str:
    """Field value as text; ``table.col`` names fall back to the bare column key."""
    value = row.get(name)
    if value is None and "." in name:
        value = row.get(name.rsplit(".", 1)[1])
    if value is None:
        return ""
    return str(value)


def fuzzy_score(text: str, term: str) -> float:
    """Character-overlap heuristic, not an edit distance."""
    if len(term) < FUZZY_MIN_TERM_LENGTH:
        return 0.0
    matches = sum(1 for ch in term if ch in text)
    ratio = matches / len(term)
    if ratio < FUZZY_MIN_RATIO:
        return 0.0
    return ratio * FUZZY_WEIGHT


def match_score(value: str, term: str, config: FuzzySearchConfig) -> float:
    if value == term:
        return config.exact_match_boost
    if value.startswith(term):
        return config.prefix_match_boost
    if term in value:
        return CONTAINS_SCORE
    return fuzzy_score(value, term)


def field_score(
    field: FieldConfig,
    value: str,
    terms: Sequence[str],
    config: FuzzySearchConfig,
) -> float:
    if not config.case_sensitive:
        value = value.lower()
    best = 0.0
    for term in terms:
        needle = term if config.case_sensitive else term.lower()
        score = match_score(value, needle, config) * (1.0 + field.boost)
        if score > best:
            best = score
    return best


def relevance_score(
    fields: Iterable[FieldConfig],
    row: Mapping[str, Any],
    terms: Sequence[str],
    config: FuzzySearchConfig,
) -> float:
    if not terms:
        return 0.0
    total = 0.0
    for field in fields:
        value = row_text(row, field.name)
        score = field_score(field, value, terms, config) if value else 0.0
        if field.required and score <= 0:
            return 0.0
        total += score * field.weight
    return max(total, 0.0)


def highlight_text(text: str, terms: Sequence[str], case_sensitive: bool = False) -> str:
    """Wrap every occurrence of any term, keeping the text's own casing."""
    unique = sorted({t for t in terms if t}, key=len, reverse=True)
    if not text or not unique:
        return text
    pattern = re.compile(
        "|".join(re.escape(t) for t in unique),
        0 if case_sensitive else re.IGNORECASE,
    )
    return pattern.sub(lambda m: f"{HIGHLIGHT_PRE}{m.group(0)}{HIGHLIGHT_POST}", text)


def generate_highlights(
    fields: Iterable[FieldConfig],
    row: Mapping[str, Any],
    terms: Sequence[str],
    config: FuzzySearchConfig,
    only: Optional[Iterable[str]] = None,
) -> List[str]:
    wanted = set(only or ())
    highlights: list[str] = []
    for field in fields:
        if wanted and field.name not in wanted:
            continue
        value = row_text(row, field.name)
        if not value:
            continue
        marked = highlight_text(value, terms, config.case_sensitive)
        if marked != value:
            highlights.append(marked)
    return highlights


_RESULT_ATTRS = {"id", "type", "title", "description", "url", "created_at", "updated_at"}


def _sort_value(result: SearchResult, key: str) -> Any:
    if key in _RESULT_ATTRS:
        return getattr(result, key)
    return result.data.get(key)


def _comparable(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value, "")
    if isinstance(value, (datetime, date)):
        return (1, 0, value.isoformat())
    return (2, 0, str(value).lower())


def sort_results(
    results: Sequence[SearchResult],
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> List[SearchResult]:
    """Score descending by default; stable for ties."""
    key = (sort_by or "score").strip()
    if key == "score":
        ascending = (sort_order or "desc").lower() == "asc"
        return sorted(results, key=lambda r: r.score, reverse=not ascending)

    ascending = (sort_order or "asc").lower() != "desc"
    present = [r for r in results if _sort_value(r, key) is not None]
    missing = [r for r in results if _sort_value(r, key) is None]
    present.sort(key=lambda r: _comparable(_sort_value(r, key)), reverse=not ascending)
    return present + missing


def paginate(results: Sequence[SearchResult], offset: int, limit: int) -> List[SearchResult]:
    offset = max(offset, 0)
    if offset >= len(results) or limit <= 0:
        return []
    return list(results[offset:offset + limit])
