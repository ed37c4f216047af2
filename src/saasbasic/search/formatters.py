# src/saasbasic/search/formatters.py
"""
Title/description strategies for search results.

Each registered entity may carry its own formatter; anything without one
goes through ``generic_formatter``.
"""
from __future__ import annotations

from typing import Any, Callable, Mapping, Tuple

Formatter = Callable[[str, Mapping[str, Any]], Tuple[str, str]]


def field_text(row: Mapping[str, Any], name: str) -> str:
    value = row.get(name)
    if value is None:
        return ""
    return str(value)


def users_formatter(entity_type: str, row: Mapping[str, Any]) -> tuple[str, str]:
    title = f"{field_text(row, 'first_name')} {field_text(row, 'last_name')}".strip()
    return title, f"Email: {field_text(row, 'email')}"


def customers_formatter(entity_type: str, row: Mapping[str, Any]) -> tuple[str, str]:
    description = f"Email: {field_text(row, 'email')}"
    company = field_text(row, "company")
    if company:
        description += f" | Company: {company}"
    return field_text(row, "name"), description


def contacts_formatter(entity_type: str, row: Mapping[str, Any]) -> tuple[str, str]:
    return field_text(row, "name"), f"Subject: {field_text(row, 'subject')}"


def plans_formatter(entity_type: str, row: Mapping[str, Any]) -> tuple[str, str]:
    price = field_text(row, "price")
    currency = field_text(row, "currency")
    return field_text(row, "name"), f"Price: {price} {currency}".strip()


def emails_formatter(entity_type: str, row: Mapping[str, Any]) -> tuple[str, str]:
    description = f"To: {field_text(row, 'to_email')} | Status: {field_text(row, 'status')}"
    return field_text(row, "subject"), description


def generic_formatter(entity_type: str, row: Mapping[str, Any]) -> tuple[str, str]:
    name = field_text(row, "name")
    if name:
        return name, f"{entity_type} record"
    title = field_text(row, "title")
    if title:
        return title, f"{entity_type} record"
    return f"{entity_type} #{field_text(row, 'id')}", ""


DEFAULT_FORMATTERS: dict[str, Formatter] = {
    "users": users_formatter,
    "customers": customers_formatter,
    "contacts": contacts_formatter,
    "plans": plans_formatter,
    "emails": emails_formatter,
}


def build_url(entity_type: str, item_id: Any, prefix: str = "/api/v1") -> str:
    if item_id is None:
        return ""
    return f"{prefix.rstrip('/')}/{entity_type}/{item_id}"
