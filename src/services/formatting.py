# src/services/formatting.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

ISO_SECONDS_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def parse_timestamp(value: Any) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value:
        return None
    normalized = value.replace("Z", "+00:00") if value.endswith("Z") else value
    try:
        return datetime.fromisoformat(normalized)
    except ValueError:
        return None


def format_timestamp(value: Any) -> str | None:
    """Render a timestamp as whole-second UTC ISO-8601 with a trailing Z."""
    if value is None:
        return None
    parsed = parse_timestamp(value)
    if parsed is None:
        return str(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).strftime(ISO_SECONDS_FORMAT)


def stringify_id(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def safe_search_term(term: str | None) -> str:
    """Strip characters that would break a PostgREST `or=(...)` filter."""
    if not term:
        return ""
    stripped = term.strip()
    cleaned = (
        stripped.replace("%", "")
        .replace(",", " ")
        .replace(";", " ")
        .replace("'", " ")
        .replace("(", " ")
        .replace(")", " ")
    ).strip()
    return cleaned
