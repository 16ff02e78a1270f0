"""Unwrapping for store fields that arrive scalar or as single-element lists."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional


def normalize_key(raw: Any) -> Optional[str]:
    """Return the trimmed string behind ``raw``, or None.

    Lists contribute their first element only; anything that is not a string
    after unwrapping is rejected.
    """
    value = raw[0] if isinstance(raw, list) and raw else raw
    if isinstance(value, list):
        return None
    if isinstance(value, str):
        return value.strip()
    return None


def first_value(raw: Any) -> Any:
    if isinstance(raw, (list, tuple)):
        return raw[0] if raw else None
    return raw


def first_text(raw: Any) -> Optional[str]:
    """Like normalize_key, but blank strings count as missing."""
    text = normalize_key(raw)
    return text or None


def id_list(raw: Any) -> list[str]:
    """Linked-record fields: always a list of non-blank ids, order preserved."""
    if raw is None:
        return []
    items = raw if isinstance(raw, (list, tuple)) else [raw]
    ids: list[str] = []
    for item in items:
        if isinstance(item, str) and item.strip():
            ids.append(item.strip())
    return ids


def parse_date(raw: Any) -> Optional[date]:
    """Parse ``YYYY-MM-DD`` (optionally followed by a time part) into a date."""
    value = first_value(raw)
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or "-" not in value:
        return None
    text = value.strip().split("T", 1)[0]
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


def parse_datetime(raw: Any) -> Optional[datetime]:
    value = first_value(raw)
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def parse_day(raw: Any) -> Optional[int]:
    """Billing anchor day: a positive integer, possibly recorded as text."""
    value = first_value(raw)
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float) and value.is_integer():
        return int(value) if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        day = int(value.strip())
        return day if day > 0 else None
    return None
