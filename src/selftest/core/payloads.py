"""Helpers for reading the platform's response shapes.

Listing endpoints are not uniform: ``/api/charlist`` answers
``{"characters": [...], "tags": [...]}`` on current deployments and a bare
list on older ones, and ``/api/search`` answers a bare list. These helpers
hide that.
"""

from __future__ import annotations

from typing import Any


def as_int(value: Any) -> int | None:
    """Coerce an id that may arrive as int or numeric string."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def items(body: Any, key: str) -> list[dict[str, Any]]:
    """Return ``body`` if it is a list, else ``body[key]`` if that is a list."""
    if isinstance(body, list):
        found = body
    elif isinstance(body, dict) and isinstance(body.get(key), list):
        found = body[key]
    else:
        return []
    return [item for item in found if isinstance(item, dict)]


def character_list(body: Any) -> list[dict[str, Any]]:
    return items(body, "characters")


def contains_id(entries: list[dict[str, Any]], target_id: int) -> bool:
    return any(as_int(entry.get("id")) == target_id for entry in entries)


def as_dict(body: Any) -> dict[str, Any]:
    """``body`` when it decoded to a JSON object, else an empty dict."""
    return body if isinstance(body, dict) else {}
