"""Error-body normalization.

Platform endpoints report failures under different shapes:

    {"error": "..."}
    {"message": "..."}
    {"error": {"message": "...", "code": "..."}}
    {"error": "...", "details": "..."}
    "plain text"

extract_error_message() turns any of them into a single readable line and
falls back to a JSON dump for anything it does not recognize.
"""

from __future__ import annotations

import json
from typing import Any

_MESSAGE_KEYS = ("error", "message", "detail", "details")
_MAX_DUMP = 500


def extract_error_message(body: Any, fallback: str = "Unknown error") -> str:
    """Extract a human-readable error message from a response body."""
    if body is None:
        return fallback

    if isinstance(body, str):
        text = body.strip()
        return text[:_MAX_DUMP] if text else fallback

    if isinstance(body, dict):
        for key in _MESSAGE_KEYS:
            if key not in body:
                continue
            value = body[key]
            if isinstance(value, str) and value.strip():
                message = value.strip()
                details = body.get("details")
                if key == "error" and isinstance(details, str) and details.strip():
                    message = f"{message} ({details.strip()})"
                return message
            if isinstance(value, dict):
                nested = extract_error_message(value, fallback="")
                if nested:
                    return nested
        if not body:
            return fallback

    if isinstance(body, (list, tuple)) and not body:
        return fallback

    return _dump(body)


def _dump(body: Any) -> str:
    try:
        text = json.dumps(body, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        text = repr(body)
    if len(text) > _MAX_DUMP:
        text = text[: _MAX_DUMP - 3] + "..."
    return text
