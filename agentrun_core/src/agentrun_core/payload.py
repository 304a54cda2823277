"""Lenient accessors for decoded JSON payloads.

Wire payloads are untrusted: any field may be missing or carry the wrong type.
These helpers are used only at the decode boundary, where a malformed field
becomes a safe default instead of an exception.
"""

import json
from typing import Any

JsonValue = Any
"""Any value produced by ``json.loads``."""


def as_dict(value: JsonValue) -> dict[str, Any]:
    """Return value if it is a JSON object, else an empty dict."""
    return value if isinstance(value, dict) else {}


def as_list(value: JsonValue) -> list[Any]:
    """Return value if it is a JSON array, else an empty list."""
    return value if isinstance(value, list) else []


def as_str(value: JsonValue, default: str = "") -> str:
    """Return value if it is a string, else default."""
    return value if isinstance(value, str) else default


def opt_str(value: JsonValue) -> str | None:
    """Return value if it is a string, else None."""
    return value if isinstance(value, str) else None


def str_list(value: JsonValue) -> list[str] | None:
    """Return the string elements of a JSON array, or None if not an array."""
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, str)]


def stringify(value: JsonValue) -> str:
    """Render a JSON value as text: strings verbatim, anything else as JSON."""
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    return json.dumps(value, ensure_ascii=False)


def parse_json_text(text: str) -> tuple[bool, JsonValue]:
    """Parse JSON text.

    Returns:
        ``(True, value)`` on success, ``(False, None)`` if the text is not JSON.
    """
    try:
        return True, json.loads(text)
    except json.JSONDecodeError:
        return False, None
