"""Defensive accessors for untrusted webhook JSON.

Each helper returns None instead of raising when a key is missing or the
value has the wrong type.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def get_map(obj: Any, key: str) -> Mapping[str, Any] | None:
    if not isinstance(obj, Mapping):
        return None
    value = obj.get(key)
    return value if isinstance(value, Mapping) else None


def get_list(obj: Any, key: str) -> list[Any] | None:
    if not isinstance(obj, Mapping):
        return None
    value = obj.get(key)
    return value if isinstance(value, list) else None


def get_str(obj: Any, key: str) -> str | None:
    if not isinstance(obj, Mapping):
        return None
    value = obj.get(key)
    return value if isinstance(value, str) else None


def get_scalar(obj: Any, key: str) -> str | None:
    """String form of a str/int/float value; Meta sends some numbers either way."""
    if not isinstance(obj, Mapping):
        return None
    value = obj.get(key)
    if isinstance(value, bool):
        return None
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


def get_float(obj: Any, key: str) -> float | None:
    if not isinstance(obj, Mapping):
        return None
    value = obj.get(key)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def first_map(items: list[Any] | None) -> Mapping[str, Any] | None:
    """First element of a list when it is a JSON object."""
    if not items:
        return None
    head = items[0]
    return head if isinstance(head, Mapping) else None


def dig_first_change(payload: Any) -> Mapping[str, Any] | None:
    """``entry[0].changes[0]`` or None."""
    entry = first_map(get_list(payload, "entry"))
    return first_map(get_list(entry, "changes"))
