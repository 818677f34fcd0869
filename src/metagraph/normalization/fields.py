"""Typed accessors over untyped JSON trees.

Each helper looks up ``key`` in a decoded JSON object and returns the value
only when it has the expected JSON kind. Missing keys, explicit ``null`` and
kind mismatches all yield ``None`` (or the caller's default for booleans);
none of these helpers raise.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

JsonObject = Mapping[str, Any]

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


def as_object(value: Any) -> JsonObject | None:
    """Return ``value`` when it is a JSON object, else ``None``."""

    return value if isinstance(value, dict) else None


def get_string(tree: JsonObject, key: str) -> str | None:
    value = tree.get(key)
    return value if isinstance(value, str) else None


def get_int(tree: JsonObject, key: str) -> int | None:
    """Return an integral JSON number.

    ``bool`` is excluded even though it subclasses ``int``, and floats are
    rejected so ``1.5`` never silently becomes ``1``.
    """

    value = tree.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def get_int64(tree: JsonObject, key: str) -> int | None:
    """Return an integral JSON number that fits a signed 64-bit column."""

    value = get_int(tree, key)
    if value is None or not INT64_MIN <= value <= INT64_MAX:
        return None
    return value


def get_bool(tree: JsonObject, key: str, default: bool) -> bool:
    value = tree.get(key)
    return value if isinstance(value, bool) else default


def get_object(tree: JsonObject, key: str) -> Dict[str, Any] | None:
    value = tree.get(key)
    return value if isinstance(value, dict) else None


def get_array(tree: JsonObject, key: str) -> List[Any] | None:
    value = tree.get(key)
    return value if isinstance(value, list) else None


def lowered(value: str | None) -> str | None:
    """Lower-case free text, passing ``None`` through."""

    return value.lower() if value is not None else None


__all__ = [
    "JsonObject",
    "as_object",
    "get_string",
    "get_int",
    "get_int64",
    "get_bool",
    "get_object",
    "get_array",
    "lowered",
]
