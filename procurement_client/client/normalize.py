# procurement_client/client/normalize.py
"""
Coercion helpers used when shaping backend payloads.

The backend is loose about types: numbers arrive as strings, missing
fields arrive as null or are omitted entirely. Every fetch runs its rows
through these helpers so downstream code sees one fixed shape.
"""

import re
from typing import Any, Iterable, List, Mapping

_FLOAT_PREFIX = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_INT_PREFIX = re.compile(r"[+-]?\d+")


def is_blank(value: Any) -> bool:
    """Falsy in the backend's sense: None, '', 0, False, empty containers."""
    if isinstance(value, float) and value != value:  # NaN
        return True
    return not value


def or_default(value: Any, default: Any) -> Any:
    """`value` unless it is blank, then `default`."""
    return default if is_blank(value) else value


def to_float(value: Any, default: float = 0.0) -> float:
    """
    parseFloat semantics with a fallback:
    the longest numeric prefix of the value, or `default`.
    """
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return default if value != value else float(value)
    if value is None:
        return default
    match = _FLOAT_PREFIX.match(str(value).strip())
    if not match:
        return default
    return float(match.group(0)) or default


def to_int(value: Any, default: int = 0) -> int:
    """parseInt semantics with a fallback (12.7 -> 12, '15 pcs' -> 15)."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return default if value != value else int(value)
    if value is None:
        return default
    match = _INT_PREFIX.match(str(value).strip())
    if not match:
        return default
    return int(match.group(0)) or default


def to_text(value: Any, default: str = "N/A") -> str:
    if is_blank(value):
        return default
    return str(value)


def unwrap_list(body: Any, key: str = "data") -> List[Any]:
    """
    Rows from a response that is either a bare array or `{data: [...]}`.
    Anything else is treated as no rows.
    """
    if isinstance(body, list):
        return body
    if isinstance(body, Mapping) and isinstance(body.get(key), list):
        return body[key]
    return []


def duplicates(values: Iterable[Any]) -> List[Any]:
    """Values that occur more than once, in first-repeat order."""
    seen, repeated = set(), []
    for v in values:
        if v in seen and v not in repeated:
            repeated.append(v)
        seen.add(v)
    return repeated
