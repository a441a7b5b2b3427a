"""Lenient converters for values read from YAML and module-info JSON."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

_SCALARS = (str, int, float, bool)
_TRUTHY = frozenset({"true", "yes", "on", "1"})
_FALSY = frozenset({"false", "no", "off", "0"})


def as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, _SCALARS) else None


def as_bool(value: Any) -> Optional[bool]:
    """Read a build flag; module-info dumps use 0/1 as often as true/false."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        token = value.strip().lower()
        if token in _TRUTHY:
            return True
        if token in _FALSY:
            return False
    return None


def as_str_list(value: Any) -> List[str]:
    """A lone string counts as a one-item list; non-scalar items are dropped."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, _SCALARS)]
    return []


__all__ = ["as_bool", "as_dict", "as_str", "as_str_list"]
