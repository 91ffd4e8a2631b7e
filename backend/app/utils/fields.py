from __future__ import annotations

from typing import Any, Mapping


def read_field(source: Any, key: str) -> Any:
    """Read ``key`` from a mapping or an object; ``None`` when absent."""
    if source is None:
        return None
    if isinstance(source, Mapping):
        return source.get(key)
    return getattr(source, key, None)


def read_path(source: Any, path: str) -> Any:
    """Follow a dotted path such as ``"venue.name"``; stops at the first gap."""
    value = source
    for part in path.split("."):
        value = read_field(value, part)
        if value is None:
            return None
    return value
