"""Helpers for navigating parsed JSON documents."""

import json
from typing import Any, Mapping, Optional


def to_json(values: Mapping[str, Any]) -> str:
    """Serialize a flat mapping, converting every value with str()."""
    return json.dumps({str(key): str(value) for key, value in values.items()}, indent=4)


def get_path(element: Any, *path: str) -> Any:
    """Follow object keys through nested JSON.

    Raises:
        KeyError: If a key along the path is missing
    """
    for key in path:
        if not isinstance(element, Mapping):
            raise KeyError(key)
        element = element[key]
    return element


def try_get_path(element: Any, *path: str) -> Optional[Any]:
    """Like get_path, but return None when the path does not exist."""
    try:
        return get_path(element, *path)
    except KeyError:
        return None
