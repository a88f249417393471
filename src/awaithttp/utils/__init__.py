"""Utility functions for awaithttp."""

from awaithttp.utils.file import (
    atomic_write_text,
    ensure_dir,
)
from awaithttp.utils.jsonpath import (
    get_path,
    to_json,
    try_get_path,
)
from awaithttp.utils.urls import (
    build_url,
    extend_url,
)

__all__ = [
    "atomic_write_text",
    "ensure_dir",
    "get_path",
    "to_json",
    "try_get_path",
    "build_url",
    "extend_url",
]
