"""URL building utilities."""

from typing import Any, Union

import httpx


def _query_pairs(query_params):
    if len(query_params) % 2 != 0:
        raise ValueError("Expected alternating query parameter names and values")
    return [(str(name), str(value)) for name, value in zip(query_params[::2], query_params[1::2])]


def _add_query(url: httpx.URL, pairs) -> httpx.URL:
    """Append query pairs, keeping any existing values for the same names."""
    if not pairs:
        return url
    return url.copy_with(params=list(url.params.multi_items()) + pairs)


def _join_path(base: str, path: str) -> str:
    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        return base or "/"
    return base.rstrip("/") + "/" + "/".join(segments)


def build_url(scheme: str, host: str, path: str = "", *query_params: Any) -> httpx.URL:
    """Build a URL from its parts.

    Example:
        >>> build_url("https", "example.com", "api/items", "page", 2)
        URL('https://example.com/api/items?page=2')
    """
    url = httpx.URL(scheme=scheme, host=host, path=_join_path("", path))
    return _add_query(url, _query_pairs(query_params))


def extend_url(url: Union[str, httpx.URL], path: str = "", *query_params: Any) -> httpx.URL:
    """Append path segments and query parameters to an existing URL.

    Query parameters are added after the existing ones; a repeated name
    keeps every value.
    """
    url = httpx.URL(str(url))
    url = url.copy_with(path=_join_path(url.path, path))
    return _add_query(url, _query_pairs(query_params))
