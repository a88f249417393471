"""Header construction utilities.

Header sets are httpx.Headers: case-insensitive keys, duplicates allowed,
insertion order preserved.
"""

from pathlib import Path
from typing import Any, Mapping, Sequence, Tuple, Union

import httpx

HeaderTypes = Union[httpx.Headers, Mapping[str, Any], Sequence[Tuple[str, Any]], None]

EMPTY_HEADERS = httpx.Headers()


def headers(*name_values: str) -> httpx.Headers:
    """Build headers from alternating names and values.

    Example:
        >>> headers("Accept", "text/html", "Accept", "application/json")
        Headers([('accept', 'text/html'), ('accept', 'application/json')])
    """
    if len(name_values) % 2 != 0:
        raise ValueError("Expected alternating header names and values")
    pairs = list(zip(name_values[::2], name_values[1::2]))
    return httpx.Headers(pairs)


def as_headers(value: HeaderTypes) -> httpx.Headers:
    """Convert a mapping or pair sequence to httpx.Headers.

    Non-string values are converted with str().
    """
    if value is None:
        return httpx.Headers()
    if isinstance(value, httpx.Headers):
        return httpx.Headers(value)
    items = value.items() if isinstance(value, Mapping) else value
    return httpx.Headers([(str(name), str(item)) for name, item in items])


def load_headers_from_file(header_file: str) -> httpx.Headers:
    """Load HTTP headers from file.

    File format is simple key: value pairs, one per line. A name may appear
    more than once.

    Args:
        header_file: Path to header file

    Returns:
        Headers in file order (empty if the file does not exist)

    Example file format:
        Accept: application/json
        Authorization: Bearer token123
        X-Custom-Header: value
    """
    pairs = []
    header_path = Path(header_file)

    if not header_path.exists():
        return httpx.Headers()

    with open(header_path, 'r') as f:
        for line in f:
            line = line.strip()

            # Skip comments and empty lines
            if not line or line.startswith('#'):
                continue

            # Parse header line
            if ':' in line:
                name, value = line.split(':', 1)
                pairs.append((name.strip(), value.strip()))

    return httpx.Headers(pairs)

