"""
awaithttp - awaitable HTTP calls with persistent cookies.

This package wraps a callback-driven HTTP engine in cancellable asyncio
await points, keeps cookies across sessions in a JSON document, and streams
downloads with progress reporting and byte-range awareness.
"""

__version__ = "1.0.0"

from awaithttp.config import Config
from awaithttp.exceptions import (
    AwaitHttpError,
    ConfigurationError,
    ContentRangeError,
    HttpStatusError,
    MalformedCookieDocumentError,
    TransportError,
)
from awaithttp.http.client import HttpClient, create_client
from awaithttp.http.cookies import CookieStore
from awaithttp.http.ranges import ContentRange
from awaithttp.models.cookie import CookieRecord

__all__ = [
    "Config",
    "AwaitHttpError",
    "ConfigurationError",
    "ContentRangeError",
    "HttpStatusError",
    "MalformedCookieDocumentError",
    "TransportError",
    "HttpClient",
    "create_client",
    "CookieStore",
    "ContentRange",
    "CookieRecord",
    "__version__",
]
