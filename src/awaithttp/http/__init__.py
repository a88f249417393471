"""HTTP layer for awaithttp.

Requests are sent by a callback-driven engine (httpx on a thread pool) and
awaited through the call bridge.
"""

from awaithttp.http.bridge import await_call, is_record_stack
from awaithttp.http.client import HttpClient, create_client
from awaithttp.http.cookies import (
    ACCEPT_ALL,
    ACCEPT_NONE,
    ACCEPT_ORIGINAL_SERVER,
    CookieHandler,
    CookieStore,
)
from awaithttp.http.download import stream_to, tqdm_progress
from awaithttp.http.engine import HttpEngine, HttpxEngine
from awaithttp.http.executor import RequestExecutor
from awaithttp.http.headers import EMPTY_HEADERS, headers, load_headers_from_file
from awaithttp.http.ranges import ContentRange

__all__ = [
    "await_call",
    "is_record_stack",
    "HttpClient",
    "create_client",
    "ACCEPT_ALL",
    "ACCEPT_NONE",
    "ACCEPT_ORIGINAL_SERVER",
    "CookieHandler",
    "CookieStore",
    "stream_to",
    "tqdm_progress",
    "HttpEngine",
    "HttpxEngine",
    "RequestExecutor",
    "EMPTY_HEADERS",
    "headers",
    "load_headers_from_file",
    "ContentRange",
]
