"""Client context: engine, cookie store and request helpers in one object.

Create one HttpClient at startup and pass it to whatever needs network or
cookie access:

    >>> config = Config(cookie_file="cookies.json")
    >>> async with create_client(config) as client:
    ...     status, body = await client.get_code("https://example.com")
    ...     client.save_cookies()

Cookies are persisted only when save_cookies() is called; closing the
client does not save them.
"""

import http.cookiejar
import logging
from pathlib import Path
from typing import Optional

import httpx

from awaithttp.config import Config
from awaithttp.http.cookies import ACCEPT_ALL, CookieHandler, CookiePolicy, CookieStore
from awaithttp.http.engine import HttpEngine, HttpxEngine
from awaithttp.http.executor import RequestExecutor
from awaithttp.http.headers import load_headers_from_file

logger = logging.getLogger(__name__)

# Keeps httpx's own jar empty so the cookie store stays authoritative
_NO_COOKIES_POLICY = http.cookiejar.DefaultCookiePolicy(allowed_domains=[])


def create_httpx_client(config: Config, cookie_handler: Optional[CookieHandler] = None) -> httpx.Client:
    """Create the httpx client the engine sends requests with.

    Args:
        config: Configuration object
        cookie_handler: Cookie policy hooks to install, if any

    Returns:
        Configured httpx.Client instance
    """
    # Build headers
    headers = httpx.Headers({'User-Agent': config.user_agent})

    # Load additional headers from file
    if config.header_file and Path(config.header_file).exists():
        headers.update(load_headers_from_file(config.header_file))

    event_hooks = {}
    cookies = None
    if cookie_handler is not None:
        event_hooks = {
            'request': [cookie_handler.request_hook],
            'response': [cookie_handler.response_hook],
        }
        cookies = http.cookiejar.CookieJar(policy=_NO_COOKIES_POLICY)

    return httpx.Client(
        headers=headers,
        cookies=cookies,
        timeout=config.timeout,
        verify=config.verify_ssl,
        follow_redirects=config.follow_redirects,
        http2=config.http2,
        proxy=config.proxy,
        event_hooks=event_hooks,
    )


class HttpClient(RequestExecutor):
    """Request helpers bound to an engine and an optional cookie store."""

    def __init__(
        self,
        config: Config,
        engine: HttpEngine,
        cookie_store: Optional[CookieStore] = None,
        cookie_handler: Optional[CookieHandler] = None,
    ):
        super().__init__(engine, record_stack=config.record_stack, chunk_size=config.chunk_size)
        self.config = config
        self.cookie_store = cookie_store
        self.cookie_handler = cookie_handler
        self._closed = False

    def save_cookies(self) -> bool:
        """Persist the cookie store.

        Returns:
            False if this client has no cookie store
        """
        if self.cookie_store is None:
            return False
        self.cookie_store.save()
        return True

    @property
    def is_closed(self) -> bool:
        return self._closed

    def close(self):
        """Shut the engine down. Cookies are not saved."""
        if self._closed:
            return
        self._closed = True
        self.engine.close()

    async def aclose(self):
        self.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()


def create_client(
    config: Optional[Config] = None,
    cookie_store: Optional[CookieStore] = None,
    policy: CookiePolicy = ACCEPT_ALL,
) -> HttpClient:
    """Create a client context from configuration.

    When no cookie store is given and config.cookie_file is set, the file is
    loaded (and created if missing) and installed as the cookie handler.

    Args:
        config: Configuration object (defaults to Config())
        cookie_store: Already loaded cookie store to use
        policy: Which response cookies to accept

    Returns:
        Configured HttpClient

    Raises:
        MalformedCookieDocumentError: If the cookie file cannot be parsed
    """
    config = config or Config()

    if cookie_store is None and config.cookie_file:
        cookie_store = CookieStore.open(config.cookie_file)

    cookie_handler = CookieHandler(cookie_store, policy) if cookie_store is not None else None
    engine = HttpxEngine(
        create_httpx_client(config, cookie_handler),
        max_workers=config.max_workers,
        chunk_size=config.chunk_size,
    )
    return HttpClient(config, engine, cookie_store, cookie_handler)
