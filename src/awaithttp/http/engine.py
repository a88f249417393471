"""Callback-driven HTTP engine backed by a synchronous httpx client.

Calls run on the engine's own thread pool and report their outcome through
a callback object, invoked from that pool's threads:

    class Callback:
        def on_response(self, call, outcome): ...
        def on_failure(self, call, exc): ...

Exactly one of the two methods is invoked per enqueued call, unless the
call is cancelled before a worker thread picks it up.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Protocol, runtime_checkable

import httpx

from awaithttp.exceptions import TransportError
from awaithttp.models.request import RequestDescriptor, ResponseOutcome
from awaithttp.http.ranges import UNKNOWN_SIZE

logger = logging.getLogger(__name__)


@runtime_checkable
class Call(Protocol):
    """A single in-flight request."""

    request: RequestDescriptor

    def enqueue(self, callback) -> None:
        """Schedule the call; `callback` receives the outcome."""
        ...

    def cancel(self) -> None:
        """Cancel the call if it has not completed yet."""
        ...

    @property
    def is_canceled(self) -> bool:
        ...


@runtime_checkable
class HttpEngine(Protocol):
    """Capability the executor needs from an HTTP engine."""

    def new_call(self, request: RequestDescriptor) -> Call:
        ...

    def close(self) -> None:
        ...


def build_httpx_request(client: httpx.Client, request: RequestDescriptor, chunk_size: int) -> httpx.Request:
    """Translate a RequestDescriptor into an httpx.Request."""
    headers = httpx.Headers(request.headers)
    content = None
    body = request.body
    if body is not None:
        if body.media_type and "content-type" not in headers:
            headers["Content-Type"] = body.media_type
        if body.content_length != UNKNOWN_SIZE and "content-length" not in headers:
            headers["Content-Length"] = str(body.content_length)
        content = body.iter_content(chunk_size)
    return client.build_request(request.method, request.url, headers=headers, content=content)


class HttpxCall:
    """A Call executed by HttpxEngine.

    Pending -> {Completed | Failed | Cancelled}; a call can be enqueued once.
    """

    def __init__(self, engine: "HttpxEngine", request: RequestDescriptor):
        self.engine = engine
        self.request = request
        self._lock = threading.Lock()
        self._executed = False
        self._canceled = False
        self._future = None
        self._response: Optional[httpx.Response] = None

    @property
    def is_canceled(self) -> bool:
        return self._canceled

    @property
    def is_executed(self) -> bool:
        return self._executed

    def enqueue(self, callback) -> None:
        with self._lock:
            if self._executed:
                raise RuntimeError("Already executed")
            self._executed = True
            try:
                self._future = self.engine.submit(self._run, callback)
            except RuntimeError as e:
                raise TransportError(f"Engine is closed: {e}") from e

    def cancel(self) -> None:
        with self._lock:
            if self._canceled:
                return
            self._canceled = True
            future = self._future
            response = self._response
        if future is not None:
            future.cancel()
        if response is not None:
            response.close()

    def _run(self, callback) -> None:
        if self._canceled:
            callback.on_failure(self, TransportError("Canceled"))
            return

        try:
            response = self.engine.send(self.request)
        except (httpx.HTTPError, OSError) as e:
            self._fail(callback, str(e) or type(e).__name__, e)
            return
        except Exception as e:
            # Request body streams and event hooks can raise anything
            logger.debug(f"{self.request.method} {self.request.url} failed: {e!r}")
            self._fail(callback, f"{type(e).__name__}: {e}", e)
            return

        with self._lock:
            canceled = self._canceled
            if not canceled:
                self._response = response
        if canceled:
            response.close()
            callback.on_failure(self, TransportError("Canceled"))
            return

        callback.on_response(self, ResponseOutcome(response, self.request))

    def _fail(self, callback, message: str, cause: BaseException) -> None:
        failure = TransportError(message)
        failure.__cause__ = cause
        callback.on_failure(self, failure)


class HttpxEngine:
    """Runs requests on a thread pool through a shared httpx.Client.

    Connection pooling, TLS, redirects and proxies are left to httpx.
    """

    def __init__(self, client: httpx.Client, max_workers: int = 8, chunk_size: int = 8192):
        self.client = client
        self.chunk_size = chunk_size
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="awaithttp-io")

    def new_call(self, request: RequestDescriptor) -> HttpxCall:
        return HttpxCall(self, request)

    def submit(self, fn, *args):
        return self._executor.submit(fn, *args)

    def send(self, request: RequestDescriptor) -> httpx.Response:
        """Send synchronously, returning a response whose body is still open."""
        httpx_request = build_httpx_request(self.client, request, self.chunk_size)
        logger.debug(f"{request.method} {request.url}")
        return self.client.send(httpx_request, stream=True)

    def close(self) -> None:
        """Stop the I/O threads and close pooled connections."""
        self._executor.shutdown(wait=False, cancel_futures=True)
        self.client.close()
