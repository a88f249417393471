"""Verb-level request helpers built on the call bridge.

"Code" variants return ``(status_code, body_text)`` whatever the status.
Plain variants check the status: a non-2xx response is read, closed and
raised as HttpStatusError.
"""

import logging
from pathlib import Path
from typing import Any, BinaryIO, Mapping, Optional, Tuple, Union

import httpx

from awaithttp.exceptions import HttpStatusError
from awaithttp.http.bridge import await_call
from awaithttp.http.download import ProgressCallback, stream_to
from awaithttp.http.engine import HttpEngine
from awaithttp.http.headers import HeaderTypes
from awaithttp.models.request import DEFAULT_CHUNK_SIZE, RequestBody, RequestDescriptor, ResponseOutcome
from awaithttp.utils.file import ensure_dir

logger = logging.getLogger(__name__)

URLTypes = Union[str, httpx.URL]


def build_post_body(
    form: Optional[Mapping[str, Any]] = None,
    content: Union[str, bytes, None] = None,
    stream: Optional[BinaryIO] = None,
    media_type: Optional[str] = None,
) -> RequestBody:
    """Pick the POST body from exactly one of form, content or stream.

    With none of them given, an empty form is sent.
    """
    given = [value is not None for value in (form, content, stream)]
    if sum(given) > 1:
        raise ValueError("Pass only one of form, content or stream")
    if content is not None:
        if isinstance(content, str):
            return RequestBody.of_text(content, media_type)
        return RequestBody.of_bytes(content, media_type)
    if stream is not None:
        return RequestBody.of_stream(stream, media_type)
    return RequestBody.of_form(form)


class RequestExecutor:
    """Issues requests through an HttpEngine and awaits them.

    Attributes:
        engine: The engine requests are submitted to
        record_stack: Stack recording for failures, None for the process default
        chunk_size: Chunk size used by downloads
    """

    def __init__(self, engine: HttpEngine, record_stack: Optional[bool] = None,
                 chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.engine = engine
        self.record_stack = record_stack
        self.chunk_size = chunk_size

    async def execute(self, request: RequestDescriptor) -> ResponseOutcome:
        """Submit `request` and wait for the response, whatever its status."""
        call = self.engine.new_call(request)
        return await await_call(call, record_stack=self.record_stack)

    async def _checked(self, request: RequestDescriptor) -> ResponseOutcome:
        response = await self.execute(request)
        if not response.is_successful:
            await self._raise_for_status(response)
        return response

    async def _raise_for_status(self, response: ResponseOutcome):
        try:
            body = await response.text()
        except (httpx.HTTPError, OSError) as e:
            logger.debug(f"Could not read error body from {response.url}: {e}")
            body = None
        finally:
            response.close()
        logger.debug(f"{response.url} returned {response.status_code}")
        raise HttpStatusError(response.status_code, body, str(response.url), response=response)

    async def _code(self, request: RequestDescriptor) -> Tuple[int, str]:
        async with await self.execute(request) as response:
            return response.status_code, await response.text()

    async def _text(self, request: RequestDescriptor) -> str:
        async with await self._checked(request) as response:
            return await response.text()

    async def get_code(self, url: URLTypes, headers: HeaderTypes = None) -> Tuple[int, str]:
        """GET `url` and return (status_code, body) regardless of status."""
        return await self._code(RequestDescriptor("GET", url, headers))

    async def post_code(
        self,
        url: URLTypes,
        headers: HeaderTypes = None,
        *,
        form: Optional[Mapping[str, Any]] = None,
        content: Union[str, bytes, None] = None,
        stream: Optional[BinaryIO] = None,
        media_type: Optional[str] = None,
    ) -> Tuple[int, str]:
        """POST to `url` and return (status_code, body) regardless of status.

        Args:
            url: Target URL
            headers: Request headers
            form: Form fields, sent form-encoded
            content: Raw body sent with `media_type`
            stream: Binary stream sent with `media_type`
            media_type: Content-Type for content or stream bodies
        """
        body = build_post_body(form, content, stream, media_type)
        return await self._code(RequestDescriptor("POST", url, headers, body))

    async def delete_code(self, url: URLTypes, headers: HeaderTypes = None) -> Tuple[int, str]:
        """DELETE `url` and return (status_code, body) regardless of status."""
        return await self._code(RequestDescriptor("DELETE", url, headers))

    async def get(self, url: URLTypes, headers: HeaderTypes = None) -> str:
        """GET `url` and return the body text.

        Raises:
            HttpStatusError: If the status is not 2xx
        """
        return await self._text(RequestDescriptor("GET", url, headers))

    async def post(
        self,
        url: URLTypes,
        headers: HeaderTypes = None,
        *,
        form: Optional[Mapping[str, Any]] = None,
        content: Union[str, bytes, None] = None,
        media_type: Optional[str] = None,
    ) -> str:
        """POST a form or raw body to `url` and return the body text.

        Raises:
            HttpStatusError: If the status is not 2xx
        """
        body = build_post_body(form, content, None, media_type)
        return await self._text(RequestDescriptor("POST", url, headers, body))

    async def get_response(self, url: URLTypes, headers: HeaderTypes = None) -> ResponseOutcome:
        """GET `url` and return the open response; the caller must close it.

        Raises:
            HttpStatusError: If the status is not 2xx
        """
        return await self._checked(RequestDescriptor("GET", url, headers))

    async def read_bytes(self, url: URLTypes, headers: HeaderTypes = None) -> bytes:
        """GET `url` and return the raw body.

        Raises:
            HttpStatusError: If the status is not 2xx
        """
        async with await self._checked(RequestDescriptor("GET", url, headers)) as response:
            return await response.read()

    async def head(self, url: URLTypes, headers: HeaderTypes = None) -> httpx.Headers:
        """HEAD `url` and return the response headers.

        Raises:
            HttpStatusError: If the status is not 2xx
        """
        async with await self._checked(RequestDescriptor("HEAD", url, headers)) as response:
            return response.headers

    async def download(
        self,
        out: BinaryIO,
        url: URLTypes,
        headers: HeaderTypes = None,
        progress: Optional[ProgressCallback] = None,
    ) -> int:
        """GET `url` and stream the body into `out`.

        `out` is closed afterwards, also when the request fails.

        Returns:
            Number of bytes written

        Raises:
            HttpStatusError: If the status is not 2xx
        """
        try:
            response = await self.get_response(url, headers)
        except BaseException:
            out.close()
            raise
        return await stream_to(out, response, progress, self.chunk_size)

    async def download_to_file(
        self,
        dest: Union[str, Path],
        url: URLTypes,
        headers: HeaderTypes = None,
        progress: Optional[ProgressCallback] = None,
    ) -> Path:
        """GET `url` and stream the body into the file `dest`.

        Returns:
            Path to the downloaded file
        """
        dest = Path(dest)
        ensure_dir(dest.parent)
        await self.download(open(dest, "wb"), url, headers, progress)
        return dest
