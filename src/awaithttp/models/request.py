"""Request and response descriptors passed between the executor and the engine."""

import asyncio
import io
import os
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, BinaryIO, Iterator, Mapping, Optional, Union
from urllib.parse import urlencode

import httpx

from awaithttp.http.headers import HeaderTypes, as_headers
from awaithttp.http.ranges import ContentRange, UNKNOWN_SIZE

FORM_MEDIA_TYPE = "application/x-www-form-urlencoded"
DEFAULT_CHUNK_SIZE = 8192

_METHODS_WITHOUT_BODY = ("GET", "HEAD")


def _available(stream: BinaryIO) -> int:
    """Return the number of bytes left in `stream`, or UNKNOWN_SIZE."""
    try:
        return os.fstat(stream.fileno()).st_size - stream.tell()
    except (AttributeError, OSError):
        pass
    if isinstance(stream, io.BytesIO):
        return len(stream.getbuffer()) - stream.tell()
    return UNKNOWN_SIZE


@dataclass
class RequestBody:
    """A request entity with an optional media type.

    Attributes:
        content: Raw bytes, or a binary stream read lazily while sending
        media_type: Content-Type to send, or None to omit it
        content_length: Declared length, UNKNOWN_SIZE for chunked upload
    """

    content: Union[bytes, BinaryIO]
    media_type: Optional[str] = None
    content_length: int = UNKNOWN_SIZE

    @classmethod
    def of_bytes(cls, data: bytes, media_type: Optional[str] = None) -> "RequestBody":
        return cls(data, media_type, len(data))

    @classmethod
    def of_text(cls, text: str, media_type: Optional[str] = None) -> "RequestBody":
        return cls.of_bytes(text.encode("utf-8"), media_type)

    @classmethod
    def of_form(cls, form: Optional[Mapping[str, Any]] = None) -> "RequestBody":
        """Build a form-encoded body; values are converted with str()."""
        pairs = [(str(key), str(value)) for key, value in (form or {}).items()]
        return cls.of_bytes(urlencode(pairs).encode("ascii"), FORM_MEDIA_TYPE)

    @classmethod
    def of_stream(cls, stream: BinaryIO, media_type: Optional[str] = None) -> "RequestBody":
        """Build a body that streams from `stream` while the request is sent."""
        return cls(stream, media_type, _available(stream))

    @property
    def is_stream(self) -> bool:
        return not isinstance(self.content, (bytes, bytearray))

    def iter_content(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Union[bytes, Iterator[bytes]]:
        """Return the payload in the form httpx accepts as request content."""
        if not self.is_stream:
            return bytes(self.content)
        return iter(lambda: self.content.read(chunk_size), b"")


@dataclass
class RequestDescriptor:
    """An HTTP request before it is handed to the engine."""

    method: str
    url: Union[str, httpx.URL]
    headers: HeaderTypes = None
    body: Optional[RequestBody] = None

    def __post_init__(self):
        self.method = self.method.upper()
        self.url = httpx.URL(self.url)
        self.headers = as_headers(self.headers)
        if self.body is not None and self.method in _METHODS_WITHOUT_BODY:
            raise ValueError(f"method {self.method} must not have a request body")


@dataclass
class ResponseOutcome:
    """A received response whose body has not been consumed yet.

    Wraps a streamed httpx.Response. Body reads are moved off the event loop
    with asyncio.to_thread. Closing is idempotent and must happen exactly
    when the caller is done with the body.
    """

    response: httpx.Response
    request: Optional[RequestDescriptor] = field(default=None, repr=False)

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self.response.headers

    @property
    def url(self) -> httpx.URL:
        return self.response.url

    @property
    def is_successful(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def content_length(self) -> int:
        """Declared Content-Length, or UNKNOWN_SIZE when absent or invalid.

        A compressed body is decoded while it is read, so its wire length
        says nothing about the bytes delivered and is reported as unknown.
        """
        encoding = self.headers.get("content-encoding", "identity").strip().lower()
        if encoding not in ("", "identity"):
            return UNKNOWN_SIZE
        value = self.headers.get("content-length")
        try:
            return int(value) if value is not None else UNKNOWN_SIZE
        except ValueError:
            return UNKNOWN_SIZE

    @property
    def content_range(self) -> Optional[ContentRange]:
        value = self.headers.get("content-range")
        return ContentRange.parse(value) if value else None

    @property
    def is_closed(self) -> bool:
        return self.response.is_closed

    async def read(self) -> bytes:
        """Read the whole body and close the stream."""
        return await asyncio.to_thread(self.response.read)

    async def text(self) -> str:
        """Read the whole body as text and close the stream."""
        await self.read()
        return self.response.text

    async def iter_chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
        """Yield the body in chunks of at most `chunk_size` bytes, in order."""
        iterator = self.response.iter_bytes(chunk_size)
        while True:
            chunk = await asyncio.to_thread(next, iterator, None)
            if chunk is None:
                return
            yield chunk

    def close(self):
        self.response.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()
