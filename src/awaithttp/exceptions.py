"""Exception types raised by awaithttp."""

import traceback
from typing import Optional


class AwaitHttpError(Exception):
    """Base class for all awaithttp errors."""


class TransportError(AwaitHttpError, IOError):
    """Raised when the HTTP engine reports a network-level failure.

    Covers connection, timeout, TLS and DNS failures as well as an engine
    call that was cancelled before it produced a response.

    Attributes:
        call_stack: Call site captured when stack recording is enabled,
            otherwise None
    """

    def __init__(self, message: str, call_stack: Optional[traceback.StackSummary] = None):
        super().__init__(message)
        self.call_stack = call_stack

    def format_call_stack(self) -> str:
        """Return the recorded call site as text (empty if none was recorded)."""
        if self.call_stack is None:
            return ""
        return "".join(self.call_stack.format())


class HttpStatusError(AwaitHttpError, IOError):
    """Raised by status-checked requests when the response is not 2xx.

    Attributes:
        status_code: HTTP status code of the response
        body: Response body text, or None if it could not be read
        url: Requested URL
        response: The (already closed) response outcome
    """

    def __init__(self, status_code: int, body: Optional[str] = None, url: Optional[str] = None, response=None):
        message = f"HTTP {status_code}"
        if url:
            message += f" for {url}"
        if body:
            message += f": {body}"
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.url = url
        self.response = response


class MalformedCookieDocumentError(AwaitHttpError, ValueError):
    """Raised when the cookie backing document exists but cannot be parsed."""


class ConfigurationError(AwaitHttpError, ValueError):
    """Raised for invalid startup configuration."""


class ContentRangeError(AwaitHttpError, ValueError):
    """Raised when a Content-Range value cannot be parsed."""
