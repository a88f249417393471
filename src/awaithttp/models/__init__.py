"""Data models for awaithttp."""

from awaithttp.models.cookie import CookieRecord, SESSION_MAX_AGE
from awaithttp.models.request import (
    RequestBody,
    RequestDescriptor,
    ResponseOutcome,
)

__all__ = [
    "CookieRecord",
    "SESSION_MAX_AGE",
    "RequestBody",
    "RequestDescriptor",
    "ResponseOutcome",
]
