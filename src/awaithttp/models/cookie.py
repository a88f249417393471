"""Cookie record model and its backing-document representation."""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from awaithttp.exceptions import MalformedCookieDocumentError

SESSION_MAX_AGE = -1  # cookie lives until the session ends

# Field name in the backing document -> attribute name
_DOCUMENT_FIELDS = {
    "name": "name",
    "value": "value",
    "comment": "comment",
    "commentURL": "comment_url",
    "discard": "discard",
    "domain": "domain",
    "maxAge": "max_age",
    "path": "path",
    "portlist": "port_list",
    "secure": "secure",
    "httpOnly": "http_only",
    "version": "version",
}
_OPTIONAL_TEXT = ("comment", "commentURL", "domain", "path", "portlist")
_FLAGS = ("discard", "secure", "httpOnly")


@dataclass
class CookieRecord:
    """A single cookie with every attribute the backing document keeps.

    Attributes:
        name: Cookie name (required)
        value: Cookie value, possibly empty
        comment: Comment attribute (RFC 2965)
        comment_url: CommentURL attribute (RFC 2965)
        discard: Discard on session end
        domain: Domain the cookie applies to
        max_age: Lifetime in seconds, SESSION_MAX_AGE for a session cookie
        path: Path the cookie applies to
        port_list: Comma separated ports the cookie is limited to
        secure: Only sent over HTTPS
        http_only: Not exposed to scripts
        version: 0 for Netscape cookies, 1 for RFC 2965 cookies
    """

    name: str
    value: Optional[str] = ""
    comment: Optional[str] = None
    comment_url: Optional[str] = None
    discard: bool = False
    domain: Optional[str] = None
    max_age: int = SESSION_MAX_AGE
    path: Optional[str] = None
    port_list: Optional[str] = None
    secure: bool = False
    http_only: bool = False
    version: int = 1
    created_at: float = field(default_factory=time.time, compare=False, repr=False)

    def __post_init__(self):
        if not self.name:
            raise ValueError("cookie name is required")
        if self.value is None:
            self.value = ""

    @property
    def key(self):
        """Identity used to replace an existing cookie."""
        return (
            self.name.lower(),
            (self.domain or "").lower(),
            self.path,
        )

    def has_expired(self, now: Optional[float] = None) -> bool:
        """Return True when max_age has elapsed since the record was created."""
        if self.max_age == SESSION_MAX_AGE:
            return False
        if self.max_age <= 0:
            return True
        now = time.time() if now is None else now
        return now - self.created_at > self.max_age

    def ports(self):
        """Return the port list as integers (empty when unrestricted)."""
        if not self.port_list:
            return []
        return [int(port) for port in self.port_list.split(",") if port.strip().isdigit()]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the backing document layout."""
        return {
            document_name: getattr(self, attribute)
            for document_name, attribute in _DOCUMENT_FIELDS.items()
        }

    @classmethod
    def from_dict(cls, data: Any) -> "CookieRecord":
        """Deserialize from the backing document layout.

        Raises:
            MalformedCookieDocumentError: If a field is missing or has the
                wrong type
        """
        if not isinstance(data, dict):
            raise MalformedCookieDocumentError(f"cookie entry must be an object, got {type(data).__name__}")

        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise MalformedCookieDocumentError(f"cookie name must be a non-empty string: {name!r}")

        value = data.get("value")
        if value is not None and not isinstance(value, str):
            raise MalformedCookieDocumentError(f"cookie {name!r}: value must be a string")

        for document_name in _OPTIONAL_TEXT:
            if data.get(document_name) is not None and not isinstance(data[document_name], str):
                raise MalformedCookieDocumentError(f"cookie {name!r}: {document_name} must be a string or null")

        for document_name in _FLAGS:
            if not isinstance(data.get(document_name), bool):
                raise MalformedCookieDocumentError(f"cookie {name!r}: {document_name} must be a boolean")

        max_age = data.get("maxAge")
        if not isinstance(max_age, int) or isinstance(max_age, bool):
            raise MalformedCookieDocumentError(f"cookie {name!r}: maxAge must be an integer")

        version = data.get("version", 1)
        if not isinstance(version, int) or isinstance(version, bool):
            raise MalformedCookieDocumentError(f"cookie {name!r}: version must be an integer")

        return cls(
            name=name,
            value=value,
            comment=data.get("comment"),
            comment_url=data.get("commentURL"),
            discard=data["discard"],
            domain=data.get("domain"),
            max_age=max_age,
            path=data.get("path"),
            port_list=data.get("portlist"),
            secure=data["secure"],
            http_only=data["httpOnly"],
            version=version,
        )
