"""Persistent cookie storage.

CookieStore keeps cookies indexed by URI in memory and mirrors them to a
JSON backing document:

    [
        {
            "uri": "http://example.com",
            "cookies": [
                {"name": "sessionid", "value": "abc123", "comment": null,
                 "commentURL": null, "discard": false, "domain": "example.com",
                 "maxAge": -1, "path": "/", "portlist": null, "secure": false,
                 "httpOnly": true, "version": 0}
            ]
        }
    ]

The document is read once by load() and written only by save().

CookieHandler is the side the HTTP engine talks to: it picks the cookies to
send with a request and stores the cookies set by a response.
"""

import json
import logging
import threading
import time
from email.utils import parsedate_to_datetime
from http.cookies import CookieError, SimpleCookie
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Set, Union

import httpx

from awaithttp.exceptions import MalformedCookieDocumentError
from awaithttp.models.cookie import CookieRecord, SESSION_MAX_AGE
from awaithttp.utils.file import atomic_write_text, ensure_dir

logger = logging.getLogger(__name__)

CookiePolicy = Callable[[str, CookieRecord], bool]


def normalize_uri(url: Union[str, httpx.URL]) -> str:
    """Return the URI cookies from `url` are filed under (http://host)."""
    host = httpx.URL(str(url)).host
    return f"http://{host.lower()}"


def domain_matches(domain: Optional[str], host: str) -> bool:
    """Check whether `host` falls within cookie `domain`."""
    if not domain:
        return False
    domain = domain.lower().lstrip(".")
    host = host.lower()
    return host == domain or host.endswith("." + domain)


def accept_all(uri: str, record: CookieRecord) -> bool:
    return True


def accept_none(uri: str, record: CookieRecord) -> bool:
    return False


def accept_original_server(uri: str, record: CookieRecord) -> bool:
    """Accept cookies whose domain covers the server that set them."""
    return domain_matches(record.domain, httpx.URL(uri).host)


ACCEPT_ALL = accept_all
ACCEPT_NONE = accept_none
ACCEPT_ORIGINAL_SERVER = accept_original_server


class CookieStore:
    """URI-indexed cookie multimap backed by a JSON document.

    All index operations are thread-safe; save() calls are serialized.
    """

    def __init__(self, cookie_file: Union[str, Path]):
        """Initialize an empty store; call load() to read the document.

        Args:
            cookie_file: Path to the backing document
        """
        self.cookie_file = Path(cookie_file)
        self._index: Dict[str, List[CookieRecord]] = {}
        self._lock = threading.RLock()
        self._save_lock = threading.Lock()

    @classmethod
    def open(cls, cookie_file: Union[str, Path]) -> "CookieStore":
        """Create a store and load its backing document."""
        return cls(cookie_file).load()

    def load(self) -> "CookieStore":
        """Read the backing document into memory.

        Creates an empty document when none exists.

        Returns:
            self

        Raises:
            MalformedCookieDocumentError: If the document cannot be parsed
        """
        if not self.cookie_file.exists():
            ensure_dir(self.cookie_file.parent)
            atomic_write_text(self.cookie_file, "[]")
            logger.info(f"Created cookie file: {self.cookie_file}")

        try:
            text = self.cookie_file.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise MalformedCookieDocumentError(f"Cookie file {self.cookie_file} is not valid UTF-8: {e}") from e
        entries = self._parse_document(text)

        with self._lock:
            self._index = {}
            for uri, records in entries:
                for record in records:
                    self._add_locked(uri, record)

        logger.info(f"Loaded {len(self)} cookies for {len(entries)} URIs from {self.cookie_file}")
        return self

    def _parse_document(self, text: str):
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedCookieDocumentError(f"Invalid cookie file {self.cookie_file}: {e}") from e

        if not isinstance(data, list):
            raise MalformedCookieDocumentError(f"Cookie file {self.cookie_file} must contain a JSON array")

        entries = []
        for entry in data:
            if not isinstance(entry, dict):
                raise MalformedCookieDocumentError(f"Cookie entry must be an object: {entry!r}")
            uri = entry.get("uri")
            cookies = entry.get("cookies")
            if not isinstance(uri, str) or not isinstance(cookies, list):
                raise MalformedCookieDocumentError(f"Cookie entry needs 'uri' and 'cookies': {entry!r}")
            entries.append((uri, [CookieRecord.from_dict(cookie) for cookie in cookies]))
        return entries

    def add(self, uri: str, record: CookieRecord):
        """Add a cookie under `uri`, replacing one with the same name, domain and path."""
        with self._lock:
            self._add_locked(uri, record)

    def _add_locked(self, uri: str, record: CookieRecord):
        records = self._index.setdefault(uri, [])
        records[:] = [existing for existing in records if existing.key != record.key]
        # maxAge 0 deletes the cookie
        if record.max_age != 0:
            records.append(record)
        if not records:
            del self._index[uri]

    def get(self, uri: str) -> List[CookieRecord]:
        """Return the cookies filed under exactly `uri`."""
        with self._lock:
            return list(self._index.get(uri, ()))

    def all_uris(self) -> Set[str]:
        """Return every URI that has at least one cookie."""
        with self._lock:
            return {uri for uri, records in self._index.items() if records}

    def cookies(self) -> List[CookieRecord]:
        """Return every stored cookie."""
        with self._lock:
            return [record for records in self._index.values() for record in records]

    def remove(self, uri: str, record: CookieRecord) -> bool:
        """Remove the cookie matching `record` from `uri`.

        Returns:
            True if a cookie was removed
        """
        with self._lock:
            records = self._index.get(uri)
            if not records:
                return False
            kept = [existing for existing in records if existing.key != record.key]
            removed = len(kept) != len(records)
            if kept:
                self._index[uri] = kept
            else:
                del self._index[uri]
            return removed

    def remove_all(self) -> bool:
        """Remove every cookie.

        Returns:
            True if the store was not empty
        """
        with self._lock:
            had_cookies = bool(self._index)
            self._index = {}
            return had_cookies

    def to_document(self) -> list:
        """Snapshot the store in backing-document layout, leaving out expired cookies."""
        now = time.time()
        document = []
        with self._lock:
            for uri, records in self._index.items():
                cookies = [record.to_dict() for record in records if not record.has_expired(now)]
                if cookies:
                    document.append({"uri": uri, "cookies": cookies})
        return document

    def save(self):
        """Write every cookie to the backing document.

        The document is replaced atomically, so readers never see a
        partially written file.
        """
        with self._save_lock:
            document = self.to_document()
            atomic_write_text(self.cookie_file, json.dumps(document, indent=4))
        logger.info(f"Flushed cookies for {len(document)} URIs to {self.cookie_file}")

    def __len__(self):
        with self._lock:
            return sum(len(records) for records in self._index.values())


def _default_path(url: httpx.URL) -> str:
    """Directory of the request path, used when Set-Cookie has no Path."""
    path = url.path or "/"
    if not path.startswith("/") or path.count("/") <= 1:
        return "/"
    return path[:path.rindex("/")]


def _max_age(morsel) -> int:
    if morsel["max-age"]:
        try:
            return int(morsel["max-age"])
        except ValueError:
            pass
    if morsel["expires"]:
        try:
            expires = parsedate_to_datetime(morsel["expires"])
        except (TypeError, ValueError):
            return SESSION_MAX_AGE
        return max(0, int(expires.timestamp() - time.time()))
    return SESSION_MAX_AGE


def _effective_port(url: httpx.URL) -> int:
    if url.port is not None:
        return url.port
    return 443 if url.scheme == "https" else 80


class CookieHandler:
    """Cookie policy capability exposed to the HTTP engine.

    Selects the cookies to attach to an outgoing request and files the
    cookies set by a response into the store, subject to `policy`.
    """

    def __init__(self, store: CookieStore, policy: CookiePolicy = ACCEPT_ALL):
        self.store = store
        self.policy = policy

    def cookies_for(self, url: Union[str, httpx.URL]) -> List[CookieRecord]:
        """Return the stored cookies that apply to `url`, longest path first."""
        url = httpx.URL(str(url))
        host = url.host
        path = url.path or "/"
        port = _effective_port(url)
        now = time.time()

        matched = []
        seen = set()
        for uri in self.store.all_uris():
            for record in self.store.get(uri):
                if record.has_expired(now) or record.key in seen:
                    continue
                domain = record.domain or httpx.URL(uri).host
                if not domain_matches(domain, host):
                    continue
                if record.path and not path.startswith(record.path):
                    continue
                if record.secure and url.scheme != "https":
                    continue
                ports = record.ports()
                if ports and port not in ports:
                    continue
                seen.add(record.key)
                matched.append(record)

        matched.sort(key=lambda record: len(record.path or ""), reverse=True)
        return matched

    def cookie_header(self, url: Union[str, httpx.URL]) -> Optional[str]:
        """Return the Cookie header value for `url`, or None if nothing applies."""
        cookies = self.cookies_for(url)
        if not cookies:
            return None
        return "; ".join(f"{record.name}={record.value}" for record in cookies)

    def store_from_response(self, url: Union[str, httpx.URL], set_cookie_headers: Iterable[str], version: int = 0) -> List[CookieRecord]:
        """Parse Set-Cookie values received from `url` and store the accepted ones.

        Args:
            url: URL of the response
            set_cookie_headers: Raw Set-Cookie header values
            version: 0 for Set-Cookie, 1 for Set-Cookie2

        Returns:
            The cookies that were stored
        """
        url = httpx.URL(str(url))
        uri = normalize_uri(url)
        stored = []
        for header in set_cookie_headers:
            for record in self._parse_set_cookie(url, header, version):
                if not self.policy(uri, record):
                    logger.debug(f"Cookie {record.name!r} from {uri} rejected by policy")
                    continue
                self.store.add(uri, record)
                stored.append(record)
        return stored

    def _parse_set_cookie(self, url: httpx.URL, header: str, version: int) -> List[CookieRecord]:
        parsed = SimpleCookie()
        try:
            parsed.load(header)
        except CookieError as e:
            logger.warning(f"Ignoring malformed Set-Cookie from {url.host}: {e}")
            return []

        records = []
        for name, morsel in parsed.items():
            records.append(CookieRecord(
                name=name,
                value=morsel.value,
                comment=morsel["comment"] or None,
                domain=morsel["domain"] or url.host,
                max_age=_max_age(morsel),
                path=morsel["path"] or _default_path(url),
                secure=bool(morsel["secure"]),
                http_only=bool(morsel["httponly"]),
                version=int(morsel["version"]) if str(morsel["version"]).isdigit() else version,
            ))
        return records

    def request_hook(self, request: httpx.Request):
        """httpx request event hook: attach matching cookies."""
        header = self.cookie_header(request.url)
        if header is None:
            return
        existing = request.headers.get("cookie")
        request.headers["Cookie"] = f"{existing}; {header}" if existing else header

    def response_hook(self, response: httpx.Response):
        """httpx response event hook: store cookies set by the response."""
        url = response.request.url
        self.store_from_response(url, response.headers.get_list("set-cookie"), version=0)
        self.store_from_response(url, response.headers.get_list("set-cookie2"), version=1)
