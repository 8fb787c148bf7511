"""Canonical request header assembly.

The signer and the transport must see the same header names, values, and
order, otherwise the provider computes a different signature. Headers are
therefore kept in a ``HeaderMap``: one value per case-insensitive name,
iterated in case-insensitive ordinal order.
"""

import hashlib
import logging
from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from datetime import datetime, timezone
from typing import BinaryIO
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

HEADER_HOST = "host"
HEADER_AMZ_DATE = "x-amz-date"
HEADER_AMZ_CONTENT_SHA256 = "x-amz-content-sha256"
HEADER_AUTHORIZATION = "Authorization"
HEADER_CONTENT_TYPE = "Content-Type"
HEADER_USER_AGENT = "User-Agent"
USER_AGENT = "s3lite"

EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
TIMESTAMP_FORMAT_COMPACT = "%Y%m%dT%H%M%SZ"

_DEFAULT_PORTS = {"http": 80, "https": 443}


class HeaderMap(MutableMapping[str, str]):
    """A case-insensitive header map with deterministic ordering.

    Lookups, membership, and deletion ignore case. Setting an existing
    name replaces its value and adopts the newly written casing. Iteration
    yields names sorted by their lowercase form.
    """

    def __init__(
        self,
        headers: Mapping[str, str] | Iterable[tuple[str, str]] | None = None,
    ) -> None:
        self._store: dict[str, tuple[str, str]] = {}
        if headers is not None:
            self.update(headers)

    def __setitem__(self, name: str, value: str) -> None:
        self._store[name.lower()] = (name, str(value))

    def __getitem__(self, name: str) -> str:
        return self._store[name.lower()][1]

    def __delitem__(self, name: str) -> None:
        del self._store[name.lower()]

    def __iter__(self) -> Iterator[str]:
        for lower in sorted(self._store):
            yield self._store[lower][0]

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._store

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mapping):
            return NotImplemented
        return list(self.lower_items()) == list(HeaderMap(other).lower_items())

    def __repr__(self) -> str:
        return f"HeaderMap({dict(self.items())!r})"

    def lower_items(self) -> Iterator[tuple[str, str]]:
        """Yield (lowercase name, value) pairs in sorted order."""
        for lower in sorted(self._store):
            yield lower, self._store[lower][1]

    def copy(self) -> "HeaderMap":
        return HeaderMap(self.items())


def payload_hash(body: bytes | None) -> str:
    """Return the lowercase hex SHA-256 of a request body.

    An absent or empty body hashes to the well-known empty digest.
    """
    if not body:
        return EMPTY_SHA256
    return hashlib.sha256(body).hexdigest()


def sha256_stream(stream: BinaryIO | None, buffer_size: int = 65536) -> str:
    """Return the hex SHA-256 of a seekable binary stream.

    The stream is rewound before reading and read in ``buffer_size`` chunks.
    A None stream hashes to the empty digest.
    """
    if stream is None:
        return EMPTY_SHA256
    stream.seek(0)
    digest = hashlib.sha256()
    while True:
        chunk = stream.read(buffer_size)
        if not chunk:
            break
        digest.update(chunk)
    return digest.hexdigest()


def host_header(url: str) -> str:
    """Return the canonical ``host`` header value for a URL.

    The port is omitted when it is the scheme's default (80 for http, 443
    for https) because signature verification expects that form.
    """
    parts = urlsplit(url)
    host = parts.hostname or ""
    port = parts.port
    if port is None or _DEFAULT_PORTS.get(parts.scheme) == port:
        return host
    return f"{host}:{port}"


def amz_timestamp(now: datetime | None = None) -> str:
    """Format a UTC timestamp as ``YYYYMMDDTHHMMSSZ``."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT_COMPACT)


def assemble_headers(
    base: Mapping[str, str] | None,
    method: str,
    url: str,
    body: bytes | None = None,
    timestamp: str | None = None,
) -> HeaderMap:
    """Build the sorted header set for a request.

    Adds ``host``, ``x-amz-date``, and ``x-amz-content-sha256`` unless the
    caller supplied them; caller values always win.

    Args:
        base: Headers already on the request (User-Agent, Content-Type,
            caller extras).
        method: The HTTP method.
        url: The full request URL.
        body: The request body, if any.
        timestamp: Compact request timestamp; defaults to now.

    Returns:
        A HeaderMap sorted by case-insensitive header name.
    """
    headers = HeaderMap(base or {})
    logger.debug("Assembling headers for %s %s", method.upper(), url)

    if HEADER_HOST not in headers:
        headers[HEADER_HOST] = host_header(url)
    if HEADER_AMZ_DATE not in headers:
        headers[HEADER_AMZ_DATE] = timestamp or amz_timestamp()
    if HEADER_AMZ_CONTENT_SHA256 not in headers:
        headers[HEADER_AMZ_CONTENT_SHA256] = payload_hash(body)

    return headers
