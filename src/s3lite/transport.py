"""HTTP transport capability and request/response descriptors.

``Transport`` is the seam between the request pipeline and the network.
``HttpxTransport`` is the default implementation on top of
``httpx.AsyncClient``; tests plug in ``httpx.MockTransport`` through it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol

import httpx

from s3lite.headers import HEADER_CONTENT_TYPE, HeaderMap

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """No HTTP response could be obtained (connect, DNS, TLS, or timeout)."""


@dataclass(frozen=True)
class Request:
    """A request built for a single call.

    Attributes:
        method: The HTTP method.
        url: The full request URL.
        headers: Request headers, sorted case-insensitively.
        content_type: The body content type, if any.
        body: The request body, if any.
    """

    method: str
    url: str
    headers: HeaderMap = field(default_factory=HeaderMap)
    content_type: str | None = None
    body: bytes | None = None

    @property
    def has_body(self) -> bool:
        return bool(self.body)

    @property
    def body_text(self) -> str | None:
        if self.body is None:
            return None
        return self.body.decode("utf-8", errors="replace")


@dataclass
class Response:
    """A response received from the transport.

    ``end`` is stamped by the dispatcher as soon as the transport returns.
    """

    status_code: int
    headers: HeaderMap = field(default_factory=HeaderMap)
    body: bytes = b""
    start: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    end: datetime | None = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code <= 299

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    @property
    def content_length(self) -> int | None:
        value = self.headers.get("content-length")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    @property
    def content_type(self) -> str | None:
        return self.headers.get(HEADER_CONTENT_TYPE)

    @property
    def elapsed_ms(self) -> float:
        if self.end is None:
            return 0.0
        return (self.end - self.start).total_seconds() * 1000


class Transport(Protocol):
    """Sends one HTTP request and returns its response."""

    async def send(
        self,
        method: str,
        url: str,
        headers: HeaderMap,
        body: bytes | None = None,
        timeout: float | None = None,
    ) -> Response:
        """Send a request.

        Raises:
            TransportError: If no response was received.
        """
        ...

    async def close(self) -> None:
        """Release any connections held by the transport."""
        ...


class HttpxTransport:
    """Transport backed by ``httpx.AsyncClient``.

    Redirects are not followed, so 3xx responses reach the error mapper.

    Attributes:
        client: The underlying httpx client.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        verify: bool = True,
    ) -> None:
        """Initialize the transport.

        Args:
            client: An existing httpx client to use. The caller keeps
                ownership and must close it.
            transport: An httpx transport for a newly created client, e.g.
                ``httpx.MockTransport`` in tests.
            verify: Whether to verify TLS certificates.
        """
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            transport=transport,
            verify=verify,
            follow_redirects=False,
            timeout=None,
        )

    async def send(
        self,
        method: str,
        url: str,
        headers: HeaderMap,
        body: bytes | None = None,
        timeout: float | None = None,
    ) -> Response:
        start = datetime.now(timezone.utc)
        request = self.client.build_request(
            method,
            url,
            headers=list(headers.items()),
            content=body if body else None,
            timeout=timeout,
        )
        try:
            resp = await self.client.send(request)
        except httpx.TransportError as exc:
            logger.debug("Transport failure for %s %s: %s", method, url, exc)
            raise TransportError(str(exc) or type(exc).__name__) from exc

        return Response(
            status_code=resp.status_code,
            headers=HeaderMap(resp.headers.items()),
            body=resp.content,
            start=start,
        )

    async def close(self) -> None:
        """Close the httpx client if this transport created it."""
        if self._owns_client:
            await self.client.aclose()
