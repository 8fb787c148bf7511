"""The s3lite client: configuration, collaborators, and the request pipeline.

Every operation runs the same pipeline:

    build URL -> base request -> assemble headers -> sign -> dispatch

followed by decoding a success body or raising a mapped error. The operation
groups live in ``s3lite.apis`` and are exposed as ``client.service``,
``client.bucket``, and ``client.object``.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from typing import Any, TypeVar

from s3lite.apis.bucket import BucketApis
from s3lite.apis.object import ObjectApis
from s3lite.apis.service import ServiceApis
from s3lite.config import ClientConfig
from s3lite.dispatch import ConnectivityFailure, Dispatcher
from s3lite.errors import S3ClientError, map_error
from s3lite.headers import (
    HEADER_CONTENT_TYPE,
    HEADER_USER_AGENT,
    USER_AGENT,
    HeaderMap,
    amz_timestamp,
    assemble_headers,
)
from s3lite.signing import Signer, sign_request, signer_for
from s3lite.transport import HttpxTransport, Request, Response, Transport
from s3lite.urls import build_url
from s3lite.xml_utils import XmlCodec

T = TypeVar("T")


class S3Client:
    """Asyncio client for S3-compatible object storage.

    The configuration is immutable. Calls may run concurrently; each builds
    its own request and response and shares nothing but the configuration
    and the transport.

    Usage::

        config = ClientConfig(hostname="localhost", port=9000, protocol="http",
                              request_style="path", access_key="...", secret_key="...")
        async with S3Client(config) as s3:
            await s3.object.write("bucket", "hello.txt", b"hi", "text/plain")
            data = await s3.object.get("bucket", "hello.txt")

    Attributes:
        config: The client configuration.
        transport: The HTTP transport capability.
        signer: The signer used when credentials are configured.
        codec: The XML codec.
        logger: Where request and debug output is written.
        service: Service-level operations.
        bucket: Bucket-level operations.
        object: Object-level operations.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        transport: Transport | None = None,
        signer: Signer | None = None,
        codec: XmlCodec | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Client configuration; defaults to ``ClientConfig()``.
            transport: HTTP transport; defaults to a new ``HttpxTransport``
                owned (and closed) by this client.
            signer: Signer; defaults to the one matching
                ``config.signature_version``.
            codec: XML codec; defaults to ``XmlCodec()``.
            logger: Logger; defaults to the ``s3lite`` logger.
        """
        self.config = config or ClientConfig()
        self._owns_transport = transport is None
        self.transport: Transport = transport or HttpxTransport()
        self.signer: Signer = signer or signer_for(self.config.signature_version)
        self.codec = codec or XmlCodec()
        self.logger = logger or logging.getLogger("s3lite")
        self._dispatcher = Dispatcher(self.transport, self.logger)

        self.service = ServiceApis(self)
        self.bucket = BucketApis(self)
        self.object = ObjectApis(self)

    def __repr__(self) -> str:
        return f"S3Client({self.config!r})"

    async def __aenter__(self) -> "S3Client":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport:
            await self.transport.close()

    def with_config(self, **changes: Any) -> "S3Client":
        """Return a client with a changed configuration.

        The new client shares this client's transport and codec but does not
        own the transport. The signer is re-selected when the signature
        version changes.

        Raises:
            ConfigurationError: If a changed value is invalid.
        """
        config = self.config.replace(**changes)
        signer = self.signer
        if config.signature_version is not self.config.signature_version:
            signer = signer_for(config.signature_version)
        return S3Client(
            config=config,
            transport=self.transport,
            signer=signer,
            codec=self.codec,
            logger=self.logger,
        )

    # -- Pipeline --------------------------------------------------------------

    def build_url(
        self,
        bucket: str | None = None,
        key: str | None = None,
        version_id: str | None = None,
    ) -> str:
        """Render the request URL for this client's endpoint."""
        return build_url(self.config, bucket, key, version_id)

    def build_request(
        self,
        method: str,
        url: str,
        content_type: str | None = None,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> Request:
        """Create the base request with the standard headers.

        Caller-supplied headers are applied last and win on collision.
        """
        base = HeaderMap()
        base[HEADER_USER_AGENT] = USER_AGENT
        if content_type:
            base[HEADER_CONTENT_TYPE] = content_type
        if headers:
            base.update(headers)

        self.logger.debug("Built request: %s %s", method, url)
        return Request(
            method=method,
            url=url,
            headers=base,
            content_type=content_type,
            body=body,
        )

    async def execute(
        self,
        method: str,
        url: str,
        content_type: str | None = None,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
        timeout: float | None = None,
    ) -> Response:
        """Build, sign, and dispatch a request.

        Args:
            method: The HTTP method.
            url: The full request URL.
            content_type: The body content type, if any.
            headers: Extra request headers.
            body: The request body, if any.
            timeout: Per-call timeout; defaults to ``config.timeout``.

        Returns:
            The response, whatever its status.

        Raises:
            ConnectivityError: If no response was received.
        """
        timestamp = amz_timestamp()
        request = self.build_request(method, url, content_type, headers, body)
        request = dataclasses.replace(
            request,
            headers=assemble_headers(request.headers, method, url, body, timestamp),
        )
        request = sign_request(self.config, request, self.signer, timestamp, self.logger)

        result = await self._dispatcher.send(
            request, timeout if timeout is not None else self.config.timeout
        )
        if isinstance(result, ConnectivityFailure):
            raise map_error(None, url)
        return result

    def error_for(self, resp: Response, url: str, request_body: bytes | None = None) -> S3ClientError:
        """Map a non-success response to the error to raise."""
        return map_error(
            resp.status_code,
            url,
            request_body=request_body.decode("utf-8", errors="replace") if request_body else None,
            response_body=resp.text or None,
            codec=self.codec,
        )

    def decode(self, cls: type[T], resp: Response) -> T:
        """Decode a success body into ``cls``.

        Raises:
            DecodeError: If the body is not a valid ``cls`` document.
        """
        return self.codec.deserialize(cls, resp.text)
