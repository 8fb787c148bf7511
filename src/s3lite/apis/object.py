"""Object-level S3 operations.

Implements the object operations:
    - HeadObject   (exists, get_metadata)
    - GetObject    (get)
    - PutObject    (write)
    - DeleteObject (delete)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING, BinaryIO

from s3lite.errors import DecodeError
from s3lite.headers import HEADER_AMZ_CONTENT_SHA256, sha256_stream
from s3lite.models import ObjectMetadata
from s3lite.validation import require_bucket, require_key

if TYPE_CHECKING:
    from s3lite.client import S3Client

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Custom metadata header some providers use to carry the source
# last-modified time of an object.
HEADER_META_LAST_MODIFIED = "x-amz-meta-s3b-last-modified"


def _parse_last_modified(value: str) -> datetime:
    """Parse an ISO 8601 or RFC 1123 timestamp.

    Raises:
        DecodeError: If the value is in neither format.
    """
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError:
        pass
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError):
        raise DecodeError(f"Unparseable {HEADER_META_LAST_MODIFIED} header: {value!r}")


class ObjectApis:
    """Operations on individual objects."""

    def __init__(self, client: S3Client) -> None:
        self._client = client

    async def exists(
        self,
        bucket: str,
        key: str,
        version_id: str | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> bool:
        """Check whether an object exists.

        Implements: HEAD /{bucket}/{key}

        Returns:
            True on a 2xx response, False on 404.

        Raises:
            InvalidArgumentError: If bucket or key is empty.
            ConnectivityError: If no response was received.
            ProviderError: On any other status (e.g. 403 for a protected
                object accessed anonymously).
        """
        require_bucket(bucket)
        require_key(key)
        url = self._client.build_url(bucket, key, version_id)
        logger.debug("Exists HEAD %s", url)

        resp = await self._client.execute("HEAD", url, headers=headers, timeout=timeout)
        if resp.is_success:
            return True
        if resp.status_code == 404:
            return False
        raise self._client.error_for(resp, url)

    async def get_metadata(
        self,
        bucket: str,
        key: str,
        version_id: str | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> ObjectMetadata:
        """Fetch an object's metadata without its body.

        Implements: HEAD /{bucket}/{key}

        The size comes from Content-Length, the entity tag from ETag, and the
        last-modified time only from the ``x-amz-meta-s3b-last-modified``
        header when the provider supplies it.

        Raises:
            InvalidArgumentError: If bucket or key is empty.
            ConnectivityError: If no response was received.
            ProviderError: On a non-success status.
            DecodeError: If the last-modified header cannot be parsed.
        """
        require_bucket(bucket)
        require_key(key)
        url = self._client.build_url(bucket, key, version_id)
        logger.debug("GetMetadata HEAD %s", url)

        resp = await self._client.execute("HEAD", url, headers=headers, timeout=timeout)
        if not resp.is_success:
            raise self._client.error_for(resp, url)

        last_modified = None
        raw_last_modified = resp.headers.get(HEADER_META_LAST_MODIFIED)
        if raw_last_modified:
            last_modified = _parse_last_modified(raw_last_modified)

        return ObjectMetadata(
            key=key,
            size=resp.content_length or 0,
            content_type=resp.content_type,
            etag=resp.headers.get("etag"),
            last_modified=last_modified,
        )

    async def get(
        self,
        bucket: str,
        key: str,
        version_id: str | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> bytes:
        """Read an object's data.

        Implements: GET /{bucket}/{key}

        Raises:
            InvalidArgumentError: If bucket or key is empty.
            ConnectivityError: If no response was received.
            ProviderError: On a non-success status.
        """
        require_bucket(bucket)
        require_key(key)
        url = self._client.build_url(bucket, key, version_id)
        logger.debug("Get GET %s", url)

        resp = await self._client.execute("GET", url, headers=headers, timeout=timeout)
        if not resp.is_success:
            raise self._client.error_for(resp, url)
        return resp.body

    async def write(
        self,
        bucket: str,
        key: str,
        data: bytes | BinaryIO | None,
        content_type: str = DEFAULT_CONTENT_TYPE,
        version_id: str | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> None:
        """Write an object.

        Implements: PUT /{bucket}/{key}

        A None or zero-length body is sent body-less with the empty-payload
        content hash. A seekable binary stream is hashed and read in
        ``config.stream_buffer_size`` chunks.

        Raises:
            InvalidArgumentError: If bucket or key is empty.
            ConnectivityError: If no response was received.
            ProviderError: On a non-success status.
        """
        require_bucket(bucket)
        require_key(key)
        if hasattr(data, "read"):
            stream = data
            buffer_size = self._client.config.stream_buffer_size
            content_hash = sha256_stream(stream, buffer_size)
            stream.seek(0)
            data = b"".join(iter(lambda: stream.read(buffer_size), b""))
            headers = {**(headers or {}), HEADER_AMZ_CONTENT_SHA256: content_hash}
        data = data or b""
        url = self._client.build_url(bucket, key, version_id)
        logger.debug("Write PUT %s (%d bytes)", url, len(data))

        resp = await self._client.execute(
            "PUT",
            url,
            content_type=content_type,
            headers=headers,
            body=data,
            timeout=timeout,
        )
        if not resp.is_success:
            raise self._client.error_for(resp, url)

    async def delete(
        self,
        bucket: str,
        key: str,
        version_id: str | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> None:
        """Delete an object.

        Implements: DELETE /{bucket}/{key}

        Raises:
            InvalidArgumentError: If bucket or key is empty.
            ConnectivityError: If no response was received.
            ProviderError: On a non-success status.
        """
        require_bucket(bucket)
        require_key(key)
        url = self._client.build_url(bucket, key, version_id)
        logger.debug("Delete DELETE %s", url)

        resp = await self._client.execute("DELETE", url, headers=headers, timeout=timeout)
        if not resp.is_success:
            raise self._client.error_for(resp, url)
