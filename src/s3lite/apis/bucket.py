"""Bucket-level S3 operations.

Implements the bucket operations:
    - HeadBucket      (exists)
    - ListObjects     (list, iter_objects)
    - CreateBucket    (write)
    - DeleteBucket    (delete)
"""

from __future__ import annotations

import logging
import urllib.parse
from collections.abc import AsyncIterator, Mapping
from typing import TYPE_CHECKING

from s3lite.errors import InvalidArgumentError
from s3lite.models import CreateBucketConfiguration, ListBucketResult, ObjectMetadata
from s3lite.urls import append_query
from s3lite.validation import require_bucket, validate_bucket_name

if TYPE_CHECKING:
    from s3lite.client import S3Client

logger = logging.getLogger(__name__)

CONTENT_TYPE_XML = "application/xml"


class BucketApis:
    """Operations on a single bucket."""

    def __init__(self, client: S3Client) -> None:
        self._client = client

    async def exists(
        self,
        bucket: str,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> bool:
        """Check whether a bucket exists.

        Implements: HEAD /{bucket}

        Returns:
            True on a 2xx response, False on 404.

        Raises:
            InvalidArgumentError: If bucket is empty.
            ConnectivityError: If no response was received.
            ProviderError: On any other status.
        """
        require_bucket(bucket)
        url = self._client.build_url(bucket)
        logger.debug("Exists HEAD %s", url)

        resp = await self._client.execute("HEAD", url, headers=headers, timeout=timeout)
        if resp.is_success:
            return True
        if resp.status_code == 404:
            return False
        raise self._client.error_for(resp, url)

    async def list(
        self,
        bucket: str,
        prefix: str | None = None,
        marker: str | None = None,
        continuation_token: str | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> ListBucketResult:
        """List one page of a bucket's contents.

        Implements: GET /{bucket}?prefix=..&marker=..&continuation-token=..

        Query values are appended raw, so callers must pre-encode reserved
        query characters. Pass ``next_continuation_token`` from the previous
        page as ``continuation_token`` until it comes back absent.

        Args:
            bucket: The bucket name.
            prefix: Only list keys starting with this prefix.
            marker: Legacy start marker.
            continuation_token: Cursor returned by the previous page.
            headers: Extra request headers.
            timeout: Per-call timeout in seconds.

        Returns:
            The listing page.

        Raises:
            InvalidArgumentError: If bucket is empty.
            ConnectivityError: If no response was received.
            ProviderError: On a non-success status.
            DecodeError: If the body is not a ListBucketResult.
        """
        require_bucket(bucket)
        url = append_query(
            self._client.build_url(bucket),
            [
                ("prefix", prefix),
                ("marker", marker),
                ("continuation-token", continuation_token),
            ],
        )
        logger.debug("List GET %s", url)

        resp = await self._client.execute("GET", url, headers=headers, timeout=timeout)
        if not resp.is_success:
            raise self._client.error_for(resp, url)

        return self._client.decode(ListBucketResult, resp)

    async def iter_objects(
        self,
        bucket: str,
        prefix: str | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> AsyncIterator[ObjectMetadata]:
        """Yield every object in a bucket, following continuation tokens.

        Prefix and tokens are percent-encoded before being appended. The loop
        ends only when a page comes back without a continuation token; there
        is no page limit, so a server that never stops issuing tokens keeps
        this iterator running until the caller stops consuming it.
        """
        encoded_prefix = urllib.parse.quote(prefix, safe="") if prefix else None
        token: str | None = None
        while True:
            page = await self.list(
                bucket,
                prefix=encoded_prefix,
                continuation_token=urllib.parse.quote(token, safe="") if token else None,
                headers=headers,
                timeout=timeout,
            )
            for obj in page.contents:
                yield obj
            if not page.next_continuation_token:
                return
            logger.debug(
                "Continuation token %s (%d objects in batch)",
                page.next_continuation_token,
                len(page.contents),
            )
            token = page.next_continuation_token

    async def write(
        self,
        bucket: str,
        region: str,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> None:
        """Create a bucket in a region.

        Implements: PUT /{bucket} with a CreateBucketConfiguration body.

        Raises:
            InvalidArgumentError: If the bucket name is invalid or region is empty.
            ConnectivityError: If no response was received.
            ProviderError: On a non-success status.
        """
        require_bucket(bucket)
        validate_bucket_name(bucket)
        if not region:
            raise InvalidArgumentError("region must not be empty")

        url = self._client.build_url(bucket)
        body = self._client.codec.serialize(
            CreateBucketConfiguration(location_constraint=region)
        ).encode("utf-8")
        logger.debug("Write PUT %s", url)

        resp = await self._client.execute(
            "PUT",
            url,
            content_type=CONTENT_TYPE_XML,
            headers=headers,
            body=body,
            timeout=timeout,
        )
        if not resp.is_success:
            raise self._client.error_for(resp, url, request_body=body)

    async def delete(
        self,
        bucket: str,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> None:
        """Delete an empty bucket.

        Implements: DELETE /{bucket}

        Raises:
            InvalidArgumentError: If bucket is empty.
            ConnectivityError: If no response was received.
            ProviderError: On a non-success status.
        """
        require_bucket(bucket)
        url = self._client.build_url(bucket)
        logger.debug("Delete DELETE %s", url)

        resp = await self._client.execute("DELETE", url, headers=headers, timeout=timeout)
        if not resp.is_success:
            raise self._client.error_for(resp, url)
