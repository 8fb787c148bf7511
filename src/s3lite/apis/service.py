"""Service-level S3 operations."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING

from s3lite.models import ListAllMyBucketsResult

if TYPE_CHECKING:
    from s3lite.client import S3Client

logger = logging.getLogger(__name__)


class ServiceApis:
    """Operations addressed to the service endpoint rather than a bucket."""

    def __init__(self, client: S3Client) -> None:
        self._client = client

    async def list_buckets(
        self,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> ListAllMyBucketsResult:
        """List the buckets owned by the caller.

        Implements: GET /

        Raises:
            ConnectivityError: If no response was received.
            ProviderError: On a non-success status.
            DecodeError: If the success body is not a ListAllMyBucketsResult.
        """
        url = self._client.build_url()
        logger.debug("ListBuckets GET %s", url)

        resp = await self._client.execute("GET", url, headers=headers, timeout=timeout)
        if not resp.is_success:
            raise self._client.error_for(resp, url)

        return self._client.decode(ListAllMyBucketsResult, resp)
