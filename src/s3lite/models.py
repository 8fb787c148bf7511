"""Data model types for S3 request and response documents.

These dataclasses mirror the XML documents exchanged with an S3-compatible
service (bucket listings, the service bucket list, error bodies, bucket
creation) plus the object metadata returned by HEAD requests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Owner:
    """The owner of a bucket or object.

    Attributes:
        id: Canonical user ID.
        display_name: Display name of the owner.
    """

    id: str | None = None
    display_name: str | None = None


@dataclass
class Bucket:
    """A bucket entry in a ListAllMyBuckets result.

    Attributes:
        name: The bucket name.
        creation_date: When the bucket was created, if reported.
    """

    name: str
    creation_date: datetime | None = None


@dataclass
class ObjectMetadata:
    """Metadata for a single object.

    Populated from a ``Contents`` element of a bucket listing or from the
    headers of a HEAD request.

    Attributes:
        key: The object key.
        size: Size in bytes.
        content_type: MIME type, when known.
        etag: Entity tag as returned by the provider (usually quoted).
        last_modified: Last-modified timestamp, when the provider supplies one.
        storage_class: Storage class reported in listings.
        owner: Owner reported in listings.
    """

    key: str
    size: int = 0
    content_type: str | None = None
    etag: str | None = None
    last_modified: datetime | None = None
    storage_class: str | None = None
    owner: Owner | None = None

    def __post_init__(self) -> None:
        if self.size < 0:
            raise ValueError(f"Object size must be non-negative, got {self.size}")


@dataclass
class CommonPrefixes:
    """Key prefixes collapsed by a listing delimiter."""

    prefixes: list[str] = field(default_factory=list)


@dataclass
class ListBucketResult:
    """A page of a bucket listing.

    ``next_continuation_token`` (or ``next_marker`` for legacy listings) is
    the cursor for the next page. Its absence means the listing is complete.
    """

    name: str | None = None
    prefix: str | None = None
    marker: str | None = None
    next_marker: str | None = None
    continuation_token: str | None = None
    next_continuation_token: str | None = None
    start_after: str | None = None
    delimiter: str | None = None
    key_count: int = 0
    max_keys: int = 0
    is_truncated: bool = False
    encoding_type: str | None = None
    contents: list[ObjectMetadata] = field(default_factory=list)
    common_prefixes: CommonPrefixes = field(default_factory=CommonPrefixes)


@dataclass
class ListAllMyBucketsResult:
    """The result of listing all buckets owned by the caller."""

    owner: Owner | None = None
    buckets: list[Bucket] = field(default_factory=list)


@dataclass
class CreateBucketConfiguration:
    """Request body for bucket creation."""

    location_constraint: str = "us-west-1"


@dataclass
class ErrorDocument:
    """An S3 XML error body.

    Attributes:
        code: The provider error code (e.g. "NoSuchBucket").
        message: The provider error message.
        key: The offending key, if reported.
        version_id: The offending version id, if reported.
        request_id: The provider request id.
        resource: The offending resource, if reported.
        host_id: The provider host id, if reported.
    """

    code: str | None = None
    message: str | None = None
    key: str | None = None
    version_id: str | None = None
    request_id: str | None = None
    resource: str | None = None
    host_id: str | None = None
