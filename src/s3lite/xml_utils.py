"""S3 XML document rendering and parsing for s3lite.

``XmlCodec`` is the default implementation of the codec used by the client:
``serialize`` renders a model dataclass to XML text and ``deserialize``
parses XML text into a model dataclass. Parsing accepts documents with or
without the S3 namespace.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, TypeVar
from xml.etree import ElementTree
from xml.sax.saxutils import escape as _sax_escape

from s3lite.errors import DecodeError
from s3lite.models import (
    Bucket,
    CommonPrefixes,
    CreateBucketConfiguration,
    ErrorDocument,
    ListAllMyBucketsResult,
    ListBucketResult,
    ObjectMetadata,
    Owner,
)

S3_NAMESPACE = "http://s3.amazonaws.com/doc/2006-03-01/"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

T = TypeVar("T")


def _escape_xml(value: Any) -> str:
    """Escape special XML characters in a value.

    Args:
        value: The raw value to escape.

    Returns:
        The XML-safe escaped string.
    """
    return _sax_escape(str(value))


def _format_timestamp(value: datetime | None) -> str:
    if value is None:
        return ""
    return value.strftime("%Y-%m-%dT%H:%M:%S.000Z")


def _element(name: str, value: Any) -> str:
    return f"<{name}>{_escape_xml(value)}</{name}>"


# -- Rendering -----------------------------------------------------------------


def render_error(document: ErrorDocument) -> str:
    """Render an S3 XML error body.

    The Error element has NO XML namespace (unlike success responses).

    Args:
        document: The error to render.

    Returns:
        An XML string conforming to the S3 error response format.
    """
    parts = [XML_DECLARATION, "<Error>"]
    fields = (
        ("Code", document.code),
        ("Message", document.message),
        ("Key", document.key),
        ("VersionId", document.version_id),
        ("Resource", document.resource),
        ("RequestId", document.request_id),
        ("HostId", document.host_id),
    )
    for name, value in fields:
        if value:
            parts.append(_element(name, value))
    parts.append("</Error>")
    return "\n".join(parts)


def render_create_bucket_configuration(config: CreateBucketConfiguration) -> str:
    """Render a CreateBucketConfiguration request body."""
    return "\n".join(
        [
            XML_DECLARATION,
            f'<CreateBucketConfiguration xmlns="{S3_NAMESPACE}">',
            _element("LocationConstraint", config.location_constraint),
            "</CreateBucketConfiguration>",
        ]
    )


def _render_owner(owner: Owner | None) -> list[str]:
    if owner is None:
        return []
    parts = ["<Owner>"]
    if owner.id is not None:
        parts.append(_element("ID", owner.id))
    if owner.display_name is not None:
        parts.append(_element("DisplayName", owner.display_name))
    parts.append("</Owner>")
    return parts


def render_list_buckets(result: ListAllMyBucketsResult) -> str:
    """Render a ListAllMyBucketsResult document.

    Args:
        result: The bucket list to render.

    Returns:
        An XML string for ListAllMyBucketsResult.
    """
    parts = [XML_DECLARATION, f'<ListAllMyBucketsResult xmlns="{S3_NAMESPACE}">']
    parts.extend(_render_owner(result.owner))
    parts.append("<Buckets>")
    for bucket in result.buckets:
        parts.append("<Bucket>")
        parts.append(_element("Name", bucket.name))
        parts.append(_element("CreationDate", _format_timestamp(bucket.creation_date)))
        parts.append("</Bucket>")
    parts.append("</Buckets>")
    parts.append("</ListAllMyBucketsResult>")
    return "\n".join(parts)


def render_list_bucket_result(result: ListBucketResult) -> str:
    """Render a ListBucketResult document (v1 or v2 listing).

    Optional elements are only written when set, so the same function
    renders both marker-based and continuation-token-based pages.

    Args:
        result: The listing page to render.

    Returns:
        An XML string for ListBucketResult.
    """
    parts = [XML_DECLARATION, f'<ListBucketResult xmlns="{S3_NAMESPACE}">']

    optional_head = (
        ("Name", result.name),
        ("Prefix", result.prefix),
        ("Marker", result.marker),
        ("Delimiter", result.delimiter),
        ("EncodingType", result.encoding_type),
        ("StartAfter", result.start_after),
        ("ContinuationToken", result.continuation_token),
    )
    for name, value in optional_head:
        if value is not None:
            parts.append(_element(name, value))

    parts.append(f"<KeyCount>{result.key_count}</KeyCount>")
    parts.append(f"<MaxKeys>{result.max_keys}</MaxKeys>")
    parts.append(f"<IsTruncated>{str(result.is_truncated).lower()}</IsTruncated>")

    if result.next_marker:
        parts.append(_element("NextMarker", result.next_marker))
    if result.next_continuation_token:
        parts.append(_element("NextContinuationToken", result.next_continuation_token))

    for obj in result.contents:
        parts.append("<Contents>")
        parts.append(_element("Key", obj.key))
        if obj.last_modified is not None:
            parts.append(_element("LastModified", _format_timestamp(obj.last_modified)))
        if obj.etag is not None:
            parts.append(_element("ETag", obj.etag))
        parts.append(f"<Size>{obj.size}</Size>")
        if obj.storage_class is not None:
            parts.append(_element("StorageClass", obj.storage_class))
        parts.extend(_render_owner(obj.owner))
        parts.append("</Contents>")

    for prefix in result.common_prefixes.prefixes:
        parts.append("<CommonPrefixes>")
        parts.append(_element("Prefix", prefix))
        parts.append("</CommonPrefixes>")

    parts.append("</ListBucketResult>")
    return "\n".join(parts)


# -- Parsing -------------------------------------------------------------------


def _local_name(tag: str) -> str:
    """Strip a ``{namespace}`` prefix from an element tag."""
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def _find_elem(parent: ElementTree.Element, name: str) -> ElementTree.Element | None:
    """Find the first child with the given local name, ignoring namespaces.

    Args:
        parent: The parent XML element to search.
        name: The element name without namespace.

    Returns:
        The found element, or None.
    """
    for child in parent:
        if _local_name(child.tag) == name:
            return child
    return None


def _find_all(parent: ElementTree.Element, name: str) -> list[ElementTree.Element]:
    return [child for child in parent if _local_name(child.tag) == name]


def _text(parent: ElementTree.Element, name: str) -> str | None:
    elem = _find_elem(parent, name)
    if elem is None:
        return None
    return elem.text or ""


def _int(parent: ElementTree.Element, name: str, default: int = 0) -> int:
    value = _text(parent, name)
    if not value:
        return default
    try:
        return int(value.strip())
    except ValueError:
        raise DecodeError(f"Element {name} is not an integer: {value!r}")


def _bool(parent: ElementTree.Element, name: str) -> bool:
    value = _text(parent, name)
    return value is not None and value.strip().lower() == "true"


def _timestamp(parent: ElementTree.Element, name: str) -> datetime | None:
    value = _text(parent, name)
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError:
        raise DecodeError(f"Element {name} is not an ISO 8601 timestamp: {value!r}")


def _parse_root(text: str, expected: str) -> ElementTree.Element:
    """Parse XML text and check the root element name.

    Raises:
        DecodeError: If the text is not well-formed or the root differs.
    """
    try:
        root = ElementTree.fromstring(text)
    except ElementTree.ParseError as exc:
        raise DecodeError(f"Malformed XML: {exc}") from exc
    if _local_name(root.tag) != expected:
        raise DecodeError(f"Expected <{expected}> document, got <{_local_name(root.tag)}>")
    return root


def _parse_owner(parent: ElementTree.Element) -> Owner | None:
    elem = _find_elem(parent, "Owner")
    if elem is None:
        return None
    return Owner(id=_text(elem, "ID"), display_name=_text(elem, "DisplayName"))


def parse_error(text: str) -> ErrorDocument:
    """Parse an S3 XML error body."""
    root = _parse_root(text, "Error")
    return ErrorDocument(
        code=_text(root, "Code"),
        message=_text(root, "Message"),
        key=_text(root, "Key"),
        version_id=_text(root, "VersionId"),
        request_id=_text(root, "RequestId"),
        resource=_text(root, "Resource"),
        host_id=_text(root, "HostId"),
    )


def parse_list_buckets(text: str) -> ListAllMyBucketsResult:
    """Parse a ListAllMyBucketsResult document."""
    root = _parse_root(text, "ListAllMyBucketsResult")
    buckets: list[Bucket] = []
    container = _find_elem(root, "Buckets")
    if container is not None:
        for elem in _find_all(container, "Bucket"):
            buckets.append(
                Bucket(
                    name=_text(elem, "Name") or "",
                    creation_date=_timestamp(elem, "CreationDate"),
                )
            )
    return ListAllMyBucketsResult(owner=_parse_owner(root), buckets=buckets)


def parse_list_bucket_result(text: str) -> ListBucketResult:
    """Parse a ListBucketResult document (v1 or v2 listing)."""
    root = _parse_root(text, "ListBucketResult")

    contents: list[ObjectMetadata] = []
    for elem in _find_all(root, "Contents"):
        contents.append(
            ObjectMetadata(
                key=_text(elem, "Key") or "",
                size=_int(elem, "Size"),
                etag=_text(elem, "ETag"),
                last_modified=_timestamp(elem, "LastModified"),
                storage_class=_text(elem, "StorageClass"),
                owner=_parse_owner(elem),
            )
        )

    prefixes: list[str] = []
    for elem in _find_all(root, "CommonPrefixes"):
        prefixes.extend(p.text or "" for p in _find_all(elem, "Prefix"))

    return ListBucketResult(
        name=_text(root, "Name"),
        prefix=_text(root, "Prefix"),
        marker=_text(root, "Marker"),
        next_marker=_text(root, "NextMarker") or None,
        continuation_token=_text(root, "ContinuationToken"),
        next_continuation_token=_text(root, "NextContinuationToken") or None,
        start_after=_text(root, "StartAfter"),
        delimiter=_text(root, "Delimiter"),
        key_count=_int(root, "KeyCount", default=len(contents)),
        max_keys=_int(root, "MaxKeys"),
        is_truncated=_bool(root, "IsTruncated"),
        encoding_type=_text(root, "EncodingType"),
        contents=contents,
        common_prefixes=CommonPrefixes(prefixes=prefixes),
    )


def parse_create_bucket_configuration(text: str) -> CreateBucketConfiguration:
    """Parse a CreateBucketConfiguration request body."""
    root = _parse_root(text, "CreateBucketConfiguration")
    return CreateBucketConfiguration(location_constraint=_text(root, "LocationConstraint") or "")


_RENDERERS: dict[type, Callable[[Any], str]] = {
    ErrorDocument: render_error,
    CreateBucketConfiguration: render_create_bucket_configuration,
    ListAllMyBucketsResult: render_list_buckets,
    ListBucketResult: render_list_bucket_result,
}

_PARSERS: dict[type, Callable[[str], Any]] = {
    ErrorDocument: parse_error,
    CreateBucketConfiguration: parse_create_bucket_configuration,
    ListAllMyBucketsResult: parse_list_buckets,
    ListBucketResult: parse_list_bucket_result,
}


class XmlCodec:
    """Serializes model dataclasses to S3 XML and back."""

    def serialize(self, value: Any) -> str:
        """Render a model value as XML text.

        Raises:
            TypeError: If the value's type has no XML form.
        """
        renderer = _RENDERERS.get(type(value))
        if renderer is None:
            raise TypeError(f"No XML renderer for {type(value).__name__}")
        return renderer(value)

    def deserialize(self, cls: type[T], text: str | bytes) -> T:
        """Parse XML text into an instance of ``cls``.

        Raises:
            DecodeError: If the text is malformed or is not a ``cls`` document.
            TypeError: If ``cls`` has no XML form.
        """
        parser = _PARSERS.get(cls)
        if parser is None:
            raise TypeError(f"No XML parser for {cls.__name__}")
        if isinstance(text, bytes):
            text = text.decode("utf-8", errors="replace")
        if not text or not text.strip():
            raise DecodeError(f"Empty body for {cls.__name__}")
        try:
            return parser(text)
        except ValueError as exc:
            raise DecodeError(f"Invalid {cls.__name__} document: {exc}") from exc
