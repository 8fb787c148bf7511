"""Request signing for s3lite.

Signing is a pluggable capability: a ``Signer`` turns a canonical request
description into an ``Authorization`` header value. ``SigV4Signer``
implements AWS Signature Version 4 and ``SigV2Signer`` the legacy version 2
scheme. ``sign_request`` decides between anonymous and authenticated mode and
installs the result.

References:
    - https://docs.aws.amazon.com/AmazonS3/latest/API/sig-v4-authenticating-requests.html
    - https://docs.aws.amazon.com/AmazonS3/latest/userguide/RESTAuthentication.html
"""

import base64
import dataclasses
import hashlib
import hmac
import logging
import re
import urllib.parse
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

from s3lite.config import ClientConfig, SignatureVersion
from s3lite.headers import (
    HEADER_AMZ_CONTENT_SHA256,
    HEADER_AMZ_DATE,
    HEADER_AUTHORIZATION,
    HEADER_CONTENT_TYPE,
    HeaderMap,
    payload_hash,
)
from s3lite.transport import Request

logger = logging.getLogger(__name__)

# Constants
ALGORITHM = "AWS4-HMAC-SHA256"
KEY_PREFIX = "AWS4"
SCOPE_TERMINATOR = "aws4_request"
SERVICE_NAME = "s3"

# Query parameters that are part of the V2 canonical resource.
V2_SUB_RESOURCES = frozenset(
    {
        "acl",
        "cors",
        "delete",
        "lifecycle",
        "location",
        "logging",
        "notification",
        "partNumber",
        "policy",
        "requestPayment",
        "tagging",
        "torrent",
        "uploadId",
        "uploads",
        "versionId",
        "versioning",
        "versions",
        "website",
    }
)


@dataclass(frozen=True)
class SignatureResult:
    """The output of a signer.

    ``authorization`` is installed verbatim on the request. ``str()`` gives
    the full diagnostic form, which includes secret-derived intermediate
    values and must only be logged when signature debugging is enabled.

    Attributes:
        authorization: The Authorization header value.
        signature: The hex (V4) or base64 (V2) signature.
        canonical_request: The canonical request string (V4 only).
        string_to_sign: The string that was signed.
        signed_headers: Semicolon-separated signed header names (V4 only).
    """

    authorization: str
    signature: str
    string_to_sign: str
    canonical_request: str = ""
    signed_headers: str = ""

    def __str__(self) -> str:
        lines = ["Signature result:"]
        if self.canonical_request:
            lines += ["| Canonical request:", self.canonical_request]
        lines += ["| String to sign:", self.string_to_sign]
        if self.signed_headers:
            lines.append(f"| Signed headers: {self.signed_headers}")
        lines.append(f"| Signature: {self.signature}")
        lines.append(f"| Authorization: {self.authorization}")
        return "\n".join(lines)


class Signer(Protocol):
    """Computes the Authorization header for a request."""

    def sign(
        self,
        timestamp: str,
        method: str,
        url: str,
        access_key: str,
        secret_key: str,
        region: str,
        service: str,
        headers: Mapping[str, str],
        body: bytes | None,
    ) -> SignatureResult:
        """Sign a request.

        Args:
            timestamp: Compact request timestamp (YYYYMMDDTHHMMSSZ).
            method: Upper-case HTTP method.
            url: The full request URL.
            access_key: The access key id.
            secret_key: The secret access key.
            region: The signing region.
            service: The service name, ``s3``.
            headers: The canonical sorted headers that will be sent.
            body: The request body, if any.

        Returns:
            The signature result.
        """
        ...


class SigV4Signer:
    """AWS Signature Version 4 (AWS4-HMAC-SHA256) signer.

    Every header in the supplied map is signed.
    """

    def sign(
        self,
        timestamp: str,
        method: str,
        url: str,
        access_key: str,
        secret_key: str,
        region: str,
        service: str,
        headers: Mapping[str, str],
        body: bytes | None,
    ) -> SignatureResult:
        parts = urllib.parse.urlsplit(url)
        date = timestamp[:8]

        lower_headers = {name.lower(): value for name, value in headers.items()}
        content_hash = lower_headers.get(HEADER_AMZ_CONTENT_SHA256) or payload_hash(body)
        signed_headers = sorted(lower_headers)

        canonical_request = build_canonical_request(
            method=method,
            uri=urllib.parse.unquote(parts.path),
            query_string=parts.query,
            headers=lower_headers,
            signed_headers=signed_headers,
            payload_hash=content_hash,
        )
        scope = f"{date}/{region}/{service}/{SCOPE_TERMINATOR}"
        string_to_sign = build_string_to_sign(timestamp, scope, canonical_request)
        signing_key = derive_signing_key(secret_key, date, region, service)
        signature = compute_signature(signing_key, string_to_sign)

        signed_headers_str = ";".join(signed_headers)
        authorization = (
            f"{ALGORITHM} Credential={access_key}/{scope}, "
            f"SignedHeaders={signed_headers_str}, Signature={signature}"
        )
        return SignatureResult(
            authorization=authorization,
            signature=signature,
            string_to_sign=string_to_sign,
            canonical_request=canonical_request,
            signed_headers=signed_headers_str,
        )


class SigV2Signer:
    """Legacy AWS Signature Version 2 (HMAC-SHA1) signer.

    The region and service are not part of a V2 signature and are ignored.
    """

    def sign(
        self,
        timestamp: str,
        method: str,
        url: str,
        access_key: str,
        secret_key: str,
        region: str,
        service: str,
        headers: Mapping[str, str],
        body: bytes | None,
    ) -> SignatureResult:
        header_map = HeaderMap(headers)
        date = "" if HEADER_AMZ_DATE in header_map else header_map.get("date", timestamp)

        amz_lines = [
            f"{name}:{_trim_header_value(value)}\n"
            for name, value in header_map.lower_items()
            if name.startswith("x-amz-")
        ]
        string_to_sign = (
            f"{method}\n"
            f"{header_map.get('content-md5', '')}\n"
            f"{header_map.get(HEADER_CONTENT_TYPE, '')}\n"
            f"{date}\n"
            f"{''.join(amz_lines)}"
            f"{_v2_canonical_resource(url)}"
        )
        digest = hmac.new(
            secret_key.encode("utf-8"), string_to_sign.encode("utf-8"), hashlib.sha1
        ).digest()
        signature = base64.b64encode(digest).decode("ascii")
        return SignatureResult(
            authorization=f"AWS {access_key}:{signature}",
            signature=signature,
            string_to_sign=string_to_sign,
        )


def signer_for(version: SignatureVersion) -> Signer:
    """Return the signer implementation for a signature version."""
    if version is SignatureVersion.V2:
        return SigV2Signer()
    return SigV4Signer()


def sign_request(
    config: ClientConfig,
    request: Request,
    signer: Signer,
    timestamp: str,
    log: logging.Logger | None = None,
) -> Request:
    """Install an Authorization header when the client has credentials.

    Runs after header assembly and before dispatch, once per call. Without
    credentials the request is returned unchanged and goes out anonymously.

    Args:
        config: The client configuration.
        request: The request with its canonical headers assembled.
        signer: The signer to use in authenticated mode.
        timestamp: The compact request timestamp.
        log: Logger for the anonymous notice and signature debug output.

    Returns:
        The request to dispatch.
    """
    log = log or logger

    if not config.has_credentials:
        log.debug("Anonymous access mode, skipping request signing for %s", request.url)
        return request

    headers = request.headers.copy()
    result = signer.sign(
        timestamp=headers.get(HEADER_AMZ_DATE, timestamp),
        method=request.method.upper(),
        url=request.url,
        access_key=config.access_key,
        secret_key=config.secret_key,
        region=config.region,
        service=SERVICE_NAME,
        headers=headers,
        body=request.body,
    )

    if config.signature_debug:
        log.info("%s %s\n%s", request.method.upper(), request.url, result)

    headers[HEADER_AUTHORIZATION] = result.authorization
    return dataclasses.replace(request, headers=headers)


# ---------------------------------------------------------------------------
# Module-level utility functions
# ---------------------------------------------------------------------------


def derive_signing_key(secret_key: str, date: str, region: str, service: str) -> bytes:
    """Derive the SigV4 signing key via the HMAC-SHA256 chain.

    Args:
        secret_key: The secret access key.
        date: Date string (YYYYMMDD).
        region: AWS region.
        service: AWS service name.

    Returns:
        The 32-byte signing key.
    """
    k_date = hmac.new(
        (KEY_PREFIX + secret_key).encode("utf-8"),
        date.encode("utf-8"),
        hashlib.sha256,
    ).digest()
    k_region = hmac.new(k_date, region.encode("utf-8"), hashlib.sha256).digest()
    k_service = hmac.new(k_region, service.encode("utf-8"), hashlib.sha256).digest()
    k_signing = hmac.new(k_service, SCOPE_TERMINATOR.encode("utf-8"), hashlib.sha256).digest()
    return k_signing


def build_canonical_request(
    method: str,
    uri: str,
    query_string: str,
    headers: Mapping[str, str],
    signed_headers: list[str],
    payload_hash: str,
) -> str:
    """Build the SigV4 canonical request string.

    Args:
        method: HTTP method (uppercase).
        uri: The decoded request URI path.
        query_string: The raw query string.
        headers: Request headers keyed by lowercase name.
        signed_headers: Lowercase signed header names.
        payload_hash: SHA-256 hex digest of the payload.

    Returns:
        The canonical request string.
    """
    canonical_uri = _uri_encode_path(uri)
    canonical_query = _build_canonical_query_string(query_string)

    sorted_signed = sorted(signed_headers)
    canonical_headers = "".join(
        f"{name}:{_trim_header_value(headers.get(name, ''))}\n" for name in sorted_signed
    )

    return "\n".join(
        [
            method,
            canonical_uri,
            canonical_query,
            canonical_headers,
            ";".join(sorted_signed),
            payload_hash,
        ]
    )


def build_string_to_sign(timestamp: str, scope: str, canonical_request: str) -> str:
    """Build the SigV4 string to sign.

    Args:
        timestamp: Compact timestamp (YYYYMMDDTHHMMSSZ).
        scope: Credential scope (YYYYMMDD/region/s3/aws4_request).
        canonical_request: The assembled canonical request string.

    Returns:
        The string to sign.
    """
    canonical_hash = hashlib.sha256(canonical_request.encode("utf-8")).hexdigest()
    return f"{ALGORITHM}\n{timestamp}\n{scope}\n{canonical_hash}"


def compute_signature(signing_key: bytes, string_to_sign: str) -> str:
    """Compute the final HMAC-SHA256 hex signature."""
    return hmac.new(signing_key, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()


def _v2_canonical_resource(url: str) -> str:
    """Build the V2 canonical resource (``/bucket/key`` plus sub-resources).

    For virtual-hosted URLs the bucket is taken from the host label before
    ``.s3.``.
    """
    parts = urllib.parse.urlsplit(url)
    path = parts.path or "/"
    host = parts.hostname or ""
    if ".s3." in host and not host.startswith("s3."):
        bucket = host.split(".s3.", 1)[0]
        path = f"/{bucket}{path}"

    sub_resources = []
    for pair in parts.query.split("&"):
        if not pair:
            continue
        name = pair.split("=", 1)[0]
        if name in V2_SUB_RESOURCES:
            sub_resources.append(pair)
    if sub_resources:
        path += "?" + "&".join(sorted(sub_resources))
    return path


def _uri_encode(s: str, encode_slash: bool = True) -> str:
    """S3-compatible URI encoding.

    Characters A-Z, a-z, 0-9, '-', '_', '.', '~' are not encoded.
    All other characters are percent-encoded with uppercase hex.
    Spaces become %20 (not +).

    Args:
        s: The string to encode.
        encode_slash: If True (default), '/' is encoded as %2F.
                     If False, '/' is left as-is.

    Returns:
        The URI-encoded string.
    """
    safe = "-_.~" if encode_slash else "-_.~/"
    return urllib.parse.quote(s, safe=safe)


def _uri_encode_path(path: str) -> str:
    """URI-encode a path, preserving forward slashes.

    Args:
        path: The URI path to encode.

    Returns:
        The URI-encoded path, always starting with '/'.
    """
    if not path:
        return "/"
    segments = path.split("/")
    result = "/".join(_uri_encode(seg, encode_slash=False) for seg in segments)
    if not result.startswith("/"):
        result = "/" + result
    return result


def _build_canonical_query_string(query_string: str) -> str:
    """Build the canonical query string from a raw query string.

    Parameters are sorted by name (byte-order), then by value. Each name
    and value is URI-encoded. Parameters with no value use an empty value.

    Args:
        query_string: The raw query string (without leading '?').

    Returns:
        The canonical query string.
    """
    if not query_string:
        return ""

    params: list[tuple[str, str]] = []
    for pair in query_string.split("&"):
        if not pair:
            continue
        if "=" in pair:
            name, value = pair.split("=", 1)
        else:
            name = pair
            value = ""
        params.append((urllib.parse.unquote_plus(name), urllib.parse.unquote_plus(value)))

    params.sort()

    return "&".join(
        f"{_uri_encode(name, encode_slash=True)}={_uri_encode(value, encode_slash=True)}"
        for name, value in params
    )


def _trim_header_value(value: str) -> str:
    """Strip a header value and collapse sequential spaces to one."""
    value = value.strip()
    return re.sub(r" +", " ", value)
