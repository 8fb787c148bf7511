"""Client-side argument validation for s3lite operations.

These checks run before any network I/O. Each function raises
``InvalidArgumentError`` on invalid input.
"""

import re

from s3lite.errors import InvalidArgumentError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# S3 bucket naming rules:
#   - 3-63 characters
#   - lowercase letters, digits, hyphens, and periods
#   - must start and end with a letter or digit
#   - must not be formatted as an IP address
#   - must not start with "xn--" (internationalized domain prefix)
#   - must not end with "-s3alias" or "--ol-s3"
#   - no consecutive periods ("..") allowed

_BUCKET_RE = re.compile(r"^[a-z0-9][a-z0-9.\-]{1,61}[a-z0-9]$")
_IP_RE = re.compile(r"^\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}$")

_MAX_KEY_BYTES = 1024


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def require_bucket(bucket: str | None) -> str:
    """Ensure a bucket argument is present.

    Existing buckets on S3-compatible services may predate the current
    naming rules, so only emptiness is checked here.

    Raises:
        InvalidArgumentError: If the bucket is None or empty.
    """
    if not bucket:
        raise InvalidArgumentError("bucket must not be empty")
    return bucket


def require_key(key: str | None) -> str:
    """Ensure an object key argument is present and not too long.

    Raises:
        InvalidArgumentError: If the key is empty or exceeds 1024 bytes when
            UTF-8 encoded.
    """
    if not key:
        raise InvalidArgumentError("key must not be empty")
    if len(key.encode("utf-8")) > _MAX_KEY_BYTES:
        raise InvalidArgumentError(f"key must not exceed {_MAX_KEY_BYTES} bytes")
    return key


def validate_bucket_name(name: str) -> None:
    """Validate a new bucket name against S3 naming rules.

    Args:
        name: The candidate bucket name.

    Raises:
        InvalidArgumentError: If the name violates any bucket naming rule.
    """
    message = f"The specified bucket name is not valid: {name!r}"

    if len(name) < 3 or len(name) > 63:
        raise InvalidArgumentError(message)

    if not _BUCKET_RE.match(name):
        raise InvalidArgumentError(message)

    if _IP_RE.match(name):
        raise InvalidArgumentError(message)

    if name.startswith("xn--"):
        raise InvalidArgumentError(message)

    if name.endswith("-s3alias") or name.endswith("--ol-s3"):
        raise InvalidArgumentError(message)

    if ".." in name:
        raise InvalidArgumentError(message)
