"""Endpoint URL construction for path-style and virtual-hosted-style requests."""

from collections.abc import Iterable

from s3lite.config import ClientConfig, RequestStyle

SERVICE_NAME = "s3"

URL_PATTERN_PATH_STYLE = "{protocol}://{hostname}:{port}/{bucket}/{key}"
URL_PATTERN_VIRTUAL_HOSTED = "{protocol}://{bucket}.{service}.{region}.{hostname}:{port}/{key}"


def build_url(
    config: ClientConfig,
    bucket: str | None = None,
    key: str | None = None,
    version_id: str | None = None,
) -> str:
    """Render the absolute URL for a service, bucket, or object request.

    The key is substituted verbatim. No percent-encoding is applied, so
    callers are responsible for encoding keys that contain reserved
    characters.

    Args:
        config: The client configuration.
        bucket: Bucket name, or None/empty for service-level requests.
        key: Object key, or None/empty for bucket-level requests.
        version_id: Optional object version, appended as ``?versionId=``.

    Returns:
        The URL string.
    """
    if config.request_style is RequestStyle.PATH:
        url = URL_PATTERN_PATH_STYLE
    else:
        url = URL_PATTERN_VIRTUAL_HOSTED

    url = url.replace("{protocol}", config.protocol.value)
    url = url.replace("{service}", SERVICE_NAME)

    if config.region:
        url = url.replace("{region}.", config.region + ".")
    else:
        url = url.replace("{region}.", "")

    url = url.replace("{hostname}", config.hostname).replace("{port}", str(config.port))

    if not bucket:
        url = url.replace("{bucket}.", "").replace("{bucket}/", "").replace("{key}", "")
    else:
        url = url.replace("{bucket}", bucket).replace("{key}", key or "")

    if version_id:
        url += "?versionId=" + version_id

    return url


def append_query(url: str, params: Iterable[tuple[str, str | None]]) -> str:
    """Append ``name=value`` query parameters in the given order.

    Parameters with an empty or None value are skipped. Values are
    concatenated raw; callers must pre-encode reserved query characters.

    Args:
        url: The base URL, with or without an existing query string.
        params: Ordered (name, value) pairs.

    Returns:
        The URL with the parameters appended.
    """
    has_query = "?" in url
    for name, value in params:
        if not value:
            continue
        url += ("&" if has_query else "?") + f"{name}={value}"
        has_query = True
    return url
