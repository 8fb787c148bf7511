"""Error definitions and HTTP status mapping for the s3lite client."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from s3lite.xml_utils import XmlCodec

logger = logging.getLogger(__name__)

NO_RESPONSE_MESSAGE = "Unable to connect to the specified URL: "

# https://docs.aws.amazon.com/AmazonS3/latest/API/ErrorResponses.html#ErrorCodeList
STATUS_MESSAGES: dict[int, str] = {
    301: "The resource at the following URL has permanently moved: {url}",
    304: "The resource at the following URL has not been modified: {url}",
    307: "The resource at the following URL has moved temporarily: {url}",
    400: "The request to the following URL was invalid: {url}",
    401: "The request to the following URL was not authorized: {url}",
    403: "The request to the following URL was forbidden: {url}",
    404: "The resource at the following URL was not found: {url}",
    405: "The specified method was not allowed for the following URL: {url}",
    409: "The requested operation at the following URL could not be completed due to conflict: {url}",
    411: "The request operation at the following URL failed due to a lack of a supplied length: {url}",
    412: "A precondition failed for the request direct at the following URL: {url}",
    416: "The requested range could not be satisfied for the following URL: {url}",
    500: "An internal server error was encountered while handling the request for URL: {url}",
    501: "A supplied header implies functionality that is not implemented for URL: {url}",
    503: "Either the service is unavailable or your request rate must decrease for URL: {url}",
    507: "Insufficient storage is available to satisfy the request to URL: {url}",
}


class S3ClientError(Exception):
    """Base class for every error raised by s3lite.

    Attributes:
        code: A short machine-readable error code.
        message: Human-readable error description.
        http_status: The HTTP status code, or None when no response exists.
    """

    def __init__(self, code: str, message: str, http_status: int | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.http_status = http_status


class ConfigurationError(S3ClientError, ValueError):
    """The client configuration is invalid."""

    def __init__(self, message: str = "Invalid client configuration.") -> None:
        super().__init__(code="ConfigurationError", message=message)


class InvalidArgumentError(S3ClientError, ValueError):
    """An operation argument is missing or malformed."""

    def __init__(self, message: str = "Invalid Argument") -> None:
        super().__init__(code="InvalidArgument", message=message)


class DecodeError(S3ClientError):
    """A response body could not be decoded into the expected type."""

    def __init__(self, message: str = "Unable to decode response body.") -> None:
        super().__init__(code="DecodeError", message=message)


class ConnectivityError(S3ClientError):
    """No response was received from the endpoint.

    Attributes:
        url: The URL that could not be reached.
    """

    def __init__(self, url: str, message: str | None = None) -> None:
        super().__init__(
            code="ConnectivityFailure",
            message=message or f"{NO_RESPONSE_MESSAGE}{url}.",
        )
        self.url = url


class ProviderError(S3ClientError):
    """A response was received with a non-success status.

    The provider fields are populated from the S3 XML error body when one
    could be parsed.

    Attributes:
        status: The HTTP status code.
        url: The request URL.
        error_code: The provider error code (e.g. "NoSuchKey").
        key: The offending object key.
        version_id: The offending version id.
        request_id: The provider request id.
        resource: The offending resource.
        request_body: The request body, for diagnostics.
        response_body: The raw response body, for diagnostics.
    """

    def __init__(
        self,
        status: int,
        message: str,
        url: str,
        error_code: str | None = None,
        key: str | None = None,
        version_id: str | None = None,
        request_id: str | None = None,
        resource: str | None = None,
        request_body: str | None = None,
        response_body: str | None = None,
    ) -> None:
        super().__init__(code=error_code or str(status), message=message, http_status=status)
        self.status = status
        self.url = url
        self.error_code = error_code
        self.key = key
        self.version_id = version_id
        self.request_id = request_id
        self.resource = resource
        self.request_body = request_body
        self.response_body = response_body


class ClientStatusError(ProviderError):
    """The provider rejected the request with a 4xx status."""


class ServerStatusError(ProviderError):
    """The provider failed the request with a 5xx status."""


def message_from_status(status: int | None, url: str) -> str:
    """Return the human-readable category message for an HTTP status.

    Args:
        status: The HTTP status code, or None when no response was received.
        url: The request URL.

    Returns:
        A non-empty message naming the URL.
    """
    if status is None:
        return f"{NO_RESPONSE_MESSAGE}{url}."
    template = STATUS_MESSAGES.get(status)
    if template is None:
        return f"An unknown HTTP status code of {status} was returned for URL: {url}"
    return template.format(url=url)


def _error_class(status: int) -> type[ProviderError]:
    if 400 <= status <= 499:
        return ClientStatusError
    if 500 <= status <= 599:
        return ServerStatusError
    return ProviderError


def map_error(
    status: int | None,
    url: str,
    request_body: str | None = None,
    response_body: str | None = None,
    codec: XmlCodec | None = None,
) -> S3ClientError:
    """Build the error for a failed call.

    A malformed error body never prevents the caller from learning that the
    call failed: the decode failure is logged and the generic status message
    is kept.

    Args:
        status: The HTTP status code, or None when no response was received.
        url: The request URL.
        request_body: The request body, if any.
        response_body: The response body text, if any.
        codec: The XML codec used to parse the error body.

    Returns:
        A ConnectivityError when status is None, otherwise a ProviderError
        subclass chosen by status class.
    """
    logger.debug("Mapping error for status %s URL %s", status if status is not None else "(null)", url)

    if status is None:
        return ConnectivityError(url)

    fields: dict[str, str | None] = {}
    message = message_from_status(status, url)

    if response_body:
        from s3lite.models import ErrorDocument
        from s3lite.xml_utils import XmlCodec

        try:
            document = (codec or XmlCodec()).deserialize(ErrorDocument, response_body)
        except DecodeError as exc:
            logger.debug("Unable to deserialize error response body: %s", exc)
        else:
            if document.message:
                message = document.message
            fields = {
                "error_code": document.code,
                "key": document.key,
                "version_id": document.version_id,
                "request_id": document.request_id,
                "resource": document.resource,
            }

    return _error_class(status)(
        status=status,
        message=message,
        url=url,
        request_body=request_body,
        response_body=response_body,
        **fields,
    )
