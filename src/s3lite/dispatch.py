"""Request dispatch: send, time, log, and tag the outcome."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from s3lite import metrics
from s3lite.transport import Request, Response, Transport, TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectivityFailure:
    """Dispatch outcome when no response was received at all.

    Attributes:
        url: The URL that could not be reached.
        reason: Description of the transport failure.
    """

    url: str
    reason: str = ""


DispatchResult = Response | ConnectivityFailure


class Dispatcher:
    """Sends prepared requests through a transport.

    Never retries and never modifies the request after sending.

    Attributes:
        transport: The transport capability.
        logger: Where outcome lines are written.
    """

    def __init__(self, transport: Transport, log: logging.Logger | None = None) -> None:
        self.transport = transport
        self.logger = log or logger

    async def send(self, request: Request, timeout: float | None = None) -> DispatchResult:
        """Send a request and return its response or a connectivity failure.

        The body-bearing send is used only for a non-empty body. Task
        cancellation propagates from the transport await unchanged.

        Args:
            request: The signed request.
            timeout: Per-call timeout in seconds, forwarded to the transport.

        Returns:
            The Response, or a ConnectivityFailure when nothing came back.
        """
        prefix = f"{request.method.upper()} {request.url}:"
        start = datetime.now(timezone.utc)

        try:
            if request.has_body:
                resp = await self.transport.send(
                    request.method, request.url, request.headers, request.body, timeout=timeout
                )
            else:
                resp = await self.transport.send(
                    request.method, request.url, request.headers, timeout=timeout
                )
        except TransportError as exc:
            self.logger.warning(
                "%s (null) %s", prefix, exc, extra={"method": request.method, "url": request.url}
            )
            metrics.record_connectivity_failure(request.method)
            return ConnectivityFailure(url=request.url, reason=str(exc))

        resp.end = datetime.now(timezone.utc)
        resp.start = start

        extra = {
            "method": request.method,
            "url": request.url,
            "status": resp.status_code,
            "duration_ms": round(resp.elapsed_ms, 1),
            "request_id": resp.headers.get("x-amz-request-id"),
        }
        if resp.is_success:
            self.logger.debug(
                "%s %d (%.0fms)", prefix, resp.status_code, resp.elapsed_ms, extra=extra
            )
        else:
            self.logger.warning(
                "%s %d (%.0fms)\n%s",
                prefix,
                resp.status_code,
                resp.elapsed_ms,
                resp.text,
                extra=extra,
            )

        metrics.record_request(
            method=request.method,
            status=resp.status_code,
            duration_seconds=resp.elapsed_ms / 1000,
            bytes_sent=len(request.body or b""),
            bytes_received=len(resp.body),
        )
        return resp
