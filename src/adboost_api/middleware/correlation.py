"""Correlation ID and delivery logging middleware.

Every request runs under a correlation ID, taken from ``X-Correlation-ID``
when the caller sends one. Webhook deliveries additionally get one access
line carrying the outcome and duration, so a Flutterwave retry can be
matched to the handler's own log lines.
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from adboost.utils.logging import clear_correlation_id, get_logger, set_correlation_id

CORRELATION_ID_HEADER = "X-Correlation-ID"
WEBHOOK_PATH_PREFIX = "/api/webhooks/"

logger = get_logger(__name__)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tags each request with a correlation ID and logs webhook deliveries."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = set_correlation_id(request.headers.get(CORRELATION_ID_HEADER))
        is_delivery = request.url.path.startswith(WEBHOOK_PATH_PREFIX)
        started = time.perf_counter()

        try:
            try:
                response = await call_next(request)
            except Exception:
                if is_delivery:
                    _log_delivery(request, 500, started)
                raise

            if is_delivery:
                _log_delivery(request, response.status_code, started)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
        finally:
            clear_correlation_id()


def _log_delivery(request: Request, status_code: int, started: float) -> None:
    duration_ms = (time.perf_counter() - started) * 1000
    logger.info(
        "Delivery %s %s -> %d in %.1fms",
        request.method,
        request.url.path,
        status_code,
        duration_ms,
        extra={"status_code": status_code, "duration_ms": round(duration_ms, 1)},
    )
