"""FastAPI exception handlers for converting webhook errors to HTTP responses.

These handlers are the single outer boundary of the webhook flow:
- WebhookError -> mapped 4xx status with an ErrorResponse body
- anything else -> 500 with the exception message forwarded

The ErrorCode-to-HTTP status mapping:
- 400 Bad Request: malformed payload, failed verification, bad tx_ref
- 401 Unauthorized: signature mismatch
- 405 Method Not Allowed: non-POST delivery

Usage:
    from adboost_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_405_METHOD_NOT_ALLOWED,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from adboost.models.errors import ErrorCode, WebhookError
from adboost.utils.logging import get_logger

logger = get_logger(__name__)

ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.METHOD_NOT_ALLOWED: HTTP_405_METHOD_NOT_ALLOWED,
    ErrorCode.INVALID_SIGNATURE: HTTP_401_UNAUTHORIZED,
    ErrorCode.INVALID_PAYLOAD: HTTP_400_BAD_REQUEST,
    ErrorCode.PAYMENT_VERIFICATION_FAILED: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_TRANSACTION_REFERENCE: HTTP_400_BAD_REQUEST,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode (400 if not mapped)."""
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def webhook_error_handler(request: Request, exc: WebhookError) -> JSONResponse:
    """Convert a WebhookError into its JSON response.

    Args:
        request: The incoming request (unused but required by FastAPI)
        exc: The WebhookError exception

    Returns:
        JSONResponse with error details and mapped status code.
    """
    status_code = get_http_status_for_error(exc.code)
    headers = {"Allow": "POST"} if status_code == HTTP_405_METHOD_NOT_ALLOWED else None

    return JSONResponse(
        status_code=status_code,
        content=exc.to_error_response().model_dump(mode="json"),
        headers=headers,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Report any unexpected failure as a 500.

    The exception message is forwarded to the caller so that Flutterwave's
    delivery log shows why a webhook failed.

    Args:
        request: The incoming request (unused but required by FastAPI)
        exc: The uncaught exception

    Returns:
        JSONResponse with 500 status.
    """
    logger.exception("Webhook processing error: %s", exc)

    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "message": str(exc)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(WebhookError, webhook_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
