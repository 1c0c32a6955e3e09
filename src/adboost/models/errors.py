"""Standard error codes for the AdBoost payment webhook.

Every abort path of the webhook flow raises a WebhookError carrying one of
these codes. The HTTP layer maps codes to status codes (see
adboost_api.exceptions).
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Webhook error codes."""

    METHOD_NOT_ALLOWED = "ERR_WEBHOOK_001"
    INVALID_SIGNATURE = "ERR_WEBHOOK_002"
    INVALID_PAYLOAD = "ERR_WEBHOOK_003"
    PAYMENT_VERIFICATION_FAILED = "ERR_WEBHOOK_004"
    INVALID_TRANSACTION_REFERENCE = "ERR_WEBHOOK_005"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.METHOD_NOT_ALLOWED: "Method not allowed",
    ErrorCode.INVALID_SIGNATURE: "Invalid signature",
    ErrorCode.INVALID_PAYLOAD: "Invalid webhook payload",
    ErrorCode.PAYMENT_VERIFICATION_FAILED: "Payment verification failed",
    ErrorCode.INVALID_TRANSACTION_REFERENCE: "Invalid transaction reference",
}


class ErrorResponse(BaseModel):
    """JSON body returned for every aborted webhook request."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, Any]] = None,
    ) -> "ErrorResponse":
        """Create an ErrorResponse from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error

        Returns:
            An ErrorResponse with the message for the code.
        """
        return cls(error=ERROR_MESSAGES[code], error_code=code, details=details)


class WebhookError(Exception):
    """Exception raised when a webhook request must be rejected.

    Raised before any write happens; the API layer converts it to an
    ErrorResponse with the mapped HTTP status.
    """

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, Any]] = None,
    ):
        self.code = code
        self.message = ERROR_MESSAGES[code]
        self.details = details
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """Convert this exception to an ErrorResponse."""
        return ErrorResponse.from_code(self.code, self.details)


class ConfigurationError(Exception):
    """Raised when required settings are missing or unreadable."""

    pass
