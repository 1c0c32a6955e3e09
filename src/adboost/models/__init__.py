"""Pydantic models for the AdBoost payment webhook."""

from .ad_package import PACKAGE_STATUS_PENDING_UPLOAD, AdPackage, AdSlot, FlutterwaveReference
from .errors import (
    ERROR_MESSAGES,
    ConfigurationError,
    ErrorCode,
    ErrorResponse,
    WebhookError,
)
from .flutterwave import (
    SUCCESS_EVENT_TYPE,
    SUCCESSFUL_CHARGE_STATUS,
    VERIFY_SUCCESS_STATUS,
    ChargeData,
    EventEnvelope,
    FlutterwaveCustomer,
    InboundEvent,
    VerificationResult,
)
from .webhook import ProcessedPackage, WebhookResponse

__all__ = [
    # Ad package
    "AdPackage",
    "AdSlot",
    "FlutterwaveReference",
    "PACKAGE_STATUS_PENDING_UPLOAD",
    # Errors
    "ConfigurationError",
    "ERROR_MESSAGES",
    "ErrorCode",
    "ErrorResponse",
    "WebhookError",
    # Flutterwave
    "ChargeData",
    "EventEnvelope",
    "FlutterwaveCustomer",
    "InboundEvent",
    "SUCCESS_EVENT_TYPE",
    "SUCCESSFUL_CHARGE_STATUS",
    "VERIFY_SUCCESS_STATUS",
    "VerificationResult",
    # Responses
    "ProcessedPackage",
    "WebhookResponse",
]
