"""Flutterwave gateway for webhook signatures and transaction verification.

Webhook bodies are signed with HMAC-SHA256 using the shared webhook hash;
the hex digest arrives in the ``verif-hash`` header. Every successful charge
is re-checked against the v3 verify endpoint before it is trusted.
"""

import hashlib
import hmac
import logging

import httpx
from pydantic import ValidationError

from adboost.models.flutterwave import VerificationResult
from adboost.utils.logging import log_payment_operation

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "verif-hash"
REQUEST_TIMEOUT_SECONDS = 30.0


class FlutterwaveServiceError(Exception):
    """Raised when the verify call fails at transport or parse level."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize with message and optional HTTP status.

        Args:
            message: Human-readable error message.
            status_code: HTTP status of the failed response, if one arrived.
        """
        super().__init__(message)
        self.status_code = status_code


class FlutterwaveService:
    """Service for Flutterwave operations.

    Handles:
    - Webhook signature computation and validation
    - Transaction verification

    Usage:
        flutterwave = FlutterwaveService(
            secret_key="FLWSECK-...",
            webhook_hash="my-webhook-hash",
        )
        if flutterwave.is_valid_signature(payload, signature):
            result = flutterwave.verify_transaction(4975363)
    """

    def __init__(
        self,
        *,
        secret_key: str,
        webhook_hash: str,
        base_url: str = "https://api.flutterwave.com/v3",
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            secret_key: Flutterwave secret key used as bearer credential.
            webhook_hash: Shared secret used to sign webhook bodies.
            base_url: API root, without trailing slash.
            http_client: Optional preconfigured client (tests inject a
                MockTransport-backed client here).
        """
        self._secret_key = secret_key
        self._webhook_hash = webhook_hash
        self._base_url = base_url.rstrip("/")
        self._client = http_client or httpx.Client(timeout=REQUEST_TIMEOUT_SECONDS)

    def compute_signature(self, payload: bytes) -> str:
        """Compute the expected webhook signature for a raw body.

        Args:
            payload: Raw request body bytes.

        Returns:
            Lowercase hex HMAC-SHA256 digest.
        """
        return hmac.new(
            self._webhook_hash.encode("utf-8"),
            payload,
            hashlib.sha256,
        ).hexdigest()

    def is_valid_signature(self, payload: bytes, signature: str | None) -> bool:
        """Check a webhook signature header against the raw body.

        The comparison is exact (case-sensitive) and constant-time.

        Args:
            payload: Raw request body bytes.
            signature: ``verif-hash`` header value.

        Returns:
            True if the signature matches.
        """
        if not signature:
            logger.warning("Webhook request missing %s header", SIGNATURE_HEADER)
            return False

        expected = self.compute_signature(payload)
        return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))

    def verify_transaction(self, transaction_id: int | str) -> VerificationResult:
        """Ask Flutterwave to confirm a transaction.

        Non-2xx responses are not raised: Flutterwave reports failures in the
        JSON body, which the caller evaluates.

        Args:
            transaction_id: Flutterwave transaction ID from the webhook.

        Returns:
            Parsed verification result.

        Raises:
            FlutterwaveServiceError: On network failure or an unparseable body.
        """
        url = f"{self._base_url}/transactions/{transaction_id}/verify"
        headers = {
            "Authorization": f"Bearer {self._secret_key}",
            "Content-Type": "application/json",
        }

        try:
            response = self._client.get(url, headers=headers)
        except httpx.HTTPError as e:
            log_payment_operation(
                logger,
                "verify_transaction",
                transaction_id=transaction_id,
                error=str(e),
            )
            raise FlutterwaveServiceError(f"Transaction verification request failed: {e}") from e

        try:
            result = VerificationResult.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            log_payment_operation(
                logger,
                "verify_transaction",
                transaction_id=transaction_id,
                error=f"unparseable response (HTTP {response.status_code})",
            )
            raise FlutterwaveServiceError(
                f"Invalid verification response (HTTP {response.status_code})",
                status_code=response.status_code,
            ) from e

        data = result.data
        log_payment_operation(
            logger,
            "verify_transaction",
            transaction_id=transaction_id,
            amount=data.amount if data else None,
            currency=data.currency if data else None,
            status=f"{result.status}/{data.status if data else None}",
            http_status=response.status_code,
        )
        return result

    def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        self._client.close()
