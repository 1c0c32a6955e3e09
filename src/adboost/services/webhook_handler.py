"""Webhook handler for processing Flutterwave payment notifications.

Provides business logic for handling webhook deliveries separate from
HTTP routing concerns. This enables:
- Unit testing without HTTP overhead
- Reuse across different transport mechanisms (FastAPI, Lambda)

Flow: method gate -> signature -> event filter (loose view) -> charge parse ->
re-verification -> tx_ref parsing -> package synthesis -> single write.
Every rejection happens before the write, so aborted requests leave no
residue.
"""

import datetime as dt
from collections.abc import Callable

from pydantic import ValidationError

from adboost.models.errors import ErrorCode, WebhookError
from adboost.models.flutterwave import EventEnvelope, InboundEvent
from adboost.models.webhook import ProcessedPackage, WebhookResponse
from adboost.services.ad_package import build_ad_package, parse_transaction_ref
from adboost.services.firestore_service import DuplicateTransactionError, FirestoreService
from adboost.services.flutterwave_service import FlutterwaveService
from adboost.utils.logging import get_logger, log_webhook_event

logger = get_logger(__name__)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


class WebhookHandler:
    """Handler for Flutterwave charge webhooks.

    Creates one ad package per verified delivery. Repeated deliveries of the
    same transaction create additional packages unless dedupe_transactions
    is enabled.
    """

    ALLOWED_METHOD = "POST"

    def __init__(
        self,
        flutterwave: FlutterwaveService,
        store: FirestoreService,
        *,
        dedupe_transactions: bool = False,
        clock: Callable[[], dt.datetime] = _utcnow,
    ) -> None:
        """Initialize webhook handler.

        Args:
            flutterwave: Gateway used for signature checks and verification.
            store: Ad package store.
            dedupe_transactions: Reject repeated transaction IDs.
            clock: Source of the package creation instant.
        """
        self._flutterwave = flutterwave
        self._store = store
        self._dedupe_transactions = dedupe_transactions
        self._clock = clock

    def handle(
        self,
        *,
        method: str,
        payload: bytes,
        signature: str | None,
    ) -> WebhookResponse:
        """Process one webhook delivery.

        Args:
            method: HTTP method of the request.
            payload: Raw request body bytes (signed as-is).
            signature: ``verif-hash`` header value.

        Returns:
            WebhookResponse for a 200 reply (ignored, processed or duplicate).

        Raises:
            WebhookError: For every rejected request (405/401/400).
            FlutterwaveServiceError: If the verify call itself fails.
        """
        if method.upper() != self.ALLOWED_METHOD:
            raise WebhookError(ErrorCode.METHOD_NOT_ALLOWED, details={"method": method})

        if not self._flutterwave.is_valid_signature(payload, signature):
            logger.warning("Invalid webhook signature")
            raise WebhookError(ErrorCode.INVALID_SIGNATURE)

        envelope = self._parse_envelope(payload)
        transaction_id = envelope.transaction_id

        log_webhook_event(logger, envelope.event, transaction_id, result="received")

        if not envelope.is_successful_charge:
            log_webhook_event(
                logger,
                envelope.event,
                transaction_id,
                result="ignored",
                status=envelope.charge_status,
            )
            return WebhookResponse.ignored()

        event = self._parse_event(payload)
        data = event.data

        if data.id is None or data.id == "":
            log_webhook_event(
                logger, event.event, None, result="error", error="charge has no transaction id"
            )
            raise WebhookError(ErrorCode.PAYMENT_VERIFICATION_FAILED)

        verification = self._flutterwave.verify_transaction(data.id)
        if not verification.is_successful:
            log_webhook_event(
                logger,
                event.event,
                transaction_id,
                result="error",
                error=f"verification returned {verification.status}",
            )
            raise WebhookError(ErrorCode.PAYMENT_VERIFICATION_FAILED)

        log_webhook_event(logger, event.event, transaction_id, result="verified")

        event_id = parse_transaction_ref(data.tx_ref)
        if not event_id:
            log_webhook_event(
                logger,
                event.event,
                transaction_id,
                result="error",
                error=f"unparseable tx_ref {data.tx_ref!r}",
            )
            raise WebhookError(
                ErrorCode.INVALID_TRANSACTION_REFERENCE,
                details={"tx_ref": data.tx_ref},
            )

        package = build_ad_package(verification.data, now=self._clock())

        try:
            self._store.create_ad_package(
                event_id,
                package,
                transaction_id=verification.data.id if self._dedupe_transactions else None,
            )
        except DuplicateTransactionError:
            log_webhook_event(
                logger,
                event.event,
                transaction_id,
                event_id=event_id,
                result="duplicate",
            )
            return WebhookResponse.duplicate_transaction()

        log_webhook_event(
            logger,
            event.event,
            transaction_id,
            event_id=event_id,
            package_id=package.package_id,
            result="success",
            ad_code=package.ad_code,
        )
        return WebhookResponse.processed(
            ProcessedPackage(
                event_id=event_id,
                package_id=package.package_id,
                ad_code=package.ad_code,
                amount=package.total_amount_paid,
            )
        )

    @staticmethod
    def _parse_envelope(payload: bytes) -> EventEnvelope:
        try:
            return EventEnvelope.model_validate_json(payload)
        except ValidationError as e:
            logger.warning("Unparseable webhook payload: %s", e.errors()[0]["msg"])
            raise WebhookError(ErrorCode.INVALID_PAYLOAD) from e

    @staticmethod
    def _parse_event(payload: bytes) -> InboundEvent:
        try:
            return InboundEvent.model_validate_json(payload)
        except ValidationError as e:
            logger.warning("Malformed charge payload: %s", e.errors()[0]["msg"])
            raise WebhookError(ErrorCode.INVALID_PAYLOAD) from e
