"""Pytest configuration and fixtures for the AdBoost webhook tests.

This module provides reusable fixtures for testing:
- Environment setup for settings and moto
- A recording ad package store standing in for Firestore
- A FlutterwaveService backed by httpx.MockTransport
- Sample webhook events and verification responses
"""

import hashlib
import hmac
import json
import os
from datetime import datetime, timezone
from typing import Any, Callable, Generator

import httpx
import pytest

from adboost.models.ad_package import AdPackage
from adboost.services.firestore_service import DuplicateTransactionError
from adboost.services.flutterwave_service import FlutterwaveService
from adboost.services.webhook_handler import WebhookHandler

# === Environment Setup ===

os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

TEST_WEBHOOK_HASH = "flw_test_webhook_hash"
TEST_SECRET_KEY = "FLWSECK_TEST-abc123"
TEST_BASE_URL = "https://api.flutterwave.test/v3"
TEST_TRANSACTION_ID = 4975363
TEST_EVENT_ID = "evt123"
TEST_TX_REF = f"boost_{TEST_EVENT_ID}_1699999999"


# === Helpers ===


def sign_payload(payload: bytes, secret: str = TEST_WEBHOOK_HASH) -> str:
    """Compute the verif-hash header Flutterwave would send."""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def encode_event(event: dict[str, Any]) -> bytes:
    return json.dumps(event).encode("utf-8")


def make_charge_event(
    *,
    event: str = "charge.completed",
    status: str = "successful",
    transaction_id: int = TEST_TRANSACTION_ID,
    tx_ref: str = TEST_TX_REF,
    amount: int | float = 5000,
    currency: str = "NGN",
) -> dict[str, Any]:
    """Create a Flutterwave charge webhook body."""
    return {
        "event": event,
        "data": {
            "id": transaction_id,
            "tx_ref": tx_ref,
            "flw_ref": "FLW-MOCK-9f2c1e6a",
            "amount": amount,
            "currency": currency,
            "charged_amount": amount,
            "status": status,
            "payment_type": "card",
            "created_at": "2023-11-14T22:13:19.000Z",
            "customer": {
                "id": 215604089,
                "name": "Ada Obi",
                "phone_number": None,
                "email": "ada@example.com",
            },
        },
    }


def make_verification(
    *,
    status: str = "success",
    charge_status: str = "successful",
    transaction_id: int = TEST_TRANSACTION_ID,
    tx_ref: str = TEST_TX_REF,
    amount: int | float = 5000,
    currency: str = "NGN",
) -> dict[str, Any]:
    """Create a Flutterwave verify response body."""
    return {
        "status": status,
        "message": "Transaction fetched successfully",
        "data": {
            "id": transaction_id,
            "tx_ref": tx_ref,
            "flw_ref": "FLW-MOCK-9f2c1e6a",
            "amount": amount,
            "currency": currency,
            "status": charge_status,
            "payment_type": "card",
            "customer": {"id": 215604089, "name": "Ada Obi", "email": "ada@example.com"},
        },
    }


class RecordingStore:
    """In-memory stand-in for FirestoreService.

    Records every written document by its Firestore path and honours the
    transaction claim the same way the batched write does.
    """

    def __init__(self) -> None:
        self.documents: dict[str, dict[str, Any]] = {}
        self.claimed_transactions: set[str] = set()

    def create_ad_package(
        self,
        event_id: str,
        package: AdPackage,
        *,
        transaction_id: int | str | None = None,
    ) -> str:
        if transaction_id is not None:
            if str(transaction_id) in self.claimed_transactions:
                raise DuplicateTransactionError(transaction_id)
            self.claimed_transactions.add(str(transaction_id))

        path = f"physicalEvents/{event_id}/adsPackages/{package.package_id}"
        self.documents[path] = package.to_document()
        return path


class FlutterwaveStub:
    """Records verify calls and replies with a configurable response."""

    def __init__(self) -> None:
        self.calls: list[httpx.Request] = []
        self.status_code = 200
        self.body: Any = make_verification()
        self.error: Exception | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if self.error is not None:
            raise self.error
        if isinstance(self.body, (bytes, str)):
            return httpx.Response(self.status_code, content=self.body)
        return httpx.Response(self.status_code, json=self.body)


# === Service Fixtures ===


@pytest.fixture
def flutterwave_stub() -> FlutterwaveStub:
    return FlutterwaveStub()


@pytest.fixture
def flutterwave_service(
    flutterwave_stub: FlutterwaveStub,
) -> Generator[FlutterwaveService, None, None]:
    """FlutterwaveService whose HTTP calls hit flutterwave_stub."""
    service = FlutterwaveService(
        secret_key=TEST_SECRET_KEY,
        webhook_hash=TEST_WEBHOOK_HASH,
        base_url=TEST_BASE_URL,
        http_client=httpx.Client(transport=httpx.MockTransport(flutterwave_stub)),
    )
    yield service
    service.close()


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def freeze_time() -> datetime:
    """Fixed creation instant for packages."""
    return datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_handler(
    flutterwave_service: FlutterwaveService,
    store: RecordingStore,
    freeze_time: datetime,
) -> Callable[..., WebhookHandler]:
    """Factory for handlers wired to the stubbed gateway and store."""

    def _make(*, dedupe_transactions: bool = False, clock: Callable[[], datetime] | None = None):
        return WebhookHandler(
            flutterwave=flutterwave_service,
            store=store,  # type: ignore[arg-type]
            dedupe_transactions=dedupe_transactions,
            clock=clock or (lambda: freeze_time),
        )

    return _make


@pytest.fixture
def webhook_handler(make_handler: Callable[..., WebhookHandler]) -> WebhookHandler:
    return make_handler()
