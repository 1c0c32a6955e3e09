"""Contract tests for the /api/webhooks/flutterwave endpoint.

Tests verify the HTTP contract:
- 405 for every non-POST method, before any service is built
- 401 for bad signatures
- 200 "Event ignored" for non-success events
- 400 for failed verification, bad tx_ref or bad payload
- 200 with package data on success
- 500 with the error message for unexpected failures
"""

import logging
import re
from typing import Any, Generator
from unittest.mock import patch

import httpx
import pytest
from fastapi.testclient import TestClient
from starlette.concurrency import run_in_threadpool
from starlette.status import (
    HTTP_200_OK,
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_405_METHOD_NOT_ALLOWED,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from adboost.models.errors import ConfigurationError
from adboost.services.webhook_handler import WebhookHandler
from adboost_api import dependencies
from adboost_api.dependencies import get_webhook_handler, reset_services
from adboost_api.main import app
from conftest import (
    TEST_EVENT_ID,
    FlutterwaveStub,
    RecordingStore,
    encode_event,
    make_charge_event,
    make_verification,
    sign_payload,
)

WEBHOOK_URL = "/api/webhooks/flutterwave"


# === Test Fixtures ===


@pytest.fixture
def handler(webhook_handler: WebhookHandler) -> Generator[WebhookHandler, None, None]:
    """Wire the stubbed handler into the app."""
    app.dependency_overrides[get_webhook_handler] = lambda: webhook_handler
    yield webhook_handler
    app.dependency_overrides.clear()


@pytest.fixture
def client(handler: WebhookHandler) -> TestClient:
    # Unexpected errors must come back as 500 responses, not test exceptions
    return TestClient(app, raise_server_exceptions=False)


def post_event(
    client: TestClient,
    event: dict[str, Any],
    *,
    signature: str | None = None,
) -> httpx.Response:
    payload = encode_event(event)
    headers = {"Content-Type": "application/json"}
    headers["verif-hash"] = sign_payload(payload) if signature is None else signature
    return client.post(WEBHOOK_URL, content=payload, headers=headers)


# === Method gate ===


class TestMethodNotAllowed:

    @pytest.mark.parametrize("method", ["GET", "PUT", "PATCH", "DELETE"])
    def test_non_post_returns_405(self, client: TestClient, store: RecordingStore, method: str):
        response = client.request(method, WEBHOOK_URL)

        assert response.status_code == HTTP_405_METHOD_NOT_ALLOWED
        assert response.json()["error"] == "Method not allowed"
        assert response.headers["Allow"] == "POST"
        assert store.documents == {}

    def test_head_returns_405(self, client: TestClient, store: RecordingStore):
        response = client.head(WEBHOOK_URL)

        assert response.status_code == HTTP_405_METHOD_NOT_ALLOWED
        assert response.headers["Allow"] == "POST"
        assert store.documents == {}

    def test_options_returns_json_405(self, client: TestClient):
        response = client.options(WEBHOOK_URL)

        assert response.status_code == HTTP_405_METHOD_NOT_ALLOWED
        assert response.json()["error"] == "Method not allowed"
        assert "detail" not in response.json()


class TestMethodGateWithoutConfiguration:
    """Non-POST requests are answered before any service is built."""

    @pytest.fixture
    def unconfigured_client(self) -> Generator[TestClient, None, None]:
        reset_services()
        with patch.object(
            dependencies,
            "load_settings",
            side_effect=ConfigurationError("FIREBASE_PROJECT_ID is not set"),
        ) as load_settings:
            yield TestClient(app, raise_server_exceptions=False)
            load_settings.assert_not_called()
        reset_services()

    @pytest.mark.parametrize("method", ["GET", "DELETE", "OPTIONS"])
    def test_non_post_returns_405_without_settings(self, unconfigured_client: TestClient, method: str):
        response = unconfigured_client.request(method, WEBHOOK_URL)

        assert response.status_code == HTTP_405_METHOD_NOT_ALLOWED
        assert response.json()["error"] == "Method not allowed"

    def test_broken_handler_not_resolved_for_get(self):
        def broken_handler():
            raise RuntimeError("handler must not be built")

        app.dependency_overrides[get_webhook_handler] = broken_handler
        try:
            response = TestClient(app, raise_server_exceptions=False).get(WEBHOOK_URL)
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == HTTP_405_METHOD_NOT_ALLOWED


# === Signature ===


class TestSignature:

    def test_invalid_signature_returns_401(self, client: TestClient, store: RecordingStore):
        response = post_event(client, make_charge_event(), signature="deadbeef")

        assert response.status_code == HTTP_401_UNAUTHORIZED
        body = response.json()
        assert body["error"] == "Invalid signature"
        assert body["success"] is False
        assert body["error_code"] == "ERR_WEBHOOK_002"
        assert store.documents == {}

    def test_missing_signature_returns_401(self, client: TestClient):
        response = client.post(WEBHOOK_URL, content=encode_event(make_charge_event()))

        assert response.status_code == HTTP_401_UNAUTHORIZED

    def test_signed_invalid_json_returns_400(self, client: TestClient):
        payload = b"{not json"
        response = client.post(
            WEBHOOK_URL, content=payload, headers={"verif-hash": sign_payload(payload)}
        )

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Invalid webhook payload"


# === Filtering ===


class TestIgnoredEvents:

    def test_failed_charge_ignored(
        self,
        client: TestClient,
        store: RecordingStore,
        flutterwave_stub: FlutterwaveStub,
    ):
        response = post_event(client, make_charge_event(status="failed"))

        assert response.status_code == HTTP_200_OK
        assert response.json() == {"message": "Event ignored"}
        assert store.documents == {}
        assert flutterwave_stub.calls == []

    @pytest.mark.parametrize(
        "event",
        [
            {"event": "transfer.completed", "data": {"id": 1, "status": "SUCCESSFUL", "customer": None}},
            {"event": "charge.completed", "data": {"status": "failed", "tx_ref": 12345}},
            {"event": "charge.completed", "data": {"status": "failed", "amount": "n/a"}},
        ],
    )
    def test_off_shape_events_ignored(
        self,
        client: TestClient,
        store: RecordingStore,
        flutterwave_stub: FlutterwaveStub,
        event: dict[str, Any],
    ):
        response = post_event(client, event)

        assert response.status_code == HTTP_200_OK
        assert response.json() == {"message": "Event ignored"}
        assert store.documents == {}
        assert flutterwave_stub.calls == []


# === Verification and tx_ref ===


class TestRejectedPayments:

    def test_verification_failure_returns_400(
        self,
        client: TestClient,
        store: RecordingStore,
        flutterwave_stub: FlutterwaveStub,
    ):
        flutterwave_stub.body = make_verification(charge_status="failed")

        response = post_event(client, make_charge_event())

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Payment verification failed"
        assert store.documents == {}

    def test_bad_reference_returns_400(self, client: TestClient, store: RecordingStore):
        response = post_event(client, make_charge_event(tx_ref="order_evt123_1699999999"))

        assert response.status_code == HTTP_400_BAD_REQUEST
        body = response.json()
        assert body["error"] == "Invalid transaction reference"
        assert body["details"] == {"tx_ref": "order_evt123_1699999999"}
        assert store.documents == {}


# === Success ===


class TestProcessedPayment:

    def test_happy_path(self, client: TestClient, store: RecordingStore):
        response = post_event(client, make_charge_event())

        assert response.status_code == HTTP_200_OK
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Payment processed successfully"
        assert body["data"]["eventId"] == TEST_EVENT_ID
        assert body["data"]["amount"] == 5000
        assert re.match(r"^AD[A-Z0-9]{11}$", body["data"]["adCode"])

        path = f"physicalEvents/{TEST_EVENT_ID}/adsPackages/{body['data']['packageId']}"
        assert list(store.documents) == [path]
        document = store.documents[path]
        assert document["status"] == "pending_upload"
        assert document["totalAmountPaid"] == 5000
        assert document["adCode"] == body["data"]["adCode"]

    def test_correlation_id_echoed(self, client: TestClient):
        payload = encode_event(make_charge_event())
        response = client.post(
            WEBHOOK_URL,
            content=payload,
            headers={"verif-hash": sign_payload(payload), "X-Correlation-ID": "flw-delivery-1"},
        )

        assert response.headers["X-Correlation-ID"] == "flw-delivery-1"

    def test_delivery_logged_with_outcome(self, client: TestClient, caplog: pytest.LogCaptureFixture):
        with caplog.at_level(logging.INFO, logger="adboost_api.middleware.correlation"):
            post_event(client, make_charge_event(status="failed"))
            client.get("/api/ping")

        deliveries = [r for r in caplog.records if r.name == "adboost_api.middleware.correlation"]
        assert len(deliveries) == 1
        assert deliveries[0].getMessage().startswith(f"Delivery POST {WEBHOOK_URL} -> 200 in ")
        assert deliveries[0].status_code == 200

    def test_handler_runs_in_threadpool(self, client: TestClient, handler: WebhookHandler):
        with patch(
            "adboost_api.routes.webhooks.run_in_threadpool", wraps=run_in_threadpool
        ) as threadpool:
            response = post_event(client, make_charge_event())

        assert response.status_code == HTTP_200_OK
        threadpool.assert_called_once()
        assert threadpool.call_args.args[0] == handler.handle

    def test_duplicate_delivery_creates_two_packages(self, client: TestClient, store: RecordingStore):
        first = post_event(client, make_charge_event())
        second = post_event(client, make_charge_event())

        assert first.status_code == second.status_code == HTTP_200_OK
        assert first.json()["data"]["packageId"] != second.json()["data"]["packageId"]
        assert len(store.documents) == 2


# === Unexpected failures ===


class TestServerErrors:

    def test_verification_transport_failure_returns_500(
        self,
        client: TestClient,
        store: RecordingStore,
        flutterwave_stub: FlutterwaveStub,
    ):
        flutterwave_stub.error = httpx.ConnectError("connection refused")

        response = post_event(client, make_charge_event())

        assert response.status_code == HTTP_500_INTERNAL_SERVER_ERROR
        body = response.json()
        assert body["error"] == "Internal server error"
        assert "connection refused" in body["message"]
        assert store.documents == {}

    def test_handler_construction_failure_returns_500(self, client: TestClient):
        def broken_handler():
            raise RuntimeError("FIREBASE_PROJECT_ID is not set")

        app.dependency_overrides[get_webhook_handler] = broken_handler

        response = post_event(client, make_charge_event())

        assert response.status_code == HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {
            "error": "Internal server error",
            "message": "FIREBASE_PROJECT_ID is not set",
        }


class TestPing:

    def test_ping(self, client: TestClient):
        response = client.get("/api/ping")

        assert response.status_code == HTTP_200_OK
        assert response.json()["status"] == "ok"
        assert response.json()["service"] == "adboost-webhooks"
