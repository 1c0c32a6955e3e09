"""Firestore persistence for ad packages.

Documents live at ``physicalEvents/{eventId}/adsPackages/{packageId}``.
When transaction dedupe is requested, a marker document
``flutterwaveTransactions/{transactionId}`` is created in the same batch so
that a replayed delivery fails the whole commit.
"""

import datetime as dt
import logging
from typing import Any

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core.exceptions import AlreadyExists

from adboost.models.ad_package import AdPackage

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "adboost"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


class DuplicateTransactionError(Exception):
    """Raised when a transaction marker already exists."""

    def __init__(self, transaction_id: int | str) -> None:
        super().__init__(f"Transaction {transaction_id} already processed")
        self.transaction_id = transaction_id


def init_firebase_app(
    *,
    project_id: str,
    client_email: str,
    private_key: str,
    name: str = FIREBASE_APP_NAME,
) -> firebase_admin.App:
    """Initialize a named Firebase app from service-account fields.

    Called once by the hosting layer; the handler never initializes
    Firebase itself.

    Args:
        project_id: Google Cloud project ID.
        client_email: Service account email.
        private_key: PEM private key with real newlines.
        name: Firebase app name.

    Returns:
        The initialized Firebase app.
    """
    credential = credentials.Certificate(
        {
            "type": "service_account",
            "project_id": project_id,
            "private_key": private_key,
            "client_email": client_email,
            "token_uri": GOOGLE_TOKEN_URI,
        }
    )
    app = firebase_admin.initialize_app(credential, {"projectId": project_id}, name=name)
    logger.info("Firebase app %s initialized for project %s", name, project_id)
    return app


class FirestoreService:
    """Write-once store for ad packages."""

    EVENTS_COLLECTION = "physicalEvents"
    AD_PACKAGES_COLLECTION = "adsPackages"
    TRANSACTIONS_COLLECTION = "flutterwaveTransactions"

    def __init__(self, client: Any) -> None:
        """Initialize with a Firestore client.

        Args:
            client: ``google.cloud.firestore.Client`` (or a compatible fake).
        """
        self._client = client

    @classmethod
    def from_app(cls, app: firebase_admin.App) -> "FirestoreService":
        """Build the service on top of an initialized Firebase app."""
        return cls(firestore.client(app=app))

    def _package_ref(self, event_id: str, package_id: str) -> Any:
        return (
            self._client.collection(self.EVENTS_COLLECTION)
            .document(event_id)
            .collection(self.AD_PACKAGES_COLLECTION)
            .document(package_id)
        )

    def create_ad_package(
        self,
        event_id: str,
        package: AdPackage,
        *,
        transaction_id: int | str | None = None,
    ) -> str:
        """Persist a new ad package under a physical event.

        Args:
            event_id: Physical event ID recovered from tx_ref.
            package: The package to write.
            transaction_id: When given, also claim this Flutterwave
                transaction atomically; a second claim is rejected.

        Returns:
            Document path of the written package.

        Raises:
            DuplicateTransactionError: If transaction_id was already claimed.
        """
        package_ref = self._package_ref(event_id, package.package_id)
        document = package.to_document()

        if transaction_id is None:
            package_ref.set(document)
        else:
            marker_ref = self._client.collection(self.TRANSACTIONS_COLLECTION).document(
                str(transaction_id)
            )
            batch = self._client.batch()
            batch.create(
                marker_ref,
                {
                    "eventId": event_id,
                    "packageId": package.package_id,
                    "claimedAt": dt.datetime.now(dt.UTC).isoformat(),
                },
            )
            batch.set(package_ref, document)
            try:
                batch.commit()
            except AlreadyExists as e:
                raise DuplicateTransactionError(transaction_id) from e

        logger.info(
            "Ad package %s saved under %s/%s",
            package.package_id,
            self.EVENTS_COLLECTION,
            event_id,
        )
        return package_ref.path
