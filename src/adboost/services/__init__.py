"""Services for the AdBoost payment webhook."""

from .ad_package import build_ad_package, generate_ad_code, parse_transaction_ref
from .firestore_service import DuplicateTransactionError, FirestoreService, init_firebase_app
from .flutterwave_service import FlutterwaveService, FlutterwaveServiceError
from .ssm_service import SSMService, SSMServiceError, get_ssm_service
from .webhook_handler import WebhookHandler

__all__ = [
    "build_ad_package",
    "generate_ad_code",
    "parse_transaction_ref",
    "DuplicateTransactionError",
    "FirestoreService",
    "init_firebase_app",
    "FlutterwaveService",
    "FlutterwaveServiceError",
    "SSMService",
    "SSMServiceError",
    "get_ssm_service",
    "WebhookHandler",
]
