"""FastAPI dependency providers for the webhook services.

This is the one place where process-wide setup happens: settings are
loaded, the Firebase app is initialized and the Flutterwave client is
built, each exactly once per process. The handler receives them ready-made.

Usage in routes:
    from adboost_api.dependencies import get_webhook_handler

    @router.post("/webhooks/flutterwave")
    async def receive(handler: WebhookHandler = Depends(get_webhook_handler)):
        ...

Service Dependency Graph:
    Settings (get_settings)
        ├── Firebase app (get_firebase_app)
        │       └── FirestoreService
        ├── FlutterwaveService
        └── WebhookHandler

Testing:
    Override get_webhook_handler via app.dependency_overrides, and call
    reset_services() to clear cached instances between tests.
"""

from functools import lru_cache

import firebase_admin
from fastapi import Request

from adboost.config import Settings, load_settings
from adboost.models.errors import ErrorCode, WebhookError
from adboost.services.firestore_service import FirestoreService, init_firebase_app
from adboost.services.flutterwave_service import FlutterwaveService
from adboost.services.webhook_handler import WebhookHandler

# Module-level singleton; Firebase refuses to initialize the same app twice
_firebase_app: firebase_admin.App | None = None


def require_post(request: Request) -> None:
    """Reject non-POST deliveries before any service is built.

    Raises:
        WebhookError: METHOD_NOT_ALLOWED for every other method.
    """
    if request.method.upper() != WebhookHandler.ALLOWED_METHOD:
        raise WebhookError(ErrorCode.METHOD_NOT_ALLOWED, details={"method": request.method})


@lru_cache
def get_settings() -> Settings:
    """Get cached Settings."""
    return load_settings()


def get_firebase_app() -> firebase_admin.App:
    """Get or initialize the Firebase app."""
    global _firebase_app
    if _firebase_app is None:
        settings = get_settings()
        _firebase_app = init_firebase_app(
            project_id=settings.firebase_project_id,
            client_email=settings.firebase_client_email,
            private_key=settings.firebase_private_key,
        )
    return _firebase_app


@lru_cache
def get_firestore_service() -> FirestoreService:
    """Get cached FirestoreService bound to the Firebase app."""
    return FirestoreService.from_app(get_firebase_app())


@lru_cache
def get_flutterwave_service() -> FlutterwaveService:
    """Get cached FlutterwaveService configured from settings."""
    settings = get_settings()
    return FlutterwaveService(
        secret_key=settings.flutterwave_secret_key,
        webhook_hash=settings.flutterwave_webhook_hash,
        base_url=settings.flutterwave_base_url,
    )


@lru_cache
def get_webhook_handler() -> WebhookHandler:
    """Get cached WebhookHandler with all dependencies wired."""
    return WebhookHandler(
        flutterwave=get_flutterwave_service(),
        store=get_firestore_service(),
        dedupe_transactions=get_settings().dedupe_transactions,
    )


def reset_services() -> None:
    """Clear all cached service instances and tear down the Firebase app."""
    global _firebase_app

    if get_flutterwave_service.cache_info().currsize:
        get_flutterwave_service().close()

    get_webhook_handler.cache_clear()
    get_flutterwave_service.cache_clear()
    get_firestore_service.cache_clear()
    get_settings.cache_clear()

    if _firebase_app is not None:
        firebase_admin.delete_app(_firebase_app)
        _firebase_app = None
