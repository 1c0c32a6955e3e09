"""Webhook endpoint for Flutterwave payment notifications.

This endpoint does NOT require authentication headers of our own: the
payload is signed by Flutterwave (``verif-hash``) and re-verified against
the Flutterwave API before anything is written.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from adboost.models.errors import ErrorResponse
from adboost.models.webhook import WebhookResponse
from adboost.services.flutterwave_service import SIGNATURE_HEADER
from adboost.services.webhook_handler import WebhookHandler
from adboost_api.dependencies import get_webhook_handler, require_post

router = APIRouter(tags=["webhooks"])

# Every method is routed here so non-POST requests get the JSON 405 body
ACCEPTED_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@router.api_route(
    "/webhooks/flutterwave",
    methods=ACCEPTED_METHODS,
    # Route dependencies resolve before get_webhook_handler
    dependencies=[Depends(require_post)],
    summary="Receive Flutterwave payment webhooks",
    description="""
Endpoint for Flutterwave webhook deliveries. Handles:
- charge.completed with status successful: re-verifies the transaction and
  creates an ad package under the event named in tx_ref (boost_<eventId>_<ts>)
- anything else: acknowledged and ignored

**Signature** - ``verif-hash`` must be the hex HMAC-SHA256 of the raw body.

**Not idempotent by default** - redelivering the same transaction creates a
second package unless WEBHOOK_DEDUPE_TRANSACTIONS is enabled.
""",
    response_model=WebhookResponse,
    response_model_exclude_none=True,
    responses={
        200: {"description": "Processed, ignored or duplicate", "model": WebhookResponse},
        400: {"description": "Bad payload, failed verification or tx_ref", "model": ErrorResponse},
        401: {"description": "Invalid signature", "model": ErrorResponse},
        405: {"description": "Method not allowed", "model": ErrorResponse},
        500: {"description": "Unexpected failure"},
    },
)
async def handle_flutterwave_webhook(
    request: Request,
    handler: WebhookHandler = Depends(get_webhook_handler),
) -> JSONResponse:
    """Handle an incoming Flutterwave webhook delivery."""
    payload = await request.body()

    # Verification and the Firestore write block; keep them off the event loop
    result = await run_in_threadpool(
        handler.handle,
        method=request.method,
        payload=payload,
        signature=request.headers.get(SIGNATURE_HEADER),
    )
    return JSONResponse(content=result.to_body())
