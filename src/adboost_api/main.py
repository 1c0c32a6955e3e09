"""FastAPI application hosting the Flutterwave payment webhook.

Endpoints:
- /api/webhooks/flutterwave: payment webhook
- /api/ping: liveness check

Deployed on AWS Lambda behind API Gateway through Mangum; run locally with
run_server().
"""

from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from mangum import Mangum

from adboost import __version__
from adboost.utils.logging import configure_logging, get_logger
from adboost_api.exceptions import register_exception_handlers
from adboost_api.middleware.correlation import CorrelationIdMiddleware
from adboost_api.routes.webhooks import router as webhooks_router

configure_logging()
logger = get_logger(__name__)

app = FastAPI(
    title="AdBoost Webhooks",
    description="Flutterwave payment webhook that provisions event ad packages",
    version=__version__,
)

app.add_middleware(CorrelationIdMiddleware)

# Register exception handlers for consistent error responses
register_exception_handlers(app)

app.include_router(webhooks_router, prefix="/api")


@app.get("/api/ping")
async def ping() -> dict[str, Any]:
    """Liveness check at /api/ping."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "adboost-webhooks",
    }


# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = True) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 8080)
        reload: Enable hot reload for development (default: True)
    """
    import uvicorn

    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run("adboost_api.main:app", host=host, port=port, reload=True)
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
