"""API routes package.

- webhooks: Flutterwave payment webhook

All routers are registered in main.py with /api prefix.
"""

from adboost_api.routes.webhooks import router as webhooks_router

__all__ = ["webhooks_router"]
