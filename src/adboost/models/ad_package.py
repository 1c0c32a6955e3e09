"""Ad package record written to Firestore after a verified payment."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

PACKAGE_STATUS_PENDING_UPLOAD = "pending_upload"


class _Document(BaseModel):
    """Base for models stored as Firestore documents (camelCase keys)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FlutterwaveReference(_Document):
    """Processor references kept for support lookups."""

    tx_ref: str | None = None
    flw_ref: str | None = None
    payment_type: str | None = None


class AdSlot(_Document):
    """A single ad slot awaiting creative upload."""

    content_type: str | None = None
    data_url: str | None = None
    website_url: str | None = None
    edits_used: int = 0
    total_edits: int = 1
    views: int = 0
    clicks: int = 0
    uploaded: bool = False


class AdPackage(_Document):
    """A purchased advertising bundle nested under a physical event.

    Created exactly once per processed webhook; never updated here.
    """

    package_id: str = Field(..., examples=["ads_pkg_1699999999000_a1b2c3"])
    package_name: str = "Webhook Package"
    package_type: str = "webhook"

    # Status & timing
    status: str = PACKAGE_STATUS_PENDING_UPLOAD
    created_at: datetime
    expires_at: datetime

    # Payment
    total_amount_paid: int | float | None
    payment_id: int | str | None
    ad_code: str = Field(..., pattern=r"^AD[A-Z0-9]{11}$")
    currency: str | None

    # Customer
    customer_email: str | None = None
    customer_name: str | None = None

    webhook_processed_at: datetime
    flutterwave_data: FlutterwaveReference

    # Default configuration
    ad_types: list[str] = Field(default_factory=lambda: ["image"])
    placements: list[str] = Field(default_factory=lambda: ["app_ads_footer"])
    duration: int = Field(default=7, description="Campaign length in days")

    ads: dict[str, AdSlot] = Field(default_factory=lambda: {"image": AdSlot()})

    # Analytics
    total_views: int = 0
    total_clicks: int = 0
    views_per_day: dict[str, int] = Field(default_factory=dict)

    def to_document(self) -> dict[str, Any]:
        """Serialize for Firestore: camelCase keys, ISO-8601 timestamps."""
        return self.model_dump(mode="json", by_alias=True)
