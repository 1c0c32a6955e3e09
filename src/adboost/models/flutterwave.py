"""Flutterwave payloads: inbound webhook events and verification results."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

SUCCESS_EVENT_TYPE = "charge.completed"
SUCCESSFUL_CHARGE_STATUS = "successful"
VERIFY_SUCCESS_STATUS = "success"


class FlutterwaveCustomer(BaseModel):
    """Customer block attached to a charge."""

    model_config = ConfigDict(extra="ignore")

    email: str | None = None
    name: str | None = None


class ChargeData(BaseModel):
    """A Flutterwave charge as delivered in webhooks and verify responses.

    Flutterwave sends numeric transaction ids; amounts may be integral or
    fractional depending on currency.
    """

    model_config = ConfigDict(extra="ignore")

    id: int | str | None = Field(default=None, description="Flutterwave transaction ID")
    status: str | None = Field(default=None, examples=["successful", "failed"])
    amount: int | float | None = None
    currency: str | None = Field(default=None, examples=["NGN"])
    tx_ref: str | None = Field(
        default=None,
        description="Merchant reference, boost_<eventId>_<timestamp>",
        examples=["boost_evt123_1699999999"],
    )
    flw_ref: str | None = None
    payment_type: str | None = Field(default=None, examples=["card"])
    customer: FlutterwaveCustomer = Field(default_factory=FlutterwaveCustomer)


class EventEnvelope(BaseModel):
    """Loose view of a webhook body: only what the event filter reads.

    Fields are kept as raw JSON values so deliveries of other event types
    (or charges in other states) are never rejected for their shape.
    """

    model_config = ConfigDict(extra="ignore")

    event: Any = None
    data: Any = None

    @property
    def charge_status(self) -> Any:
        return self.data.get("status") if isinstance(self.data, dict) else None

    @property
    def transaction_id(self) -> Any:
        return self.data.get("id") if isinstance(self.data, dict) else None

    @property
    def is_successful_charge(self) -> bool:
        """True for a completed charge whose status is successful."""
        return self.event == SUCCESS_EVENT_TYPE and self.charge_status == SUCCESSFUL_CHARGE_STATUS


class InboundEvent(BaseModel):
    """A successful charge webhook, fully validated. Untrusted until re-verified."""

    model_config = ConfigDict(extra="ignore")

    event: str = Field(..., examples=["charge.completed"])
    data: ChargeData


class VerificationResult(BaseModel):
    """Response of GET /transactions/{id}/verify."""

    model_config = ConfigDict(extra="ignore")

    status: str | None = None
    message: str | None = None
    data: ChargeData | None = None

    @property
    def is_successful(self) -> bool:
        """Both the API call and the charge itself must report success."""
        return (
            self.status == VERIFY_SUCCESS_STATUS
            and self.data is not None
            and self.data.status == SUCCESSFUL_CHARGE_STATUS
        )
