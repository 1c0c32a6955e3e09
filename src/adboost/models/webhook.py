"""Response bodies for the Flutterwave webhook endpoint."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ProcessedPackage(BaseModel):
    """Summary of the package created for a verified payment."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    event_id: str
    package_id: str
    ad_code: str
    amount: int | float | None


class WebhookResponse(BaseModel):
    """Body of every 200 response.

    - ignored: only ``message`` is set
    - processed: ``success`` and ``data`` are set
    - duplicate: ``success`` and ``duplicate`` are set
    """

    success: bool | None = None
    message: str
    duplicate: bool | None = None
    data: ProcessedPackage | None = Field(default=None)

    @classmethod
    def ignored(cls) -> "WebhookResponse":
        return cls(message="Event ignored")

    @classmethod
    def duplicate_transaction(cls) -> "WebhookResponse":
        return cls(success=True, message="Transaction already processed", duplicate=True)

    @classmethod
    def processed(cls, package: ProcessedPackage) -> "WebhookResponse":
        return cls(success=True, message="Payment processed successfully", data=package)

    def to_body(self) -> dict[str, Any]:
        """JSON body with unset fields dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
