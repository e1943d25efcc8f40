"""Request and response bodies for the host-only admin routes."""

from pydantic import BaseModel, ConfigDict, Field

from guestpass.models import MAX_DEVICES_ALLOWED, MIN_DEVICES_ALLOWED


class QuotaUpdateRequest(BaseModel):
    """Body of PUT /admin/guests/{guest_id}/quota."""

    model_config = ConfigDict(strict=True)

    max_devices_allowed: int = Field(
        ...,
        ge=MIN_DEVICES_ALLOWED,
        le=MAX_DEVICES_ALLOWED,
        description="New device quota",
    )


class TokenRegeneratedResponse(BaseModel):
    """New link for a guest whose token was regenerated."""

    model_config = ConfigDict(strict=True)

    guest_id: str
    token: str = Field(..., description="New invitation token; the old one no longer resolves")
