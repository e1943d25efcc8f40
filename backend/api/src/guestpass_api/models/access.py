"""Request and response bodies for the guest access routes."""

from pydantic import BaseModel, ConfigDict, Field

from guestpass.models import GuestProjection


class VerifyTokenRequest(BaseModel):
    """Body of POST /access/verify-token."""

    model_config = ConfigDict(strict=True)

    token: str = Field(
        ...,
        max_length=128,
        description="Invitation token from the link",
        examples=["aB3dE5fG7hJ9"],
    )


class TokenVerifiedResponse(BaseModel):
    """Guest projection for a token that resolved."""

    model_config = ConfigDict(strict=True)

    success: bool = True
    guest: GuestProjection


class CheckDeviceRequest(BaseModel):
    """Body of POST /access/check-device."""

    model_config = ConfigDict(strict=True)

    token: str = Field(..., max_length=128, description="Invitation token")
    fingerprint: str = Field(
        ...,
        min_length=1,
        max_length=128,
        description="Device fingerprint hash",
    )


class VerifyIdentityRequest(BaseModel):
    """Body of POST /access/verify-identity."""

    model_config = ConfigDict(strict=True)

    token: str = Field(..., max_length=128, description="Invitation token")
    identity: str = Field(
        ...,
        max_length=254,
        description="Phone number or email address entered by the guest",
        examples=["+1 (555) 123-4567", "guest@example.com"],
    )
    fingerprint: str | None = Field(
        default=None,
        max_length=128,
        description="Device fingerprint; omitted when the client could not compute one",
    )
