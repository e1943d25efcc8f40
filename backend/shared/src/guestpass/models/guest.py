"""Guest model for invitation access records."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# Bounds for the per-guest device quota
MIN_DEVICES_ALLOWED = 1
MAX_DEVICES_ALLOWED = 10


class Guest(BaseModel):
    """An invited guest as stored in the guest directory."""

    model_config = ConfigDict(strict=True)

    guest_id: str = Field(..., description="Unique guest ID")
    token: str = Field(..., min_length=1, description="Opaque invitation token")
    name: str = Field(..., description="Display name")
    phone: str | None = Field(default=None, description="Phone number (digits only)")
    email: str | None = Field(default=None, description="Email (trimmed, lowercase)")
    event_access: list[str] = Field(
        default_factory=list, description="Event identifiers the guest may view"
    )
    max_devices_allowed: int = Field(
        default=MIN_DEVICES_ALLOWED,
        ge=MIN_DEVICES_ALLOWED,
        le=MAX_DEVICES_ALLOWED,
        description="Device quota",
    )
    allowed_devices: list[str] = Field(
        default_factory=list, description="Fingerprint hashes of registered devices"
    )
    first_access_at: datetime | None = Field(
        default=None, description="First successful grant (immutable once set)"
    )
    token_first_used_at: datetime | None = Field(
        default=None, description="First successful use of the current token"
    )
    token_expires_after_first_use: bool = Field(
        default=False, description="Whether the current token expires after first use"
    )
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    @property
    def has_identity(self) -> bool:
        """Whether a phone number or email is on file."""
        return bool(self.phone or self.email)

    @property
    def device_count(self) -> int:
        return len(self.allowed_devices)


class GuestProjection(BaseModel):
    """Minimal guest view returned to clients by the token verifier.

    The device list itself never leaves the server; only its size does.
    """

    model_config = ConfigDict(strict=True)

    guest_id: str
    name: str
    has_phone: bool
    has_email: bool
    phone: str | None = None
    email: str | None = None
    event_access: list[str] = Field(default_factory=list)
    device_count: int = Field(..., ge=0)
    max_devices_allowed: int = Field(..., ge=MIN_DEVICES_ALLOWED)
    first_access_at: datetime | None = None

    @property
    def has_identity(self) -> bool:
        return self.has_phone or self.has_email

    @classmethod
    def from_guest(cls, guest: Guest) -> "GuestProjection":
        """Build the projection from a full guest record."""
        return cls(
            guest_id=guest.guest_id,
            name=guest.name,
            has_phone=bool(guest.phone),
            has_email=bool(guest.email),
            phone=guest.phone,
            email=guest.email,
            event_access=list(guest.event_access),
            device_count=guest.device_count,
            max_devices_allowed=guest.max_devices_allowed,
            first_access_at=guest.first_access_at,
        )


class DeviceState(BaseModel):
    """Device list summary returned by administrative operations."""

    model_config = ConfigDict(strict=True)

    guest_id: str
    allowed_devices: list[str] = Field(default_factory=list)
    device_count: int = Field(..., ge=0)
    max_devices_allowed: int = Field(..., ge=MIN_DEVICES_ALLOWED)

    @classmethod
    def from_guest(cls, guest: Guest) -> "DeviceState":
        return cls(
            guest_id=guest.guest_id,
            allowed_devices=list(guest.allowed_devices),
            device_count=guest.device_count,
            max_devices_allowed=guest.max_devices_allowed,
        )
