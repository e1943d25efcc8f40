"""Result models for token, identity and device checks.

Every access component returns one of these typed results instead of
raising; only unexpected infrastructure failures propagate as exceptions.
"""

from pydantic import BaseModel, ConfigDict, Field

from .enums import (
    AccessState,
    DenialReason,
    IdentityKind,
    RegisterStatus,
    RestrictionReason,
    VerificationStatus,
)
from .errors import ErrorCode
from .guest import GuestProjection


class NormalizedIdentity(BaseModel):
    """A phone number or email reduced to its comparable form."""

    model_config = ConfigDict(strict=True, frozen=True)

    kind: IdentityKind
    value: str


class TokenVerificationResult(BaseModel):
    """Result of resolving an invitation token."""

    model_config = ConfigDict(strict=True)

    success: bool = Field(..., description="Whether the token resolved to a guest")
    guest: GuestProjection | None = Field(default=None, description="Guest projection")
    error_code: ErrorCode | None = Field(default=None, description="Error code if failed")


class RegisterResult(BaseModel):
    """Result of a device registration attempt."""

    model_config = ConfigDict(strict=True)

    status: RegisterStatus
    device_count: int = Field(default=0, ge=0)
    max_devices_allowed: int = Field(default=0, ge=0)

    @property
    def success(self) -> bool:
        return self.status in (RegisterStatus.REGISTERED, RegisterStatus.ALREADY_REGISTERED)


class VerificationResult(BaseModel):
    """Result of an identity submission for a token."""

    model_config = ConfigDict(strict=True)

    status: VerificationStatus
    guest_id: str | None = None
    identity_kind: IdentityKind | None = None
    is_first_time: bool = Field(
        default=False, description="Submission became the identity of record"
    )
    device_registered: bool = Field(
        default=False, description="A fingerprint was (or already was) on the device list"
    )
    device_count: int = Field(default=0, ge=0)
    max_devices_allowed: int = Field(default=0, ge=0)

    @property
    def success(self) -> bool:
        return self.status == VerificationStatus.GRANTED


class DeviceCheckResult(BaseModel):
    """Whether a fingerprint is on a guest's device list."""

    model_config = ConfigDict(strict=True)

    known: bool


class AccessDecision(BaseModel):
    """Outcome of one visit through the client access state machine."""

    model_config = ConfigDict(strict=True)

    state: AccessState
    guest: GuestProjection | None = None
    denial_reason: DenialReason | None = None
    restriction_reason: RestrictionReason | None = None
    degraded: bool = Field(
        default=False, description="Fingerprinting failed; identity is asked every visit"
    )

    @property
    def granted(self) -> bool:
        return self.state == AccessState.GRANTED


class SubmissionOutcome(BaseModel):
    """Outcome of submitting an identity from the client flow."""

    model_config = ConfigDict(strict=True)

    status: VerificationStatus
    decision: AccessDecision
    message: str | None = None

    @property
    def granted(self) -> bool:
        return self.status == VerificationStatus.GRANTED
