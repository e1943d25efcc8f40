"""Pydantic models for guestpass access control entities."""

from .access import (
    AccessDecision,
    DeviceCheckResult,
    NormalizedIdentity,
    RegisterResult,
    SubmissionOutcome,
    TokenVerificationResult,
    VerificationResult,
)
from .enums import (
    AccessState,
    DenialReason,
    IdentityKind,
    RegisterStatus,
    RestrictionReason,
    VerificationStatus,
)
from .errors import AccessError, AccessErrorResponse, ErrorCode
from .guest import (
    MAX_DEVICES_ALLOWED,
    MIN_DEVICES_ALLOWED,
    DeviceState,
    Guest,
    GuestProjection,
)

__all__ = [
    # Enums
    "AccessState",
    "DenialReason",
    "IdentityKind",
    "RegisterStatus",
    "RestrictionReason",
    "VerificationStatus",
    # Errors
    "AccessError",
    "AccessErrorResponse",
    "ErrorCode",
    # Guest
    "MAX_DEVICES_ALLOWED",
    "MIN_DEVICES_ALLOWED",
    "DeviceState",
    "Guest",
    "GuestProjection",
    # Results
    "AccessDecision",
    "DeviceCheckResult",
    "NormalizedIdentity",
    "RegisterResult",
    "SubmissionOutcome",
    "TokenVerificationResult",
    "VerificationResult",
]
