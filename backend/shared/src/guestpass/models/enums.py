"""Enumeration types for guestpass data models."""

from enum import Enum


class IdentityKind(str, Enum):
    """Kind of identity a guest can prove."""

    PHONE = "phone"
    EMAIL = "email"


class RegisterStatus(str, Enum):
    """Outcome of a device registration attempt."""

    REGISTERED = "registered"
    ALREADY_REGISTERED = "already_registered"
    LIMIT_REACHED = "limit_reached"
    GUEST_NOT_FOUND = "guest_not_found"


class VerificationStatus(str, Enum):
    """Outcome of an identity submission."""

    GRANTED = "granted"
    IDENTITY_MISMATCH = "identity_mismatch"
    DEVICE_LIMIT_REACHED = "device_limit_reached"
    INVALID_IDENTITY = "invalid_identity"
    TOKEN_INVALID = "token_invalid"


class AccessState(str, Enum):
    """States of the client-side access state machine."""

    LOADING = "loading"
    IDENTITY_REQUIRED = "identity_required"
    CACHE_CHECK = "cache_check"
    DEVICE_CHECK = "device_check"
    IDENTITY_VERIFICATION = "identity_verification"
    GRANTED = "granted"
    ACCESS_DENIED = "access_denied"
    RESTRICTED = "restricted"


class DenialReason(str, Enum):
    """Why a token was refused outright."""

    INVALID = "invalid"
    EXPIRED = "expired"
    ERROR = "error"


class RestrictionReason(str, Enum):
    """Why a valid token was refused for this guest or device."""

    IDENTITY_MISMATCH = "identity_mismatch"
    DEVICE_LIMIT_REACHED = "device_limit_reached"
