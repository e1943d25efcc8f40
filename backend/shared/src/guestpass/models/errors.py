"""Standard error codes for invitation access control.

All access components report failures with these codes so the API layer and
the client flow can present consistent messages.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Access control error codes."""

    # Token errors (ERR_ACCESS_001-ERR_ACCESS_002)
    TOKEN_INVALID = "ERR_ACCESS_001"
    TOKEN_EXPIRED = "ERR_ACCESS_002"

    # Identity errors (ERR_ACCESS_003-ERR_ACCESS_004)
    IDENTITY_MISMATCH = "ERR_ACCESS_003"
    INVALID_IDENTITY = "ERR_ACCESS_004"

    # Device errors (ERR_ACCESS_005-ERR_ACCESS_006)
    DEVICE_LIMIT_REACHED = "ERR_ACCESS_005"
    FINGERPRINT_UNAVAILABLE = "ERR_ACCESS_006"

    # Administrative errors (ERR_ADMIN_001-ERR_ADMIN_003)
    GUEST_NOT_FOUND = "ERR_ADMIN_001"
    INVALID_QUOTA = "ERR_ADMIN_002"
    ADMIN_AUTH_REQUIRED = "ERR_ADMIN_003"

    # Transport errors
    RATE_LIMITED = "ERR_RATE_001"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.TOKEN_INVALID: "This invitation link is not valid",
    ErrorCode.TOKEN_EXPIRED: "This invitation link has expired",
    ErrorCode.IDENTITY_MISMATCH: "This link is not valid for you",
    ErrorCode.INVALID_IDENTITY: "Please enter a valid phone number or email address",
    ErrorCode.DEVICE_LIMIT_REACHED: "Too many devices have already used this link",
    ErrorCode.FINGERPRINT_UNAVAILABLE: "Device could not be identified",
    ErrorCode.GUEST_NOT_FOUND: "Guest not found",
    ErrorCode.INVALID_QUOTA: "Device quota must be between 1 and 10",
    ErrorCode.ADMIN_AUTH_REQUIRED: "Administrator authentication required",
    ErrorCode.RATE_LIMITED: "Too many requests",
}

# Recovery suggestions shown alongside the message
ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.TOKEN_INVALID: "Contact the host for a new invitation link",
    ErrorCode.TOKEN_EXPIRED: "Contact the host for a new invitation link",
    ErrorCode.IDENTITY_MISMATCH: "Enter the same phone number or email used earlier, or contact the host",
    ErrorCode.INVALID_IDENTITY: "Check the value and try again",
    ErrorCode.DEVICE_LIMIT_REACHED: "Open the link from a device you used before, or contact the host",
    ErrorCode.FINGERPRINT_UNAVAILABLE: "Verify your phone number or email to continue",
    ErrorCode.GUEST_NOT_FOUND: "Check the guest ID",
    ErrorCode.INVALID_QUOTA: "Choose a quota between 1 and 10",
    ErrorCode.ADMIN_AUTH_REQUIRED: "Provide a valid X-Admin-Key header",
    ErrorCode.RATE_LIMITED: "Please try again later",
}


class AccessErrorResponse(BaseModel):
    """Standard error response body for access failures."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    details: Optional[dict[str, str]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ) -> "AccessErrorResponse":
        """Create an AccessErrorResponse from an error code."""
        return cls(
            error_code=code,
            message=ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            details=details,
        )


class AccessError(Exception):
    """Exception raised at the HTTP boundary for access failures.

    Services return typed results; routes translate failed results into this
    exception so the registered handler can pick the HTTP status.
    """

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ):
        self.code = code
        self.message = ERROR_MESSAGES[code]
        self.recovery = ERROR_RECOVERY[code]
        self.details = details
        super().__init__(self.message)

    def to_response(self) -> AccessErrorResponse:
        """Convert this exception to an AccessErrorResponse."""
        return AccessErrorResponse.from_code(self.code, self.details)
