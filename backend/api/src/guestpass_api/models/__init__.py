"""API-specific request/response models.

Domain models (GuestProjection, VerificationResult, DeviceState, ...) live in
guestpass.models and are reused here where they fit. This package holds
request bodies and the few response wrappers that only the HTTP layer needs.

Modules:
- access: Token, device and identity request/response bodies
- admin: Quota and token regeneration bodies
"""

from .access import (
    CheckDeviceRequest,
    TokenVerifiedResponse,
    VerifyIdentityRequest,
    VerifyTokenRequest,
)
from .admin import QuotaUpdateRequest, TokenRegeneratedResponse

__all__ = [
    "CheckDeviceRequest",
    "QuotaUpdateRequest",
    "TokenRegeneratedResponse",
    "TokenVerifiedResponse",
    "VerifyIdentityRequest",
    "VerifyTokenRequest",
]
