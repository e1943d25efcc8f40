"""Guest access endpoints called by the invitation page.

Provides REST endpoints for:
- Token verification (page load)
- Device check (known fingerprint skips the identity prompt)
- Identity verification (phone or email, registers the device on success)

All three are public; the token itself is the credential. Responses are
never cacheable (see NoStoreMiddleware).
"""

from fastapi import APIRouter, Depends

from guestpass.models import (
    AccessError,
    DeviceCheckResult,
    ErrorCode,
    VerificationResult,
    VerificationStatus,
)
from guestpass.services.access_service import AccessService

from guestpass_api.dependencies import get_access_service
from guestpass_api.models.access import (
    CheckDeviceRequest,
    TokenVerifiedResponse,
    VerifyIdentityRequest,
    VerifyTokenRequest,
)
from guestpass_api.rate_limit import (
    CHECK_DEVICE_LIMIT,
    VERIFY_IDENTITY_LIMIT,
    VERIFY_TOKEN_LIMIT,
    rate_limit,
)

router = APIRouter(prefix="/access", tags=["access"])

# Failed identity submissions surfaced as HTTP errors
STATUS_TO_ERROR_CODE: dict[VerificationStatus, ErrorCode] = {
    VerificationStatus.TOKEN_INVALID: ErrorCode.TOKEN_INVALID,
    VerificationStatus.INVALID_IDENTITY: ErrorCode.INVALID_IDENTITY,
    VerificationStatus.IDENTITY_MISMATCH: ErrorCode.IDENTITY_MISMATCH,
    VerificationStatus.DEVICE_LIMIT_REACHED: ErrorCode.DEVICE_LIMIT_REACHED,
}


@router.post(
    "/verify-token",
    summary="Resolve an invitation token",
    description="""
Resolve the token from an invitation link to the guest it belongs to.

**Public endpoint** - the token is the credential.

Returns a minimal guest projection. The registered device list is never
included, only its size.
""",
    response_model=TokenVerifiedResponse,
    responses={
        404: {"description": "Token does not resolve"},
        410: {"description": "Token expired after its first use"},
        429: {"description": "Too many requests (rate limited)"},
    },
    dependencies=[Depends(rate_limit("verify-token", VERIFY_TOKEN_LIMIT))],
)
async def verify_token(
    body: VerifyTokenRequest,
    access: AccessService = Depends(get_access_service),
) -> TokenVerifiedResponse:
    result = access.verify_token(body.token)
    if not result.success or result.guest is None:
        raise AccessError(result.error_code or ErrorCode.TOKEN_INVALID)
    return TokenVerifiedResponse(guest=result.guest)


@router.post(
    "/check-device",
    summary="Check a device fingerprint",
    description="""
Report whether the fingerprint is already registered for the token's guest.

A known device is granted access without an identity prompt. Checking never
registers anything.
""",
    response_model=DeviceCheckResult,
    responses={
        404: {"description": "Token does not resolve"},
        410: {"description": "Token expired after its first use"},
        429: {"description": "Too many requests (rate limited)"},
    },
    dependencies=[Depends(rate_limit("check-device", CHECK_DEVICE_LIMIT))],
)
async def check_device(
    body: CheckDeviceRequest,
    access: AccessService = Depends(get_access_service),
) -> DeviceCheckResult:
    result, error_code = access.check_device(body.token, body.fingerprint)
    if result is None:
        raise AccessError(error_code or ErrorCode.TOKEN_INVALID)
    return result


@router.post(
    "/verify-identity",
    summary="Verify a phone number or email",
    description="""
Compare the submitted phone number or email with the guest's identity and,
on a match, register the submitting device.

**Notes:**
- A guest without an identity on file adopts the first submission
- Omit `fingerprint` when the device could not be fingerprinted; access is
  granted without registering a device
- A matching identity is still refused once the device quota is used up
""",
    response_model=VerificationResult,
    responses={
        400: {"description": "Submission is not a usable phone number or email"},
        403: {"description": "Identity mismatch or device limit reached"},
        404: {"description": "Token does not resolve"},
        429: {"description": "Too many requests (rate limited)"},
    },
    dependencies=[Depends(rate_limit("verify-identity", VERIFY_IDENTITY_LIMIT))],
)
async def verify_identity(
    body: VerifyIdentityRequest,
    access: AccessService = Depends(get_access_service),
) -> VerificationResult:
    result = access.verify_identity(body.token, body.identity, body.fingerprint)
    if result.status != VerificationStatus.GRANTED:
        details = None
        if result.status == VerificationStatus.DEVICE_LIMIT_REACHED:
            details = {
                "device_count": str(result.device_count),
                "max_devices_allowed": str(result.max_devices_allowed),
            }
        raise AccessError(STATUS_TO_ERROR_CODE[result.status], details=details)
    return result
