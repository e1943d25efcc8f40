"""Host-only endpoints for managing a guest's devices and link.

Provides REST endpoints for:
- Clearing all registered devices
- Removing a single registered device
- Changing the device quota
- Regenerating the invitation token

Every route requires the X-Admin-Key header.
"""

from fastapi import APIRouter, Depends

from guestpass.models import AccessError, DeviceState, ErrorCode, Guest
from guestpass.services.admin_service import AdminService

from guestpass_api.dependencies import get_admin_service
from guestpass_api.models.admin import QuotaUpdateRequest, TokenRegeneratedResponse
from guestpass_api.security import require_admin

router = APIRouter(
    prefix="/admin/guests",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
    responses={
        401: {"description": "Missing or invalid admin key"},
        404: {"description": "Guest not found"},
    },
)


def _found(guest: Guest | None, guest_id: str) -> Guest:
    if guest is None:
        raise AccessError(ErrorCode.GUEST_NOT_FOUND, details={"guest_id": guest_id})
    return guest


@router.post(
    "/{guest_id}/devices/clear",
    summary="Clear registered devices",
    description="Forget every device registered for the guest. The guest's next visit asks for identity again.",
    response_model=DeviceState,
)
async def clear_devices(
    guest_id: str,
    admin: AdminService = Depends(get_admin_service),
) -> DeviceState:
    guest = _found(admin.clear_devices(guest_id), guest_id)
    return DeviceState.from_guest(guest)


@router.delete(
    "/{guest_id}/devices/{fingerprint}",
    summary="Remove one registered device",
    description="Forget a single device. Removing a fingerprint that is not registered is a no-op.",
    response_model=DeviceState,
)
async def remove_device(
    guest_id: str,
    fingerprint: str,
    admin: AdminService = Depends(get_admin_service),
) -> DeviceState:
    guest = _found(admin.remove_device(guest_id, fingerprint), guest_id)
    return DeviceState.from_guest(guest)


@router.put(
    "/{guest_id}/quota",
    summary="Change the device quota",
    description="""
Set how many devices may use the guest's link (1-10).

Lowering the quota below the number of registered devices does not evict
any of them; it only blocks new registrations.
""",
    response_model=DeviceState,
    responses={422: {"description": "Quota outside 1-10"}},
)
async def set_quota(
    guest_id: str,
    body: QuotaUpdateRequest,
    admin: AdminService = Depends(get_admin_service),
) -> DeviceState:
    try:
        guest = admin.set_quota(guest_id, body.max_devices_allowed)
    except ValueError as e:
        raise AccessError(ErrorCode.INVALID_QUOTA, details={"reason": str(e)}) from e
    return DeviceState.from_guest(_found(guest, guest_id))


@router.post(
    "/{guest_id}/token/regenerate",
    summary="Regenerate the invitation link",
    description="""
Issue a new token for the guest.

The old link stops working immediately and every registered device is
forgotten. Identity, event access and first access time are kept.
""",
    response_model=TokenRegeneratedResponse,
)
async def regenerate_token(
    guest_id: str,
    admin: AdminService = Depends(get_admin_service),
) -> TokenRegeneratedResponse:
    guest = _found(admin.regenerate_token(guest_id), guest_id)
    return TokenRegeneratedResponse(guest_id=guest.guest_id, token=guest.token)
