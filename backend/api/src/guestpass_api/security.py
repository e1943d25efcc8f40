"""Host authentication for the admin routes.

Admin routes require the shared key in the ``X-Admin-Key`` header. The key
is resolved through ``get_admin_api_key`` (environment first, then SSM) and
compared in constant time.
"""

import hmac

from fastapi import Request

from guestpass.models.errors import AccessError, ErrorCode
from guestpass.services.ssm_service import SSMServiceError, get_admin_api_key
from guestpass.utils.logging import get_logger

logger = get_logger(__name__)

ADMIN_KEY_HEADER = "X-Admin-Key"


def _get_header_case_insensitive(request: Request, header_name: str) -> str | None:
    for name, value in request.headers.items():
        if name.lower() == header_name.lower():
            return value.strip() if value else None
    return None


def require_admin(request: Request) -> None:
    """Dependency that rejects requests without a valid admin key.

    Raises:
        AccessError: ADMIN_AUTH_REQUIRED (401) if the key is missing, wrong,
            or no key is configured.

    Usage:
        @router.post("/admin/...", dependencies=[Depends(require_admin)])
    """
    provided = _get_header_case_insensitive(request, ADMIN_KEY_HEADER)
    if not provided:
        logger.warning("admin_key_missing", extra={"path": request.url.path})
        raise AccessError(ErrorCode.ADMIN_AUTH_REQUIRED)

    try:
        expected = get_admin_api_key()
    except SSMServiceError as e:
        logger.error("admin_key_unavailable", extra={"error": str(e)})
        raise AccessError(ErrorCode.ADMIN_AUTH_REQUIRED) from e

    if not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("admin_key_rejected", extra={"path": request.url.path})
        raise AccessError(ErrorCode.ADMIN_AUTH_REQUIRED)
