"""FastAPI exception handlers for converting AccessError to HTTP responses.

Access services return typed results; routes raise AccessError for the
failed ones and the handlers here turn them into JSON bodies with the
AccessErrorResponse shape.

The ErrorCode-to-HTTP status mapping:
- 400 Bad Request: Malformed identity submission
- 401 Unauthorized: Missing or wrong admin key
- 403 Forbidden: Identity mismatch or device quota exhausted
- 404 Not Found: Unknown token or guest
- 410 Gone: Token expired after its first use
- 422 Unprocessable Entity: Quota out of range
- 429 Too Many Requests: Rate limiting

Usage:
    from guestpass_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_410_GONE,
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_429_TOO_MANY_REQUESTS,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from guestpass.models.errors import AccessError, ErrorCode
from guestpass.utils.logging import get_logger

logger = get_logger(__name__)

# Map ErrorCode to HTTP status codes
ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    # Token errors
    ErrorCode.TOKEN_INVALID: HTTP_404_NOT_FOUND,
    ErrorCode.TOKEN_EXPIRED: HTTP_410_GONE,
    # Identity errors
    ErrorCode.INVALID_IDENTITY: HTTP_400_BAD_REQUEST,
    ErrorCode.IDENTITY_MISMATCH: HTTP_403_FORBIDDEN,
    # Device errors
    ErrorCode.DEVICE_LIMIT_REACHED: HTTP_403_FORBIDDEN,
    ErrorCode.FINGERPRINT_UNAVAILABLE: HTTP_400_BAD_REQUEST,
    # Admin errors
    ErrorCode.GUEST_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_QUOTA: HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.ADMIN_AUTH_REQUIRED: HTTP_401_UNAUTHORIZED,
    # Rate limiting
    ErrorCode.RATE_LIMITED: HTTP_429_TOO_MANY_REQUESTS,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode, defaulting to 400."""
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def access_error_handler(request: Request, exc: AccessError) -> JSONResponse:
    """Handle AccessError exceptions and convert to JSON response.

    Args:
        request: The incoming request (unused but required by FastAPI)
        exc: The AccessError exception

    Returns:
        JSONResponse with error details and appropriate status code.
    """
    return JSONResponse(
        status_code=get_http_status_for_error(exc.code),
        content=exc.to_response().model_dump(mode="json"),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions with a generic error response.

    Internal details never reach the client; the access flow treats any
    non-decision response as a denial.
    """
    logger.exception("Unhandled exception on %s: %s", request.url.path, exc)

    error_response = {
        "success": False,
        "error_code": "ERR_INTERNAL",
        "message": "An unexpected error occurred",
        "recovery": "Please try again later or contact the host",
        "details": None,
    }

    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(AccessError, access_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
