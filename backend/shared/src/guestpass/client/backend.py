"""Transports between the client access flow and the access service.

``LocalAccessBackend`` calls the services in-process (server-rendered pages,
tests). ``HttpAccessBackend`` talks to the REST API with httpx; any
``httpx.Client`` works, including FastAPI's ``TestClient``.
"""

from typing import Protocol

import httpx

from guestpass.models import (
    AccessErrorResponse,
    DeviceCheckResult,
    ErrorCode,
    TokenVerificationResult,
    VerificationResult,
    VerificationStatus,
)
from guestpass.models.guest import GuestProjection
from guestpass.services.access_service import AccessService


class AccessBackendError(Exception):
    """The backend failed in a way the flow cannot interpret as a decision."""

    def __init__(self, message: str, error_code: ErrorCode | None = None) -> None:
        self.error_code = error_code
        super().__init__(message)


class AccessBackend(Protocol):
    """Server calls made during one visit."""

    def verify_token(self, token: str) -> TokenVerificationResult: ...

    def check_device(self, token: str, fingerprint: str) -> bool: ...

    def verify_identity(
        self, token: str, identity: str, fingerprint: str | None
    ) -> VerificationResult: ...


class LocalAccessBackend:
    """In-process backend over an AccessService."""

    def __init__(self, service: AccessService) -> None:
        self.service = service

    def verify_token(self, token: str) -> TokenVerificationResult:
        return self.service.verify_token(token)

    def check_device(self, token: str, fingerprint: str) -> bool:
        result, error_code = self.service.check_device(token, fingerprint)
        if result is None:
            raise AccessBackendError("token no longer resolves", error_code)
        return result.known

    def verify_identity(
        self, token: str, identity: str, fingerprint: str | None
    ) -> VerificationResult:
        return self.service.verify_identity(token, identity, fingerprint)


# Error codes the identity route reports as a typed submission outcome
_SUBMISSION_ERRORS: dict[ErrorCode, VerificationStatus] = {
    ErrorCode.IDENTITY_MISMATCH: VerificationStatus.IDENTITY_MISMATCH,
    ErrorCode.DEVICE_LIMIT_REACHED: VerificationStatus.DEVICE_LIMIT_REACHED,
    ErrorCode.INVALID_IDENTITY: VerificationStatus.INVALID_IDENTITY,
    ErrorCode.TOKEN_INVALID: VerificationStatus.TOKEN_INVALID,
    ErrorCode.TOKEN_EXPIRED: VerificationStatus.TOKEN_INVALID,
}

_TOKEN_ERRORS = (ErrorCode.TOKEN_INVALID, ErrorCode.TOKEN_EXPIRED)


class HttpAccessBackend:
    """Backend that calls the guestpass REST API.

    Args:
        client: httpx client whose base_url points at the API root
        prefix: Path prefix the access routes are mounted under
    """

    def __init__(self, client: httpx.Client, prefix: str = "/api/access") -> None:
        self.client = client
        self.prefix = prefix.rstrip("/")

    def _post(self, path: str, payload: dict) -> httpx.Response:
        try:
            return self.client.post(f"{self.prefix}{path}", json=payload)
        except httpx.HTTPError as e:
            raise AccessBackendError(f"request to {path} failed: {e}") from e

    @staticmethod
    def _error_code(response: httpx.Response) -> ErrorCode | None:
        try:
            return AccessErrorResponse.model_validate_json(response.content).error_code
        except ValueError:
            return None

    def verify_token(self, token: str) -> TokenVerificationResult:
        response = self._post("/verify-token", {"token": token})
        if response.status_code == httpx.codes.OK:
            guest = GuestProjection.model_validate(
                response.json()["guest"], strict=False
            )
            return TokenVerificationResult(success=True, guest=guest)

        error_code = self._error_code(response)
        if error_code in _TOKEN_ERRORS:
            return TokenVerificationResult(success=False, error_code=error_code)
        raise AccessBackendError(
            f"verify-token returned HTTP {response.status_code}", error_code
        )

    def check_device(self, token: str, fingerprint: str) -> bool:
        response = self._post(
            "/check-device", {"token": token, "fingerprint": fingerprint}
        )
        if response.status_code != httpx.codes.OK:
            raise AccessBackendError(
                f"check-device returned HTTP {response.status_code}",
                self._error_code(response),
            )
        return DeviceCheckResult.model_validate_json(response.content).known

    def verify_identity(
        self, token: str, identity: str, fingerprint: str | None
    ) -> VerificationResult:
        response = self._post(
            "/verify-identity",
            {"token": token, "identity": identity, "fingerprint": fingerprint},
        )
        if response.status_code == httpx.codes.OK:
            return VerificationResult.model_validate_json(response.content)

        error_code = self._error_code(response)
        if error_code in _SUBMISSION_ERRORS:
            return VerificationResult(status=_SUBMISSION_ERRORS[error_code])
        raise AccessBackendError(
            f"verify-identity returned HTTP {response.status_code}", error_code
        )
