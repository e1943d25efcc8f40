"""Unit tests for the client access state machine.

The backend is stubbed so each test pins down one path through the states;
end-to-end runs over the real services live in the integration tests.
"""

from datetime import UTC, datetime
from typing import Any

import pytest

from guestpass.client.access_flow import GuestAccessFlow
from guestpass.client.backend import AccessBackendError
from guestpass.client.fingerprint import ClientEnvironment, FingerprintGenerator
from guestpass.client.session_cache import AccessSessionCache
from guestpass.client.storage import InMemoryStorage
from guestpass.models import (
    AccessState,
    DenialReason,
    ErrorCode,
    GuestProjection,
    RestrictionReason,
    TokenVerificationResult,
    VerificationResult,
    VerificationStatus,
)

TOKEN = "aB3dE5fG7hJ9"


def _projection(phone: str | None = "5551234567", email: str | None = None) -> GuestProjection:
    return GuestProjection(
        guest_id="guest-1",
        name="Ana Silva",
        has_phone=bool(phone),
        has_email=bool(email),
        phone=phone,
        email=email,
        event_access=["ceremony"],
        device_count=0,
        max_devices_allowed=1,
        first_access_at=datetime.now(UTC),
    )


class StubBackend:
    """Records calls and answers with preset results."""

    def __init__(
        self,
        token_result: TokenVerificationResult | None = None,
        known_device: bool = False,
        identity_status: VerificationStatus = VerificationStatus.GRANTED,
    ) -> None:
        self.token_result = token_result or TokenVerificationResult(
            success=True, guest=_projection()
        )
        self.known_device = known_device
        self.identity_status = identity_status
        self.calls: list[tuple[str, Any]] = []

    def verify_token(self, token: str) -> TokenVerificationResult:
        self.calls.append(("verify_token", token))
        return self.token_result

    def check_device(self, token: str, fingerprint: str) -> bool:
        self.calls.append(("check_device", fingerprint))
        return self.known_device

    def verify_identity(
        self, token: str, identity: str, fingerprint: str | None
    ) -> VerificationResult:
        self.calls.append(("verify_identity", (identity, fingerprint)))
        return VerificationResult(status=self.identity_status, guest_id="guest-1")

    def called(self, name: str) -> bool:
        return any(call[0] == name for call in self.calls)


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def environment() -> ClientEnvironment:
    return ClientEnvironment(
        user_agent="Mozilla/5.0",
        screen_resolution="1280x800",
        timezone="Europe/Lisbon",
        platform="MacIntel",
    )


def _flow(
    backend: StubBackend,
    storage: InMemoryStorage,
    environment: ClientEnvironment | None,
) -> GuestAccessFlow:
    return GuestAccessFlow(
        TOKEN,
        backend,
        AccessSessionCache(storage),
        FingerprintGenerator(storage),
        environment,
    )


class TestCheckAccess:
    """Tests for GuestAccessFlow.check_access."""

    def test_invalid_token_is_denied(
        self, storage: InMemoryStorage, environment: ClientEnvironment
    ) -> None:
        backend = StubBackend(
            TokenVerificationResult(success=False, error_code=ErrorCode.TOKEN_INVALID)
        )
        decision = _flow(backend, storage, environment).check_access()

        assert decision.state == AccessState.ACCESS_DENIED
        assert decision.denial_reason == DenialReason.INVALID
        assert not backend.called("check_device")

    def test_expired_token_is_denied_as_expired(
        self, storage: InMemoryStorage, environment: ClientEnvironment
    ) -> None:
        backend = StubBackend(
            TokenVerificationResult(success=False, error_code=ErrorCode.TOKEN_EXPIRED)
        )
        decision = _flow(backend, storage, environment).check_access()

        assert decision.state == AccessState.ACCESS_DENIED
        assert decision.denial_reason == DenialReason.EXPIRED

    def test_guest_without_identity_is_prompted(
        self, storage: InMemoryStorage, environment: ClientEnvironment
    ) -> None:
        backend = StubBackend(
            TokenVerificationResult(success=True, guest=_projection(phone=None))
        )
        flow = _flow(backend, storage, environment)

        decision = flow.check_access()

        assert decision.state == AccessState.IDENTITY_REQUIRED
        assert flow.history == [AccessState.LOADING, AccessState.IDENTITY_REQUIRED]
        assert not backend.called("check_device")

    def test_cached_identity_grants_without_device_check(
        self, storage: InMemoryStorage, environment: ClientEnvironment
    ) -> None:
        AccessSessionCache(storage).set(TOKEN, "(555) 123-4567")
        backend = StubBackend()

        decision = _flow(backend, storage, environment).check_access()

        assert decision.granted
        assert not backend.called("check_device")

    def test_stale_cache_is_cleared_and_device_checked(
        self, storage: InMemoryStorage, environment: ClientEnvironment
    ) -> None:
        cache = AccessSessionCache(storage)
        cache.set(TOKEN, "5550000000")
        backend = StubBackend(known_device=False)
        flow = _flow(backend, storage, environment)

        decision = flow.check_access()

        assert decision.state == AccessState.IDENTITY_VERIFICATION
        assert cache.get(TOKEN) is None
        assert flow.history == [
            AccessState.LOADING,
            AccessState.CACHE_CHECK,
            AccessState.DEVICE_CHECK,
            AccessState.IDENTITY_VERIFICATION,
        ]

    def test_known_device_grants_and_populates_cache(
        self, storage: InMemoryStorage, environment: ClientEnvironment
    ) -> None:
        backend = StubBackend(known_device=True)

        decision = _flow(backend, storage, environment).check_access()

        assert decision.granted
        assert AccessSessionCache(storage).get(TOKEN) == "5551234567"

    def test_unknown_device_asks_for_identity(
        self, storage: InMemoryStorage, environment: ClientEnvironment
    ) -> None:
        decision = _flow(StubBackend(), storage, environment).check_access()

        assert decision.state == AccessState.IDENTITY_VERIFICATION
        assert not decision.degraded

    def test_missing_fingerprint_degrades_to_identity(
        self, storage: InMemoryStorage
    ) -> None:
        backend = StubBackend(known_device=True)

        decision = _flow(backend, storage, None).check_access()

        assert decision.state == AccessState.IDENTITY_VERIFICATION
        assert decision.degraded
        assert not backend.called("check_device")

    def test_backend_failure_denies(
        self, storage: InMemoryStorage, environment: ClientEnvironment
    ) -> None:
        class FailingBackend(StubBackend):
            def check_device(self, token: str, fingerprint: str) -> bool:
                raise AccessBackendError("connection reset")

        decision = _flow(FailingBackend(), storage, environment).check_access()

        assert decision.state == AccessState.ACCESS_DENIED
        assert decision.denial_reason == DenialReason.ERROR


class TestSubmitIdentity:
    """Tests for GuestAccessFlow.submit_identity."""

    def test_grant_populates_cache_with_normalized_value(
        self, storage: InMemoryStorage, environment: ClientEnvironment
    ) -> None:
        backend = StubBackend()
        flow = _flow(backend, storage, environment)
        flow.check_access()

        outcome = flow.submit_identity("(555) 123-4567")

        assert outcome.granted
        assert flow.state == AccessState.GRANTED
        assert AccessSessionCache(storage).get(TOKEN) == "5551234567"
        identity, fingerprint = backend.calls[-1][1]
        assert identity == "(555) 123-4567"
        assert fingerprint is not None

    def test_degraded_grant_does_not_cache(self, storage: InMemoryStorage) -> None:
        backend = StubBackend()
        flow = _flow(backend, storage, None)
        flow.check_access()

        outcome = flow.submit_identity("5551234567")

        assert outcome.granted
        assert outcome.decision.degraded
        assert AccessSessionCache(storage).get(TOKEN) is None
        assert backend.calls[-1][1] == ("5551234567", None)

    def test_mismatch_restricts_and_allows_retry(
        self, storage: InMemoryStorage, environment: ClientEnvironment
    ) -> None:
        backend = StubBackend(identity_status=VerificationStatus.IDENTITY_MISMATCH)
        flow = _flow(backend, storage, environment)
        flow.check_access()

        outcome = flow.submit_identity("5559999999")

        assert outcome.status == VerificationStatus.IDENTITY_MISMATCH
        assert outcome.decision.state == AccessState.RESTRICTED
        assert outcome.decision.restriction_reason == RestrictionReason.IDENTITY_MISMATCH
        assert outcome.message

        backend.identity_status = VerificationStatus.GRANTED
        retry = flow.submit_identity("5551234567")

        assert retry.granted
        assert retry.decision.restriction_reason is None

    def test_device_limit_restricts(
        self, storage: InMemoryStorage, environment: ClientEnvironment
    ) -> None:
        backend = StubBackend(identity_status=VerificationStatus.DEVICE_LIMIT_REACHED)
        flow = _flow(backend, storage, environment)
        flow.check_access()

        outcome = flow.submit_identity("5551234567")

        assert outcome.decision.state == AccessState.RESTRICTED
        assert outcome.decision.restriction_reason == RestrictionReason.DEVICE_LIMIT_REACHED
        assert AccessSessionCache(storage).get(TOKEN) is None

    def test_invalid_identity_keeps_prompt(
        self, storage: InMemoryStorage, environment: ClientEnvironment
    ) -> None:
        backend = StubBackend(identity_status=VerificationStatus.INVALID_IDENTITY)
        flow = _flow(backend, storage, environment)
        flow.check_access()

        outcome = flow.submit_identity("call me")

        assert outcome.decision.state == AccessState.IDENTITY_VERIFICATION
        assert outcome.message

    def test_token_invalid_denies(
        self, storage: InMemoryStorage, environment: ClientEnvironment
    ) -> None:
        backend = StubBackend(identity_status=VerificationStatus.TOKEN_INVALID)
        flow = _flow(backend, storage, environment)
        flow.check_access()

        outcome = flow.submit_identity("5551234567")

        assert outcome.decision.state == AccessState.ACCESS_DENIED
        assert outcome.decision.denial_reason == DenialReason.INVALID

    def test_backend_failure_denies(
        self, storage: InMemoryStorage, environment: ClientEnvironment
    ) -> None:
        class FailingBackend(StubBackend):
            def verify_identity(self, token, identity, fingerprint):
                raise AccessBackendError("timeout")

        flow = _flow(FailingBackend(), storage, environment)
        flow.check_access()

        outcome = flow.submit_identity("5551234567")

        assert not outcome.granted
        assert outcome.decision.state == AccessState.ACCESS_DENIED
        assert outcome.decision.denial_reason == DenialReason.ERROR

    def test_submission_after_denial_is_rejected(
        self, storage: InMemoryStorage, environment: ClientEnvironment
    ) -> None:
        backend = StubBackend(
            TokenVerificationResult(success=False, error_code=ErrorCode.TOKEN_INVALID)
        )
        flow = _flow(backend, storage, environment)
        flow.check_access()

        outcome = flow.submit_identity("5551234567")

        assert outcome.status == VerificationStatus.TOKEN_INVALID
        assert not backend.called("verify_identity")
