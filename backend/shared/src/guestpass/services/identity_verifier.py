"""Identity verification for invitation links.

Compares a submitted phone number or email with the identity on file and,
on a match, registers the submitting device. This is the only path through
which a device is ever added to a guest's device list.

A guest with no identity on file takes the bootstrap path instead: the first
submitted value becomes the identity of record.
"""

from typing import TYPE_CHECKING

from guestpass.models import (
    Guest,
    NormalizedIdentity,
    RegisterStatus,
    VerificationResult,
    VerificationStatus,
)
from guestpass.utils.logging import get_logger, log_access_event, mask_identity

from .normalization import identity_matches, is_valid_identity, normalize_identity

if TYPE_CHECKING:
    from .device_registry import DeviceRegistry
    from .guest_directory import GuestDirectory
    from .token_verifier import TokenVerifier

logger = get_logger(__name__)


class IdentityVerifier:
    """Verifies submitted identities and drives device registration."""

    def __init__(
        self,
        directory: "GuestDirectory",
        tokens: "TokenVerifier",
        registry: "DeviceRegistry",
    ) -> None:
        """Initialize identity verifier.

        Args:
            directory: Guest directory for identity reads and bootstrap writes
            tokens: Token verifier used to resolve (and expire) tokens
            registry: Device registry for registration on success
        """
        self.directory = directory
        self.tokens = tokens
        self.registry = registry

    def verify(
        self, token: str, submitted: str, fingerprint: str | None = None
    ) -> VerificationResult:
        """Verify a submitted identity for a token.

        Args:
            token: Invitation token
            submitted: Raw phone number or email entered by the guest
            fingerprint: Device fingerprint, or None when the client could
                not compute one (access is granted without registering)

        Returns:
            VerificationResult with GRANTED, IDENTITY_MISMATCH,
            DEVICE_LIMIT_REACHED, INVALID_IDENTITY or TOKEN_INVALID
        """
        guest, _ = self.tokens.resolve(token)
        if guest is None:
            return VerificationResult(status=VerificationStatus.TOKEN_INVALID)

        identity = normalize_identity(submitted)
        if not is_valid_identity(identity):
            return VerificationResult(
                status=VerificationStatus.INVALID_IDENTITY,
                guest_id=guest.guest_id,
                identity_kind=identity.kind,
            )

        is_first_time = False
        if not guest.has_identity:
            bootstrapped = self.directory.update_identity(guest.guest_id, identity)
            if bootstrapped is not None:
                guest = bootstrapped
                is_first_time = True
            else:
                # Another request recorded an identity first; compare against it
                reloaded = self.directory.find_by_id(guest.guest_id)
                if reloaded is None:
                    return VerificationResult(status=VerificationStatus.TOKEN_INVALID)
                guest = reloaded

        if not is_first_time and not identity_matches(identity, guest.phone, guest.email):
            log_access_event(
                logger,
                "identity_mismatch",
                guest_id=guest.guest_id,
                result="mismatch",
                kind=identity.kind.value,
                submitted=mask_identity(identity.value),
            )
            return self._result(VerificationStatus.IDENTITY_MISMATCH, guest, identity)

        return self._grant(token, guest, identity, fingerprint, is_first_time)

    def _grant(
        self,
        token: str,
        guest: Guest,
        identity: NormalizedIdentity,
        fingerprint: str | None,
        is_first_time: bool,
    ) -> VerificationResult:
        """Register the device (if any) and stamp first access."""
        device_registered = False
        device_count = guest.device_count
        max_devices = guest.max_devices_allowed

        if fingerprint:
            registration = self.registry.register(guest.guest_id, fingerprint)
            if registration.status == RegisterStatus.GUEST_NOT_FOUND:
                return VerificationResult(status=VerificationStatus.TOKEN_INVALID)
            if registration.status == RegisterStatus.LIMIT_REACHED:
                return self._result(
                    VerificationStatus.DEVICE_LIMIT_REACHED,
                    guest,
                    identity,
                    is_first_time=is_first_time,
                    device_count=registration.device_count,
                    max_devices_allowed=registration.max_devices_allowed,
                )
            device_registered = True
            device_count = registration.device_count
            max_devices = registration.max_devices_allowed

        self.directory.mark_first_access(guest.guest_id, token)

        log_access_event(
            logger,
            "identity_verified",
            guest_id=guest.guest_id,
            fingerprint=fingerprint,
            result="granted",
            first_time=is_first_time,
            device_registered=device_registered,
        )
        return self._result(
            VerificationStatus.GRANTED,
            guest,
            identity,
            is_first_time=is_first_time,
            device_registered=device_registered,
            device_count=device_count,
            max_devices_allowed=max_devices,
        )

    @staticmethod
    def _result(
        status: VerificationStatus,
        guest: Guest,
        identity: NormalizedIdentity,
        *,
        is_first_time: bool = False,
        device_registered: bool = False,
        device_count: int | None = None,
        max_devices_allowed: int | None = None,
    ) -> VerificationResult:
        return VerificationResult(
            status=status,
            guest_id=guest.guest_id,
            identity_kind=identity.kind,
            is_first_time=is_first_time,
            device_registered=device_registered,
            device_count=guest.device_count if device_count is None else device_count,
            max_devices_allowed=(
                guest.max_devices_allowed
                if max_devices_allowed is None
                else max_devices_allowed
            ),
        )
