"""Server-side entry points for the guest access flow.

Bundles the token verifier, device registry and identity verifier behind
the three calls a client makes during a visit. Both the REST routes and the
in-process client backend go through this facade.
"""

from typing import TYPE_CHECKING

from guestpass.models import (
    DeviceCheckResult,
    ErrorCode,
    TokenVerificationResult,
    VerificationResult,
)
from guestpass.utils.logging import get_logger, log_access_event

from .device_registry import DeviceRegistry
from .guest_directory import GuestDirectory
from .identity_verifier import IdentityVerifier
from .token_verifier import TokenVerifier

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)


class AccessService:
    """Token lookup, device check and identity submission for one guest link."""

    def __init__(
        self,
        tokens: TokenVerifier,
        registry: DeviceRegistry,
        identities: IdentityVerifier,
    ) -> None:
        self.tokens = tokens
        self.registry = registry
        self.identities = identities

    def verify_token(self, token: str) -> TokenVerificationResult:
        return self.tokens.verify(token)

    def check_device(
        self, token: str, fingerprint: str
    ) -> tuple[DeviceCheckResult | None, ErrorCode | None]:
        """Check whether the fingerprint is registered for the token's guest.

        Returns:
            (DeviceCheckResult, None) on success or (None, error code) when
            the token does not resolve
        """
        guest, error_code = self.tokens.resolve(token)
        if guest is None:
            return None, error_code

        known = self.registry.is_known(guest.guest_id, fingerprint)
        log_access_event(
            logger,
            "device_checked",
            guest_id=guest.guest_id,
            fingerprint=fingerprint,
            result="known" if known else "unknown",
        )
        return DeviceCheckResult(known=known), None

    def verify_identity(
        self, token: str, identity: str, fingerprint: str | None = None
    ) -> VerificationResult:
        return self.identities.verify(token, identity, fingerprint)


def build_access_service(db: "DynamoDBService") -> AccessService:
    """Wire an AccessService and its collaborators over one DynamoDB service."""
    directory = GuestDirectory(db)
    tokens = TokenVerifier(directory)
    registry = DeviceRegistry(db)
    return AccessService(tokens, registry, IdentityVerifier(directory, tokens, registry))
