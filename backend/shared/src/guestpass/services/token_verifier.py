"""Token verification: resolves an invitation token to a guest projection."""

import datetime as dt
import os
from typing import TYPE_CHECKING

from guestpass.models import ErrorCode, Guest, GuestProjection, TokenVerificationResult
from guestpass.utils.logging import get_logger, log_access_event

if TYPE_CHECKING:
    from .guest_directory import GuestDirectory

logger = get_logger(__name__)

# Days a single-use-window token stays valid after its first use
DEFAULT_TOKEN_EXPIRY_DAYS = 30


def _token_expiry_days() -> int:
    return int(os.getenv("TOKEN_EXPIRY_DAYS", str(DEFAULT_TOKEN_EXPIRY_DAYS)))


def is_token_expired(guest: Guest, now: dt.datetime | None = None) -> bool:
    """Whether the guest's current token has passed its post-first-use window."""
    if not guest.token_expires_after_first_use or guest.token_first_used_at is None:
        return False
    now = now or dt.datetime.now(dt.UTC)
    expires_at = guest.token_first_used_at + dt.timedelta(days=_token_expiry_days())
    return now > expires_at


class TokenVerifier:
    """Resolves tokens against the guest directory.

    Read-only and idempotent; safe to call on every page load.
    """

    def __init__(self, directory: "GuestDirectory") -> None:
        self.directory = directory

    def resolve(self, token: str) -> tuple[Guest | None, ErrorCode | None]:
        """Resolve a token to the full guest record or an error code."""
        guest = self.directory.find_by_token(token)
        if guest is None:
            return None, ErrorCode.TOKEN_INVALID
        if is_token_expired(guest):
            return None, ErrorCode.TOKEN_EXPIRED
        return guest, None

    def verify(self, token: str) -> TokenVerificationResult:
        """Verify a token and return the minimal guest projection.

        Args:
            token: Invitation token presented by the client

        Returns:
            TokenVerificationResult with the projection on success, or
            TOKEN_INVALID / TOKEN_EXPIRED on failure
        """
        guest, error_code = self.resolve(token)
        if guest is None:
            log_access_event(
                logger, "token_rejected", token=token, result="denied",
                reason=error_code.value if error_code else None,
            )
            return TokenVerificationResult(success=False, error_code=error_code)

        return TokenVerificationResult(
            success=True, guest=GuestProjection.from_guest(guest)
        )
