"""Client-side access state machine for an invitation link.

One ``GuestAccessFlow`` handles one visit::

    LOADING -> IDENTITY_REQUIRED                      (no identity on file)
    LOADING -> CACHE_CHECK -> GRANTED                 (cached identity matches)
    LOADING -> CACHE_CHECK -> DEVICE_CHECK -> GRANTED (device already registered)
    ... -> DEVICE_CHECK -> IDENTITY_VERIFICATION -> GRANTED | RESTRICTED
    LOADING -> ACCESS_DENIED                          (bad or expired token)

The server stays the source of truth. The session cache only skips prompts,
and a stale entry is cleared before falling through to the device check.
Unexpected failures always end in ACCESS_DENIED, never GRANTED.
"""

from guestpass.models import (
    AccessDecision,
    AccessState,
    DenialReason,
    ErrorCode,
    RestrictionReason,
    SubmissionOutcome,
    VerificationStatus,
)
from guestpass.models.errors import ERROR_MESSAGES
from guestpass.models.guest import GuestProjection
from guestpass.services.normalization import normalize_identity
from guestpass.utils.logging import get_logger, log_access_event

from .backend import AccessBackend
from .fingerprint import ClientEnvironment, FingerprintGenerator, FingerprintUnavailable
from .session_cache import AccessSessionCache

logger = get_logger(__name__)

# States from which an identity may be submitted
SUBMITTABLE_STATES = (
    AccessState.IDENTITY_REQUIRED,
    AccessState.IDENTITY_VERIFICATION,
    AccessState.RESTRICTED,
)


class GuestAccessFlow:
    """Sequences token, cache, device and identity checks for one visit.

    Args:
        token: Invitation token from the link
        backend: Transport to the access service
        cache: Client access session cache
        fingerprints: Fingerprint generator bound to client storage
        environment: Signals of the current browser, or None if unavailable
    """

    def __init__(
        self,
        token: str,
        backend: AccessBackend,
        cache: AccessSessionCache,
        fingerprints: FingerprintGenerator,
        environment: ClientEnvironment | None = None,
    ) -> None:
        self.token = token
        self.backend = backend
        self.cache = cache
        self.fingerprints = fingerprints
        self.environment = environment

        self.state = AccessState.LOADING
        self.history: list[AccessState] = [AccessState.LOADING]
        self.guest: GuestProjection | None = None
        self.error: str | None = None
        self.degraded = False
        self._denial_reason: DenialReason | None = None
        self._restriction_reason: RestrictionReason | None = None
        self._fingerprint: str | None = None
        self._fingerprint_attempted = False

    # ------------------------------------------------------------------
    # State helpers
    # ------------------------------------------------------------------

    def _transition(self, state: AccessState) -> None:
        self.state = state
        self.history.append(state)

    def _decision(self) -> AccessDecision:
        return AccessDecision(
            state=self.state,
            guest=self.guest,
            denial_reason=self._denial_reason,
            restriction_reason=self._restriction_reason,
            degraded=self.degraded,
        )

    def _deny(self, reason: DenialReason, code: ErrorCode) -> AccessDecision:
        self._denial_reason = reason
        self.error = ERROR_MESSAGES[code]
        self._transition(AccessState.ACCESS_DENIED)
        return self._decision()

    def _grant(self) -> AccessDecision:
        self._restriction_reason = None
        self.error = None
        self._transition(AccessState.GRANTED)
        return self._decision()

    def _restrict(self, reason: RestrictionReason, code: ErrorCode) -> AccessDecision:
        self._restriction_reason = reason
        self.error = ERROR_MESSAGES[code]
        self._transition(AccessState.RESTRICTED)
        return self._decision()

    def _device_fingerprint(self) -> str | None:
        """Compute the fingerprint once per visit; None when unavailable."""
        if not self._fingerprint_attempted:
            self._fingerprint_attempted = True
            try:
                self._fingerprint = self.fingerprints.generate(self.environment)
            except FingerprintUnavailable as e:
                logger.warning("fingerprint_unavailable", extra={"reason": str(e)})
                self.degraded = True
        return self._fingerprint

    def _identity_of_record(self) -> str | None:
        if self.guest is None:
            return None
        return self.guest.phone or self.guest.email

    # ------------------------------------------------------------------
    # Visit
    # ------------------------------------------------------------------

    def check_access(self) -> AccessDecision:
        """Run the visit up to a decision or an identity prompt.

        Returns:
            AccessDecision in GRANTED, ACCESS_DENIED, IDENTITY_REQUIRED or
            IDENTITY_VERIFICATION
        """
        try:
            return self._check_access()
        except Exception as e:
            logger.exception("access_check_failed")
            log_access_event(logger, "access_check_failed", token=self.token, error=str(e))
            return self._deny(DenialReason.ERROR, ErrorCode.TOKEN_INVALID)

    def _check_access(self) -> AccessDecision:
        result = self.backend.verify_token(self.token)
        if not result.success or result.guest is None:
            if result.error_code == ErrorCode.TOKEN_EXPIRED:
                return self._deny(DenialReason.EXPIRED, ErrorCode.TOKEN_EXPIRED)
            return self._deny(DenialReason.INVALID, ErrorCode.TOKEN_INVALID)

        self.guest = result.guest

        if not self.guest.has_identity:
            self._transition(AccessState.IDENTITY_REQUIRED)
            return self._decision()

        self._transition(AccessState.CACHE_CHECK)
        cached = self.cache.matches(self.token, self.guest.phone, self.guest.email)
        if cached:
            log_access_event(logger, "access_granted", guest_id=self.guest.guest_id, via="session_cache")
            return self._grant()
        if cached is False:
            # Someone else's identity is cached for this link
            self.cache.clear(self.token)

        self._transition(AccessState.DEVICE_CHECK)
        fingerprint = self._device_fingerprint()
        if fingerprint and self.backend.check_device(self.token, fingerprint):
            identity = self._identity_of_record()
            if identity:
                self.cache.set(self.token, identity)
            log_access_event(
                logger, "access_granted", guest_id=self.guest.guest_id,
                fingerprint=fingerprint, via="known_device",
            )
            return self._grant()

        self._transition(AccessState.IDENTITY_VERIFICATION)
        return self._decision()

    # ------------------------------------------------------------------
    # Identity submission
    # ------------------------------------------------------------------

    def submit_identity(self, identity: str) -> SubmissionOutcome:
        """Submit a phone number or email from the identity prompt.

        Valid after IDENTITY_REQUIRED, IDENTITY_VERIFICATION or a RESTRICTED
        result (retry). A mismatch leaves the flow RESTRICTED with retry
        allowed; DEVICE_LIMIT_REACHED is RESTRICTED even though the identity
        matched.
        """
        if self.state not in SUBMITTABLE_STATES:
            if self.state == AccessState.GRANTED:
                return SubmissionOutcome(
                    status=VerificationStatus.GRANTED, decision=self._decision()
                )
            return SubmissionOutcome(
                status=VerificationStatus.TOKEN_INVALID,
                decision=self._decision(),
                message=self.error,
            )

        try:
            return self._submit_identity(identity)
        except Exception as e:
            logger.exception("identity_submission_failed")
            log_access_event(logger, "identity_submission_failed", token=self.token, error=str(e))
            decision = self._deny(DenialReason.ERROR, ErrorCode.TOKEN_INVALID)
            return SubmissionOutcome(
                status=VerificationStatus.TOKEN_INVALID, decision=decision, message=self.error
            )

    def _submit_identity(self, identity: str) -> SubmissionOutcome:
        fingerprint = self._device_fingerprint()
        result = self.backend.verify_identity(self.token, identity, fingerprint)

        if result.status == VerificationStatus.GRANTED:
            # Without a fingerprint nothing was registered, so keep asking
            if fingerprint is not None:
                self.cache.set(self.token, normalize_identity(identity).value)
            decision = self._grant()
            return SubmissionOutcome(status=result.status, decision=decision)

        if result.status == VerificationStatus.IDENTITY_MISMATCH:
            decision = self._restrict(
                RestrictionReason.IDENTITY_MISMATCH, ErrorCode.IDENTITY_MISMATCH
            )
        elif result.status == VerificationStatus.DEVICE_LIMIT_REACHED:
            decision = self._restrict(
                RestrictionReason.DEVICE_LIMIT_REACHED, ErrorCode.DEVICE_LIMIT_REACHED
            )
        elif result.status == VerificationStatus.INVALID_IDENTITY:
            # Prompt again without changing state
            self.error = ERROR_MESSAGES[ErrorCode.INVALID_IDENTITY]
            decision = self._decision()
        else:
            decision = self._deny(DenialReason.INVALID, ErrorCode.TOKEN_INVALID)

        return SubmissionOutcome(status=result.status, decision=decision, message=self.error)
