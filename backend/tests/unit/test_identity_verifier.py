"""Unit tests for identity verification and device registration on success."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest

from guestpass.models import Guest, IdentityKind, VerificationStatus
from guestpass.services.dynamodb import DynamoDBService
from guestpass.services.guest_directory import GuestDirectory
from guestpass.services.identity_verifier import IdentityVerifier
from guestpass.services.normalization import normalize_identity


class TestIdentityBootstrap:
    """Guests invited without a phone or email."""

    def test_first_submission_becomes_identity_of_record(
        self, identities: IdentityVerifier, directory: GuestDirectory, bare_guest: Guest
    ) -> None:
        """First visit with a short local number."""
        result = identities.verify(bare_guest.token, "555-1234", "device-x")

        assert result.status == VerificationStatus.GRANTED
        assert result.is_first_time
        assert result.identity_kind == IdentityKind.PHONE
        assert result.device_registered
        assert result.device_count == 1

        stored = directory.find_by_id(bare_guest.guest_id)
        assert stored is not None
        assert stored.phone == "5551234"
        assert stored.email is None
        assert stored.allowed_devices == ["device-x"]
        assert stored.first_access_at is not None

    def test_second_browser_hits_device_limit(
        self, identities: IdentityVerifier, directory: GuestDirectory, bare_guest: Guest
    ) -> None:
        """Matching identity on a new device with the quota used up."""
        identities.verify(bare_guest.token, "555-1234", "device-x")

        result = identities.verify(bare_guest.token, "555-1234", "device-y")

        assert result.status == VerificationStatus.DEVICE_LIMIT_REACHED
        assert not result.is_first_time
        stored = directory.find_by_id(bare_guest.guest_id)
        assert stored is not None
        assert stored.allowed_devices == ["device-x"]

    def test_any_first_value_is_accepted(
        self, identities: IdentityVerifier, directory: GuestDirectory, bare_guest: Guest
    ) -> None:
        """Nothing on file to compare against, so this is not a mismatch."""
        result = identities.verify(bare_guest.token, "wrong@x.com", "device-x")

        assert result.status == VerificationStatus.GRANTED
        assert result.is_first_time
        stored = directory.find_by_id(bare_guest.guest_id)
        assert stored is not None
        assert stored.email == "wrong@x.com"
        assert stored.phone is None

    def test_lost_bootstrap_race_is_compared_as_a_match(
        self, identities: IdentityVerifier, directory: GuestDirectory, bare_guest: Guest
    ) -> None:
        """Another request recorded an identity after this one read the guest."""
        directory.update_identity(bare_guest.guest_id, normalize_identity("5550000001"))
        stale = (bare_guest, None)

        with patch.object(identities.tokens, "resolve", return_value=stale):
            loser = identities.verify(bare_guest.token, "5550000002", "device-y")
            same = identities.verify(bare_guest.token, "555-000-0001", "device-x")

        assert loser.status == VerificationStatus.IDENTITY_MISMATCH
        assert same.status == VerificationStatus.GRANTED
        assert not same.is_first_time
        stored = directory.find_by_id(bare_guest.guest_id)
        assert stored is not None
        assert stored.phone == "5550000001"
        assert stored.allowed_devices == ["device-x"]


class TestIdentityMatching:
    """Guests with an identity on file."""

    def test_phone_or_email_each_register_a_device(
        self,
        identities: IdentityVerifier,
        directory: GuestDirectory,
        make_guest: Callable[..., Guest],
    ) -> None:
        """Quota 2 is shared by phone and email submissions."""
        guest = make_guest(phone="5551234", email="a@b.com", max_devices_allowed=2)

        x = identities.verify(guest.token, "a@b.com", "device-x")
        y = identities.verify(guest.token, "555-1234", "device-y")
        z_phone = identities.verify(guest.token, "555-1234", "device-z")
        z_email = identities.verify(guest.token, "A@B.com", "device-z")

        assert x.status == VerificationStatus.GRANTED
        assert x.device_count == 1
        assert y.status == VerificationStatus.GRANTED
        assert y.device_count == 2
        assert z_phone.status == VerificationStatus.DEVICE_LIMIT_REACHED
        assert z_email.status == VerificationStatus.DEVICE_LIMIT_REACHED
        stored = directory.find_by_id(guest.guest_id)
        assert stored is not None
        assert stored.allowed_devices == ["device-x", "device-y"]

    def test_mismatch_then_correct_value(
        self, identities: IdentityVerifier, directory: GuestDirectory, phone_guest: Guest
    ) -> None:
        """A wrong value changes nothing and the right one still works."""
        wrong = identities.verify(phone_guest.token, "5559999999", "device-x")

        assert wrong.status == VerificationStatus.IDENTITY_MISMATCH
        stored = directory.find_by_id(phone_guest.guest_id)
        assert stored is not None
        assert stored.allowed_devices == []
        assert stored.first_access_at is None

        right = identities.verify(phone_guest.token, "(555) 123-4567", "device-x")

        assert right.status == VerificationStatus.GRANTED
        assert not right.is_first_time

    def test_email_submission_against_phone_only_guest(
        self, identities: IdentityVerifier, phone_guest: Guest
    ) -> None:
        result = identities.verify(phone_guest.token, "ana@example.com", "device-x")
        assert result.status == VerificationStatus.IDENTITY_MISMATCH

    def test_same_device_again_is_granted_at_limit(
        self, identities: IdentityVerifier, directory: GuestDirectory, email_guest: Guest
    ) -> None:
        identities.verify(email_guest.token, "ana@example.com", "device-x")

        again = identities.verify(email_guest.token, " ANA@example.com ", "device-x")

        assert again.status == VerificationStatus.GRANTED
        assert again.device_registered
        stored = directory.find_by_id(email_guest.guest_id)
        assert stored is not None
        assert stored.allowed_devices == ["device-x"]

    def test_no_fingerprint_grants_without_registering(
        self, identities: IdentityVerifier, directory: GuestDirectory, phone_guest: Guest
    ) -> None:
        result = identities.verify(phone_guest.token, "5551234567", None)

        assert result.status == VerificationStatus.GRANTED
        assert not result.device_registered
        stored = directory.find_by_id(phone_guest.guest_id)
        assert stored is not None
        assert stored.allowed_devices == []
        assert stored.first_access_at is not None


class TestRejectedSubmissions:
    """Submissions rejected before any comparison."""

    def test_unknown_token(self, identities: IdentityVerifier, phone_guest: Guest) -> None:
        result = identities.verify("NoSuchToken1", "5551234567", "device-x")
        assert result.status == VerificationStatus.TOKEN_INVALID

    def test_phone_without_digits(
        self, identities: IdentityVerifier, directory: GuestDirectory, bare_guest: Guest
    ) -> None:
        """Garbage must not become the identity of record."""
        result = identities.verify(bare_guest.token, "call me maybe", "device-x")

        assert result.status == VerificationStatus.INVALID_IDENTITY
        stored = directory.find_by_id(bare_guest.guest_id)
        assert stored is not None
        assert not stored.has_identity

    def test_expired_token(
        self, identities: IdentityVerifier, make_guest: Callable[..., Guest]
    ) -> None:
        guest = make_guest(
            phone="5551234567",
            token_expires_after_first_use=True,
            token_first_used_at=datetime.now(UTC) - timedelta(days=40),
        )
        result = identities.verify(guest.token, "5551234567", "device-x")
        assert result.status == VerificationStatus.TOKEN_INVALID


class TestFirstAccessStamps:
    """first_access_at and token_first_used_at are written once."""

    def test_stamps_are_not_overwritten(
        self, identities: IdentityVerifier, directory: GuestDirectory, make_guest: Callable[..., Guest]
    ) -> None:
        guest = make_guest(phone="5551234567", max_devices_allowed=2)
        identities.verify(guest.token, "5551234567", "device-x")
        first = directory.find_by_id(guest.guest_id)

        identities.verify(guest.token, "5551234567", "device-y")
        second = directory.find_by_id(guest.guest_id)

        assert first is not None and second is not None
        assert first.first_access_at is not None
        assert second.first_access_at == first.first_access_at
        assert second.token_first_used_at == first.token_first_used_at


class TestBlankIdentityRecords:
    """Records imported with identity attributes stored blank or NULL."""

    @pytest.mark.parametrize(
        "blank",
        [
            {"phone": "", "email": None},
            {"phone": None},
            {"email": ""},
        ],
    )
    def test_first_submission_is_recorded(
        self,
        identities: IdentityVerifier,
        directory: GuestDirectory,
        db: DynamoDBService,
        blank: dict[str, str | None],
    ) -> None:
        db.create_guest(
            {
                "guest_id": "guest-blank",
                "token": "BlankTok1234",
                "name": "Ana Silva",
                "max_devices_allowed": 1,
                "allowed_devices": [],
                **blank,
            }
        )
        verified = identities.tokens.verify("BlankTok1234")
        assert verified.guest is not None
        assert not verified.guest.has_identity

        result = identities.verify("BlankTok1234", "555-1234", "device-x")

        assert result.status == VerificationStatus.GRANTED
        assert result.is_first_time
        stored = directory.find_by_id("guest-blank")
        assert stored is not None
        assert stored.phone == "5551234"
        assert stored.email is None
        assert stored.allowed_devices == ["device-x"]

    def test_blank_email_is_replaced_by_submitted_email(
        self, identities: IdentityVerifier, directory: GuestDirectory, db: DynamoDBService
    ) -> None:
        db.create_guest(
            {
                "guest_id": "guest-blank",
                "token": "BlankTok1234",
                "name": "Ana Silva",
                "phone": "",
                "email": "",
            }
        )

        result = identities.verify("BlankTok1234", " Ana@Example.com ", "device-x")

        assert result.status == VerificationStatus.GRANTED
        stored = directory.find_by_id("guest-blank")
        assert stored is not None
        assert stored.email == "ana@example.com"
        assert stored.phone is None
        raw = db.get_guest("guest-blank")
        assert raw is not None
        assert "phone" not in raw

    def test_blank_identity_is_not_stored_on_create(
        self, directory: GuestDirectory, db: DynamoDBService, make_guest: Callable[..., Guest]
    ) -> None:
        guest = make_guest(phone="", email="")

        raw = db.get_guest(guest.guest_id)
        assert raw is not None
        assert "phone" not in raw
        assert "email" not in raw
