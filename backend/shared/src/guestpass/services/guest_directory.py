"""Guest directory backed by the DynamoDB guests table.

Guest records are created and edited by the administrative tooling that owns
the guest list. This module only reads them and applies the narrow set of
mutations the access flow needs: identity bootstrap, first-access stamps and
token replacement.
"""

import datetime as dt
import os
from typing import TYPE_CHECKING, Any

from guestpass.models import Guest, IdentityKind, NormalizedIdentity
from guestpass.utils.logging import get_logger, log_access_event

from .dynamodb import GUESTS_TABLE

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)

# Quota applied to records created without an explicit max_devices_allowed
DEFAULT_MAX_DEVICES = 1

# Identity attributes left blank or NULL by import tooling count as absent
BOOTSTRAP_CONDITION = (
    "attribute_exists(guest_id) "
    "AND (attribute_not_exists(phone) OR phone = :blank OR attribute_type(phone, :null)) "
    "AND (attribute_not_exists(email) OR email = :blank OR attribute_type(email, :null))"
)

IDENTITY_FIELDS = ("phone", "email")


def default_max_devices() -> int:
    return int(os.getenv("DEFAULT_MAX_DEVICES", str(DEFAULT_MAX_DEVICES)))


def _parse_datetime(value: Any) -> dt.datetime | None:
    """Parse an ISO timestamp stored by DynamoDB."""
    if not value:
        return None
    if isinstance(value, dt.datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return dt.datetime.fromisoformat(text)


def item_to_guest(item: dict[str, Any]) -> Guest:
    """Convert a DynamoDB item to a Guest model."""
    now = dt.datetime.now(dt.UTC)
    return Guest(
        guest_id=item["guest_id"],
        token=item["token"],
        name=item.get("name") or "",
        phone=item.get("phone") or None,
        email=item.get("email") or None,
        event_access=[str(e) for e in item.get("event_access", [])],
        max_devices_allowed=int(
            item.get("max_devices_allowed", default_max_devices())
        ),
        allowed_devices=[str(d) for d in item.get("allowed_devices", [])],
        first_access_at=_parse_datetime(item.get("first_access_at")),
        token_first_used_at=_parse_datetime(item.get("token_first_used_at")),
        token_expires_after_first_use=bool(
            item.get("token_expires_after_first_use", False)
        ),
        created_at=_parse_datetime(item.get("created_at")) or now,
        updated_at=_parse_datetime(item.get("updated_at")) or now,
    )


def guest_to_item(guest: Guest) -> dict[str, Any]:
    """Convert a Guest model to a DynamoDB item.

    Absent optional attributes, and blank identity fields, are omitted rather
    than stored so ``attribute_not_exists`` conditions keep working.
    """
    item = guest.model_dump(mode="json")
    return {
        key: value
        for key, value in item.items()
        if value is not None and not (key in IDENTITY_FIELDS and value == "")
    }


class GuestDirectory:
    """Keyed access to guest records by token and by ID."""

    def __init__(self, db: "DynamoDBService") -> None:
        """Initialize guest directory.

        Args:
            db: DynamoDB service instance
        """
        self.db = db

    def find_by_token(self, token: str) -> Guest | None:
        """Resolve an invitation token to its guest, if any."""
        if not token:
            return None
        item = self.db.get_guest_by_token(token)
        return item_to_guest(item) if item else None

    def find_by_id(self, guest_id: str) -> Guest | None:
        """Get a guest by primary key."""
        if not guest_id:
            return None
        item = self.db.get_guest(guest_id)
        return item_to_guest(item) if item else None

    def create(self, guest: Guest) -> bool:
        """Store a new guest record (used by fixtures and import tooling)."""
        return self.db.create_guest(guest_to_item(guest))

    def update_identity(self, guest_id: str, identity: NormalizedIdentity) -> Guest | None:
        """Set the identity of record for a guest that has none yet.

        The write only succeeds while both phone and email are still absent
        or blank, so two concurrent first-time submissions cannot both become
        the identity of record. The other identity field is removed.

        Returns:
            Updated guest, or None if an identity was already on file
        """
        field = "email" if identity.kind == IdentityKind.EMAIL else "phone"
        other = next(name for name in IDENTITY_FIELDS if name != field)
        now = dt.datetime.now(dt.UTC).isoformat()
        attrs = self.db.update_item(
            GUESTS_TABLE,
            {"guest_id": guest_id},
            f"SET {field} = :identity, updated_at = :now REMOVE {other}",
            {
                ":identity": identity.value,
                ":now": now,
                ":blank": "",
                ":null": "NULL",
            },
            condition_expression=BOOTSTRAP_CONDITION,
        )
        if attrs is None:
            return None
        log_access_event(
            logger, "identity_recorded", guest_id=guest_id, kind=identity.kind.value
        )
        return item_to_guest(attrs)

    def mark_first_access(self, guest_id: str, token: str) -> Guest | None:
        """Stamp first-access timestamps that are still unset.

        ``first_access_at`` is written once for the lifetime of the guest;
        ``token_first_used_at`` once per token. The token condition keeps a
        request that raced a regeneration from stamping the new token.
        """
        now = dt.datetime.now(dt.UTC).isoformat()
        attrs = self.db.update_item(
            GUESTS_TABLE,
            {"guest_id": guest_id},
            "SET first_access_at = if_not_exists(first_access_at, :now), "
            "token_first_used_at = if_not_exists(token_first_used_at, :now)",
            {":now": now, ":token": token},
            expression_attribute_names={"#token": "token"},
            condition_expression="#token = :token",
        )
        return item_to_guest(attrs) if attrs else None

    def update_token(self, guest_id: str, new_token: str) -> Guest | None:
        """Replace a guest's token and reset its device list in one write.

        Identity, event access and ``first_access_at`` are preserved;
        ``token_first_used_at`` is cleared so expiry restarts for the new token.

        Returns:
            Updated guest, or None if the guest does not exist
        """
        now = dt.datetime.now(dt.UTC).isoformat()
        attrs = self.db.update_item(
            GUESTS_TABLE,
            {"guest_id": guest_id},
            "SET #token = :token, allowed_devices = :empty, updated_at = :now "
            "REMOVE token_first_used_at",
            {":token": new_token, ":empty": [], ":now": now},
            expression_attribute_names={"#token": "token"},
            condition_expression="attribute_exists(guest_id)",
        )
        return item_to_guest(attrs) if attrs else None
