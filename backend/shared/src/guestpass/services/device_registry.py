"""Device registry enforcing the per-guest device quota.

The registry keeps ``len(allowed_devices) <= max_devices_allowed`` for every
guest, including under concurrent registrations. Registration is a single
conditional UpdateItem: DynamoDB evaluates the membership and size checks
and applies the append as one atomic step per item, so two writers that both
saw ``max - 1`` devices cannot both succeed. There is no separate read
before the write.

When the condition fails the item is re-read to tell an idempotent repeat
(fingerprint already present) apart from an exhausted quota.
"""

import datetime as dt
import threading
from collections import defaultdict
from typing import TYPE_CHECKING

from guestpass.models import (
    MAX_DEVICES_ALLOWED,
    MIN_DEVICES_ALLOWED,
    Guest,
    RegisterResult,
    RegisterStatus,
)
from guestpass.utils.logging import get_logger, log_access_event

from .dynamodb import GUESTS_TABLE
from .guest_directory import default_max_devices, item_to_guest

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)

# Records imported without device attributes count as having no devices and
# the default quota; the append backfills both attributes.
REGISTER_CONDITION = (
    "attribute_exists(guest_id) "
    "AND NOT contains(allowed_devices, :fingerprint) "
    "AND (attribute_not_exists(allowed_devices) "
    "OR (attribute_exists(max_devices_allowed) "
    "AND size(allowed_devices) < max_devices_allowed) "
    "OR (attribute_not_exists(max_devices_allowed) "
    "AND size(allowed_devices) < :default_max))"
)

REGISTER_UPDATE = (
    "SET allowed_devices = list_append("
    "if_not_exists(allowed_devices, :empty), :new_device), "
    "max_devices_allowed = if_not_exists(max_devices_allowed, :default_max), "
    "updated_at = :now"
)


class DeviceRegistry:
    """Membership checks and quota-bounded registration of device fingerprints."""

    def __init__(self, db: "DynamoDBService") -> None:
        """Initialize device registry.

        Args:
            db: DynamoDB service instance
        """
        self.db = db
        # Same-process writers for one guest queue here; other processes are
        # serialized by the condition expression.
        self._locks: defaultdict[str, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    def _guest_lock(self, guest_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks[guest_id]

    def _load(self, guest_id: str) -> Guest | None:
        item = self.db.get_guest(guest_id)
        return item_to_guest(item) if item else None

    def is_known(self, guest_id: str, fingerprint: str) -> bool:
        """Check whether a fingerprint is on the guest's device list."""
        if not fingerprint:
            return False
        guest = self._load(guest_id)
        return guest is not None and fingerprint in guest.allowed_devices

    def register(self, guest_id: str, fingerprint: str) -> RegisterResult:
        """Add a fingerprint to the guest's device list if the quota allows.

        Registering a fingerprint that is already present succeeds without
        growing the list.

        Args:
            guest_id: Guest primary key
            fingerprint: Device fingerprint hash

        Returns:
            RegisterResult with REGISTERED, ALREADY_REGISTERED,
            LIMIT_REACHED or GUEST_NOT_FOUND
        """
        with self._guest_lock(guest_id):
            now = dt.datetime.now(dt.UTC).isoformat()
            attrs = self.db.update_item(
                GUESTS_TABLE,
                {"guest_id": guest_id},
                REGISTER_UPDATE,
                {
                    ":new_device": [fingerprint],
                    ":fingerprint": fingerprint,
                    ":empty": [],
                    ":default_max": default_max_devices(),
                    ":now": now,
                },
                condition_expression=REGISTER_CONDITION,
            )

            if attrs is not None:
                guest = item_to_guest(attrs)
                log_access_event(
                    logger,
                    "device_registered",
                    guest_id=guest_id,
                    fingerprint=fingerprint,
                    result="registered",
                    device_count=guest.device_count,
                    max_devices=guest.max_devices_allowed,
                )
                return RegisterResult(
                    status=RegisterStatus.REGISTERED,
                    device_count=guest.device_count,
                    max_devices_allowed=guest.max_devices_allowed,
                )

            return self._classify_rejection(guest_id, fingerprint)

    def _classify_rejection(self, guest_id: str, fingerprint: str) -> RegisterResult:
        """Explain why the conditional append was rejected."""
        guest = self._load(guest_id)
        if guest is None:
            return RegisterResult(status=RegisterStatus.GUEST_NOT_FOUND)

        if fingerprint in guest.allowed_devices:
            status = RegisterStatus.ALREADY_REGISTERED
            result = "already_registered"
        else:
            status = RegisterStatus.LIMIT_REACHED
            result = "limit_reached"

        log_access_event(
            logger,
            "device_registration_rejected",
            guest_id=guest_id,
            fingerprint=fingerprint,
            result=result,
            device_count=guest.device_count,
            max_devices=guest.max_devices_allowed,
        )
        return RegisterResult(
            status=status,
            device_count=guest.device_count,
            max_devices_allowed=guest.max_devices_allowed,
        )

    def clear_all(self, guest_id: str) -> Guest | None:
        """Reset the guest's device list to empty.

        Returns:
            Updated guest, or None if the guest does not exist
        """
        with self._guest_lock(guest_id):
            attrs = self.db.update_item(
                GUESTS_TABLE,
                {"guest_id": guest_id},
                "SET allowed_devices = :empty, updated_at = :now",
                {":empty": [], ":now": dt.datetime.now(dt.UTC).isoformat()},
                condition_expression="attribute_exists(guest_id)",
            )
        if attrs is None:
            return None
        log_access_event(logger, "devices_cleared", guest_id=guest_id)
        return item_to_guest(attrs)

    def remove(self, guest_id: str, fingerprint: str) -> Guest | None:
        """Remove a single fingerprint from the guest's device list.

        DynamoDB can only REMOVE list elements by index, so the write is
        conditioned on the element at that index still being the fingerprint.
        A concurrent change makes the condition fail and the removal retries
        against the fresh list.

        Returns:
            Updated guest (unchanged if the fingerprint was absent), or None
            if the guest does not exist
        """
        with self._guest_lock(guest_id):
            while True:
                guest = self._load(guest_id)
                if guest is None:
                    return None
                if fingerprint not in guest.allowed_devices:
                    return guest

                index = guest.allowed_devices.index(fingerprint)
                attrs = self.db.update_item(
                    GUESTS_TABLE,
                    {"guest_id": guest_id},
                    f"REMOVE allowed_devices[{index}] SET updated_at = :now",
                    {
                        ":fingerprint": fingerprint,
                        ":now": dt.datetime.now(dt.UTC).isoformat(),
                    },
                    condition_expression=f"allowed_devices[{index}] = :fingerprint",
                )
                if attrs is not None:
                    log_access_event(
                        logger, "device_removed", guest_id=guest_id, fingerprint=fingerprint
                    )
                    return item_to_guest(attrs)

    def set_quota(self, guest_id: str, new_max: int) -> Guest | None:
        """Change the guest's device quota.

        Lowering the quota below the current device count does not evict
        anything; existing devices stay valid until cleared.

        Raises:
            ValueError: If new_max is outside 1..10

        Returns:
            Updated guest, or None if the guest does not exist
        """
        if not MIN_DEVICES_ALLOWED <= new_max <= MAX_DEVICES_ALLOWED:
            raise ValueError(
                f"max_devices_allowed must be between {MIN_DEVICES_ALLOWED} "
                f"and {MAX_DEVICES_ALLOWED}, got {new_max}"
            )

        attrs = self.db.update_item(
            GUESTS_TABLE,
            {"guest_id": guest_id},
            "SET max_devices_allowed = :max, updated_at = :now",
            {":max": new_max, ":now": dt.datetime.now(dt.UTC).isoformat()},
            condition_expression="attribute_exists(guest_id)",
        )
        if attrs is None:
            return None
        log_access_event(logger, "quota_changed", guest_id=guest_id, max_devices=new_max)
        return item_to_guest(attrs)
