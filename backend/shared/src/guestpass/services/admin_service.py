"""Administrative device and token operations.

These are invoked rarely by the host (clear devices, change quota,
regenerate a leaked link). Each one is a single-item write, so it resolves
cleanly against concurrent guest registrations.
"""

import secrets
import string
from typing import TYPE_CHECKING

from guestpass.models import Guest
from guestpass.utils.logging import get_logger, log_access_event

if TYPE_CHECKING:
    from .device_registry import DeviceRegistry
    from .guest_directory import GuestDirectory

logger = get_logger(__name__)

TOKEN_ALPHABET = string.ascii_letters + string.digits
TOKEN_LENGTH = 12


def generate_secure_token(length: int = TOKEN_LENGTH) -> str:
    """Generate an alphanumeric invitation token (62^12 combinations by default)."""
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


class AdminService:
    """Host-side controls over a guest's link and device list."""

    def __init__(self, directory: "GuestDirectory", registry: "DeviceRegistry") -> None:
        self.directory = directory
        self.registry = registry

    def get_guest(self, guest_id: str) -> Guest | None:
        return self.directory.find_by_id(guest_id)

    def clear_devices(self, guest_id: str) -> Guest | None:
        """Forget every registered device for the guest."""
        return self.registry.clear_all(guest_id)

    def remove_device(self, guest_id: str, fingerprint: str) -> Guest | None:
        """Forget a single registered device."""
        return self.registry.remove(guest_id, fingerprint)

    def set_quota(self, guest_id: str, max_devices_allowed: int) -> Guest | None:
        """Change how many devices may use the guest's link."""
        return self.registry.set_quota(guest_id, max_devices_allowed)

    def regenerate_token(self, guest_id: str) -> Guest | None:
        """Issue a new link for the guest.

        The old token stops resolving immediately and the device list is
        emptied in the same write.
        """
        guest = self.directory.update_token(guest_id, generate_secure_token())
        if guest is not None:
            log_access_event(
                logger, "token_regenerated", guest_id=guest_id, token=guest.token
            )
        return guest
