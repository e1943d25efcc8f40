"""Client access session cache.

Remembers, per token, the last identity proven on this client so later
visits can skip the device check. The entry is advisory: a mismatch against
the server's identity clears it and the flow falls back to the server.
"""

from guestpass.services.normalization import identity_matches, normalize_identity

from .storage import KeyValueStore

SESSION_KEY_PREFIX = "guest_identity_"


def session_key(token: str) -> str:
    return f"{SESSION_KEY_PREFIX}{token}"


class AccessSessionCache:
    """Per-token cache of the last proven identity string."""

    def __init__(self, storage: KeyValueStore) -> None:
        self.storage = storage

    def get(self, token: str) -> str | None:
        return self.storage.get(session_key(token)) or None

    def set(self, token: str, identity: str) -> None:
        self.storage.set(session_key(token), identity)

    def clear(self, token: str) -> None:
        self.storage.delete(session_key(token))

    def matches(self, token: str, phone: str | None, email: str | None) -> bool | None:
        """Compare the cached identity with the guest's stored identity.

        Returns:
            None when nothing is cached, otherwise whether the cached value
            normalizes to the stored phone or email
        """
        cached = self.get(token)
        if cached is None:
            return None
        return identity_matches(normalize_identity(cached), phone, email)
