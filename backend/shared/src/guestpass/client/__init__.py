"""Client side of the invitation access flow."""

from .access_flow import GuestAccessFlow
from .backend import AccessBackend, AccessBackendError, HttpAccessBackend, LocalAccessBackend
from .fingerprint import ClientEnvironment, FingerprintGenerator, FingerprintUnavailable
from .session_cache import AccessSessionCache
from .storage import InMemoryStorage, JsonFileStorage, KeyValueStore

__all__ = [
    "AccessBackend",
    "AccessBackendError",
    "AccessSessionCache",
    "ClientEnvironment",
    "FingerprintGenerator",
    "FingerprintUnavailable",
    "GuestAccessFlow",
    "HttpAccessBackend",
    "InMemoryStorage",
    "JsonFileStorage",
    "KeyValueStore",
    "LocalAccessBackend",
]
