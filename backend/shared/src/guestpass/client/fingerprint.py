"""Best-effort device fingerprinting.

A fingerprint is the SHA-256 of a few environment signals plus a random seed
persisted in client storage. It is stable per browser profile, changes with
a fresh profile or private session, and is a hint rather than an identity.

Any failure while probing the environment or persisting the seed is raised
as ``FingerprintUnavailable`` so callers can degrade to asking for identity.
"""

import hashlib
import json
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass

from .storage import KeyValueStore

SEED_STORAGE_KEY = "device_fingerprint_id"
RENDER_PROBE_UNSUPPORTED = "render-probe-not-supported"


class FingerprintUnavailable(Exception):
    """The environment could not produce a fingerprint."""


@dataclass
class ClientEnvironment:
    """Signals describing the browser the link was opened in.

    ``render_probe`` returns a rendering-engine specific string (for example
    a canvas data URL). It may be missing or may raise on browsers that do
    not support the probe.
    """

    user_agent: str
    screen_resolution: str
    timezone: str
    platform: str
    render_probe: Callable[[], str] | None = None


def _generate_seed() -> str:
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


class FingerprintGenerator:
    """Derives a stable fingerprint for one client profile."""

    def __init__(self, storage: KeyValueStore) -> None:
        self.storage = storage

    def _seed(self) -> str:
        seed = self.storage.get(SEED_STORAGE_KEY)
        if not seed:
            seed = _generate_seed()
            self.storage.set(SEED_STORAGE_KEY, seed)
        return seed

    @staticmethod
    def _probe(environment: ClientEnvironment) -> str:
        if environment.render_probe is None:
            return RENDER_PROBE_UNSUPPORTED
        try:
            return environment.render_probe()
        except Exception:
            # A failing probe only weakens the fingerprint
            return RENDER_PROBE_UNSUPPORTED

    def generate(self, environment: ClientEnvironment | None) -> str:
        """Compute the fingerprint for ``environment``.

        Raises:
            FingerprintUnavailable: If there is no environment to probe or
                the seed cannot be read or stored.
        """
        if environment is None:
            raise FingerprintUnavailable("no client environment available")

        try:
            signals = {
                "user_agent": environment.user_agent,
                "screen_resolution": environment.screen_resolution,
                "timezone": environment.timezone,
                "platform": environment.platform,
                "render_probe": self._probe(environment),
                "storage_seed": self._seed(),
            }
        except Exception as e:
            raise FingerprintUnavailable(str(e)) from e

        canonical = json.dumps(signals, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
