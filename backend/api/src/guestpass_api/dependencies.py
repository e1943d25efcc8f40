"""FastAPI dependency injection providers for shared services.

Service instances are created lazily and cached with @lru_cache so every
request in a process shares them. Sharing matters for the DeviceRegistry:
its per-guest locks only serialize writers that use the same instance.

Service Dependency Graph:
    DynamoDBService (singleton via get_dynamodb_service)
        ├── GuestDirectory
        │       ├── TokenVerifier
        │       ├── IdentityVerifier (+ TokenVerifier, DeviceRegistry)
        │       └── AdminService (+ DeviceRegistry)
        └── DeviceRegistry
    AccessService = TokenVerifier + DeviceRegistry + IdentityVerifier

Testing:
    Use reset_services() to clear cached instances between tests.
"""

from functools import lru_cache

from guestpass.services.access_service import AccessService
from guestpass.services.admin_service import AdminService
from guestpass.services.device_registry import DeviceRegistry
from guestpass.services.dynamodb import get_dynamodb_service
from guestpass.services.guest_directory import GuestDirectory
from guestpass.services.identity_verifier import IdentityVerifier
from guestpass.services.token_verifier import TokenVerifier


@lru_cache
def get_guest_directory() -> GuestDirectory:
    return GuestDirectory(get_dynamodb_service())


@lru_cache
def get_device_registry() -> DeviceRegistry:
    return DeviceRegistry(get_dynamodb_service())


@lru_cache
def get_token_verifier() -> TokenVerifier:
    return TokenVerifier(get_guest_directory())


@lru_cache
def get_identity_verifier() -> IdentityVerifier:
    return IdentityVerifier(
        directory=get_guest_directory(),
        tokens=get_token_verifier(),
        registry=get_device_registry(),
    )


@lru_cache
def get_access_service() -> AccessService:
    """Get cached AccessService instance.

    Returns:
        AccessService sharing the process-wide DeviceRegistry.
    """
    return AccessService(
        tokens=get_token_verifier(),
        registry=get_device_registry(),
        identities=get_identity_verifier(),
    )


@lru_cache
def get_admin_service() -> AdminService:
    """Get cached AdminService instance.

    Returns:
        AdminService sharing the process-wide DeviceRegistry.
    """
    return AdminService(directory=get_guest_directory(), registry=get_device_registry())


def reset_services() -> None:
    """Clear all cached service instances.

    Also resets the underlying DynamoDB singleton and the rate limiter
    counters.

    Example:
        @pytest.fixture(autouse=True)
        def reset_state():
            yield
            reset_services()
    """
    from guestpass.services.dynamodb import reset_dynamodb_service

    from guestpass_api.rate_limit import get_limiter

    get_guest_directory.cache_clear()
    get_device_registry.cache_clear()
    get_token_verifier.cache_clear()
    get_identity_verifier.cache_clear()
    get_access_service.cache_clear()
    get_admin_service.cache_clear()

    reset_dynamodb_service()
    get_limiter().reset()
