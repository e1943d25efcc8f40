"""Server-side access control services."""

from .access_service import AccessService, build_access_service
from .admin_service import AdminService, generate_secure_token
from .device_registry import DeviceRegistry
from .dynamodb import DynamoDBService, get_dynamodb_service, reset_dynamodb_service
from .guest_directory import GuestDirectory
from .identity_verifier import IdentityVerifier
from .ssm_service import SSMService, SSMServiceError, get_admin_api_key, get_ssm_service
from .token_verifier import TokenVerifier

__all__ = [
    "AccessService",
    "AdminService",
    "DeviceRegistry",
    "DynamoDBService",
    "GuestDirectory",
    "IdentityVerifier",
    "SSMService",
    "SSMServiceError",
    "TokenVerifier",
    "build_access_service",
    "generate_secure_token",
    "get_admin_api_key",
    "get_dynamodb_service",
    "get_ssm_service",
    "reset_dynamodb_service",
]
