"""Pytest configuration and fixtures for guestpass backend tests.

This module provides reusable fixtures for testing:
- DynamoDB mocking with moto (guests table with token GSI)
- Wired access services over the mocked table
- A guest factory for seeding records
"""

import os
import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, Generator

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
os.environ.setdefault("DYNAMODB_TABLE_PREFIX", "test-guestpass")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
# Route tests hit the same endpoints many times; limiter tests enable it explicitly
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from guestpass.models import Guest  # noqa: E402
from guestpass.services.access_service import AccessService  # noqa: E402
from guestpass.services.admin_service import AdminService  # noqa: E402
from guestpass.services.device_registry import DeviceRegistry  # noqa: E402
from guestpass.services.dynamodb import DynamoDBService  # noqa: E402
from guestpass.services.guest_directory import GuestDirectory  # noqa: E402
from guestpass.services.identity_verifier import IdentityVerifier  # noqa: E402
from guestpass.services.token_verifier import TokenVerifier  # noqa: E402

GUESTS_TABLE_NAME = "test-guestpass-guests"


# === Singleton Reset ===


@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Reset cached services before and after each test.

    Tests using mock_aws need fresh boto3 clients created inside the mock
    context rather than ones left over from a previous test.
    """
    from guestpass.services.ssm_service import SSMService, get_ssm_service
    from guestpass_api.dependencies import reset_services

    reset_services()
    SSMService.reset()
    get_ssm_service.cache_clear()
    yield
    reset_services()
    SSMService.reset()
    get_ssm_service.cache_clear()


# === AWS Fixtures ===


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS Credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "eu-west-1"


@pytest.fixture
def dynamodb_client(aws_credentials: None) -> Generator[Any, None, None]:
    """Create a mocked DynamoDB client."""
    with mock_aws():
        client = boto3.client("dynamodb", region_name="eu-west-1")
        yield client


@pytest.fixture
def create_tables(dynamodb_client: Any) -> None:
    """Create the guests table with its token GSI."""
    dynamodb_client.create_table(
        TableName=GUESTS_TABLE_NAME,
        KeySchema=[{"AttributeName": "guest_id", "KeyType": "HASH"}],
        AttributeDefinitions=[
            {"AttributeName": "guest_id", "AttributeType": "S"},
            {"AttributeName": "token", "AttributeType": "S"},
        ],
        GlobalSecondaryIndexes=[
            {
                "IndexName": "token-index",
                "KeySchema": [{"AttributeName": "token", "KeyType": "HASH"}],
                "Projection": {"ProjectionType": "ALL"},
            }
        ],
        BillingMode="PAY_PER_REQUEST",
    )


# === Service Fixtures ===


@pytest.fixture
def db(create_tables: None) -> DynamoDBService:
    """DynamoDBService bound to the mocked tables."""
    return DynamoDBService(environment="test")


@pytest.fixture
def directory(db: DynamoDBService) -> GuestDirectory:
    return GuestDirectory(db)


@pytest.fixture
def registry(db: DynamoDBService) -> DeviceRegistry:
    return DeviceRegistry(db)


@pytest.fixture
def tokens(directory: GuestDirectory) -> TokenVerifier:
    return TokenVerifier(directory)


@pytest.fixture
def identities(
    directory: GuestDirectory, tokens: TokenVerifier, registry: DeviceRegistry
) -> IdentityVerifier:
    return IdentityVerifier(directory, tokens, registry)


@pytest.fixture
def access_service(
    tokens: TokenVerifier, registry: DeviceRegistry, identities: IdentityVerifier
) -> AccessService:
    return AccessService(tokens, registry, identities)


@pytest.fixture
def admin_service(directory: GuestDirectory, registry: DeviceRegistry) -> AdminService:
    return AdminService(directory, registry)


# === Sample Data Fixtures ===


@pytest.fixture
def make_guest(directory: GuestDirectory) -> Callable[..., Guest]:
    """Factory that stores a guest and returns it.

    Usage:
        guest = make_guest(phone="5551234567", max_devices_allowed=2)
    """

    def _make(**overrides: Any) -> Guest:
        now = datetime.now(UTC)
        data: dict[str, Any] = {
            "guest_id": f"guest-{uuid.uuid4().hex[:8]}",
            "token": f"tok{uuid.uuid4().hex[:9]}",
            "name": "Ana Silva",
            "event_access": ["ceremony", "dinner"],
            "max_devices_allowed": 1,
            "allowed_devices": [],
            "created_at": now,
            "updated_at": now,
        }
        data.update(overrides)
        guest = Guest(**data)
        assert directory.create(guest)
        return guest

    return _make


@pytest.fixture
def phone_guest(make_guest: Callable[..., Guest]) -> Guest:
    """Guest invited with a phone number on file."""
    return make_guest(guest_id="guest-phone", token="PhoneTok1234", phone="5551234567")


@pytest.fixture
def email_guest(make_guest: Callable[..., Guest]) -> Guest:
    """Guest invited with an email address on file."""
    return make_guest(
        guest_id="guest-email", token="EmailTok1234", email="ana@example.com"
    )


@pytest.fixture
def bare_guest(make_guest: Callable[..., Guest]) -> Guest:
    """Guest invited without any identity on file."""
    return make_guest(guest_id="guest-bare", token="BareTok12345")
