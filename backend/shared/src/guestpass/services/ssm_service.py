"""SSM Parameter Store access for guestpass secrets.

The only secret the access service needs is the host's admin API key. It is
read from the ADMIN_API_KEY environment variable when set (local runs and
tests) and otherwise from the SecureString parameter
``/guestpass/{environment}/admin/api_key``.
"""

import logging
import os
from functools import lru_cache
from typing import ClassVar

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

ADMIN_API_KEY_PARAMETER = "/guestpass/{environment}/admin/api_key"


class SSMServiceError(Exception):
    """Raised when SSM parameter retrieval fails."""


class SSMService:
    """Cached reader for SecureString parameters.

    Usage:
        ssm = SSMService()
        key = ssm.get_parameter("/guestpass/dev/admin/api_key")
    """

    _instance: ClassVar["SSMService | None"] = None
    _cache: ClassVar[dict[str, str]] = {}

    def __init__(self) -> None:
        self._client = boto3.client("ssm")

    @classmethod
    def get_instance(cls) -> "SSMService":
        """Get singleton instance of SSMService."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton and its cache (for testing only)."""
        cls._instance = None
        cls._cache.clear()

    def get_parameter(self, name: str, *, use_cache: bool = True) -> str:
        """Retrieve a decrypted parameter value.

        Args:
            name: Full parameter path
            use_cache: Whether to use cached value if available (default: True)

        Raises:
            SSMServiceError: If parameter cannot be retrieved.
        """
        if use_cache and name in self._cache:
            logger.debug("SSM cache hit for %s", name)
            return self._cache[name]

        try:
            logger.info("Fetching SSM parameter: %s", name)
            response = self._client.get_parameter(Name=name, WithDecryption=True)
            value: str = response["Parameter"]["Value"]
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code == "ParameterNotFound":
                raise SSMServiceError(f"SSM parameter not found: {name}") from e
            if error_code == "AccessDeniedException":
                raise SSMServiceError(
                    f"Access denied to SSM parameter: {name}. "
                    "Check IAM permissions for ssm:GetParameter."
                ) from e
            raise SSMServiceError(
                f"Failed to retrieve SSM parameter {name}: {e}"
            ) from e

        self._cache[name] = value
        return value


@lru_cache(maxsize=1)
def get_ssm_service() -> SSMService:
    """Get the shared SSMService instance."""
    return SSMService.get_instance()


def get_admin_api_key() -> str:
    """Resolve the admin API key from the environment or SSM.

    Raises:
        SSMServiceError: If no key is configured anywhere.
    """
    key = os.getenv("ADMIN_API_KEY")
    if key:
        return key
    environment = os.getenv("ENVIRONMENT", "dev")
    return get_ssm_service().get_parameter(
        ADMIN_API_KEY_PARAMETER.format(environment=environment)
    )
