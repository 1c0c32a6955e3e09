"""SSM Parameter Store access for the webhook's secrets.

Flutterwave and Firebase secrets that are not supplied through the
environment live under ``/adboost/{environment}/`` as SecureString
parameters. Settings loading asks for all of the missing ones at once, so
a cold start costs a single GetParameters round trip.
"""

import logging
from collections.abc import Iterable
from functools import lru_cache
from typing import ClassVar

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

SECRET_PREFIX = "/adboost"

# GetParameters accepts at most this many names per call
MAX_NAMES_PER_CALL = 10


class SSMServiceError(Exception):
    """Raised when secrets cannot be read from SSM."""

    pass


def secret_path(environment: str, name: str) -> str:
    """Full parameter path of a secret, e.g. /adboost/prod/flutterwave/secret_key."""
    return f"{SECRET_PREFIX}/{environment}/{name}"


class SSMService:
    """Reads and caches webhook secrets from SSM Parameter Store.

    Usage:
        ssm = SSMService()
        secrets = ssm.get_secrets("prod", ["flutterwave/secret_key", "flutterwave/webhook_hash"])
        secrets["flutterwave/secret_key"]
    """

    # Keyed by full parameter path; shared so warm Lambda invocations skip SSM
    _cache: ClassVar[dict[str, str]] = {}

    def __init__(self) -> None:
        self._client = boto3.client("ssm")

    def get_secrets(self, environment: str, names: Iterable[str]) -> dict[str, str]:
        """Read secrets for an environment.

        Args:
            environment: Deployment environment (dev, prod, ...).
            names: Secret names relative to the environment prefix.

        Returns:
            Decrypted values keyed by the names that were asked for.

        Raises:
            SSMServiceError: If any secret is missing or SSM cannot be reached.
        """
        paths = {name: secret_path(environment, name) for name in names}
        missing = [path for path in paths.values() if path not in self._cache]

        if missing:
            logger.info("Fetching %d secret(s) from SSM for %s", len(missing), environment)
            for start in range(0, len(missing), MAX_NAMES_PER_CALL):
                self._fetch(missing[start : start + MAX_NAMES_PER_CALL])
        else:
            logger.debug("SSM cache hit for %s", ", ".join(paths.values()))

        return {name: self._cache[path] for name, path in paths.items()}

    def _fetch(self, paths: list[str]) -> None:
        try:
            response = self._client.get_parameters(Names=paths, WithDecryption=True)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code == "AccessDeniedException":
                raise SSMServiceError(
                    f"Access denied to SSM parameters {', '.join(paths)}. "
                    "Check IAM permissions for ssm:GetParameters."
                ) from e
            raise SSMServiceError(f"Failed to read SSM parameters: {e}") from e
        except BotoCoreError as e:
            raise SSMServiceError(f"SSM is unreachable: {e}") from e

        invalid = response.get("InvalidParameters", [])
        if invalid:
            raise SSMServiceError(f"SSM parameter not found: {', '.join(sorted(invalid))}")

        for parameter in response["Parameters"]:
            self._cache[parameter["Name"]] = parameter["Value"]

    def clear_cache(self) -> None:
        """Clear all cached secrets."""
        self._cache.clear()
        logger.info("SSM secret cache cleared")


@lru_cache(maxsize=1)
def get_ssm_service() -> SSMService:
    """Get the shared SSMService instance."""
    return SSMService()
