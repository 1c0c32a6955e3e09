"""Runtime settings for the AdBoost webhook.

Values come from environment variables. Secrets that are not in the
environment are read from SSM Parameter Store under
``/adboost/{environment}/...``.
"""

import logging
import os

from pydantic import BaseModel, ConfigDict, Field

from adboost.models.errors import ConfigurationError
from adboost.services.ssm_service import SSMServiceError, get_ssm_service

logger = logging.getLogger(__name__)

DEFAULT_FLUTTERWAVE_BASE_URL = "https://api.flutterwave.com/v3"

_TRUTHY = {"1", "true", "yes", "on"}


# Secrets that may come from SSM when absent from the environment:
# env var -> name under /adboost/{environment}/
SECRET_SOURCES: dict[str, str] = {
    "FLUTTERWAVE_SECRET_KEY": "flutterwave/secret_key",
    "FLUTTERWAVE_WEBHOOK_HASH": "flutterwave/webhook_hash",
    "FIREBASE_PRIVATE_KEY": "firebase/private_key",
}


class Settings(BaseModel):
    """Resolved configuration handed to the hosting layer."""

    model_config = ConfigDict(frozen=True)

    environment: str = "dev"
    flutterwave_secret_key: str = Field(..., repr=False)
    flutterwave_webhook_hash: str = Field(..., repr=False)
    flutterwave_base_url: str = DEFAULT_FLUTTERWAVE_BASE_URL
    firebase_project_id: str
    firebase_client_email: str
    firebase_private_key: str = Field(..., repr=False)
    dedupe_transactions: bool = False


def _load_secrets(environment: str) -> dict[str, str]:
    """Read secrets from the environment, fetching the rest from SSM together.

    Returns:
        Secret values keyed by environment variable name.

    Raises:
        ConfigurationError: If a secret is in neither source.
    """
    secrets = {var: os.environ[var] for var in SECRET_SOURCES if os.environ.get(var)}
    missing = [var for var in SECRET_SOURCES if var not in secrets]
    if not missing:
        return secrets

    try:
        fetched = get_ssm_service().get_secrets(
            environment, [SECRET_SOURCES[var] for var in missing]
        )
    except SSMServiceError as e:
        raise ConfigurationError(f"{', '.join(missing)} not set and not readable from SSM: {e}") from e

    for var in missing:
        secrets[var] = fetched[SECRET_SOURCES[var]]
    return secrets


def _required(env_var: str) -> str:
    value = os.environ.get(env_var)
    if not value:
        raise ConfigurationError(f"{env_var} is not set")
    return value


def load_settings() -> Settings:
    """Build Settings from the environment (and SSM for secrets).

    Returns:
        Settings instance.

    Raises:
        ConfigurationError: If a required value is missing.
    """
    environment = os.environ.get("ENVIRONMENT", "dev")
    secrets = _load_secrets(environment)

    settings = Settings(
        environment=environment,
        flutterwave_secret_key=secrets["FLUTTERWAVE_SECRET_KEY"],
        flutterwave_webhook_hash=secrets["FLUTTERWAVE_WEBHOOK_HASH"],
        flutterwave_base_url=os.environ.get(
            "FLUTTERWAVE_BASE_URL", DEFAULT_FLUTTERWAVE_BASE_URL
        ).rstrip("/"),
        firebase_project_id=_required("FIREBASE_PROJECT_ID"),
        firebase_client_email=_required("FIREBASE_CLIENT_EMAIL"),
        # Private keys are commonly stored with escaped newlines in env/SSM
        firebase_private_key=secrets["FIREBASE_PRIVATE_KEY"].replace("\\n", "\n"),
        dedupe_transactions=os.environ.get("WEBHOOK_DEDUPE_TRANSACTIONS", "").lower()
        in _TRUTHY,
    )
    logger.info(
        "Settings loaded for environment %s (dedupe_transactions=%s)",
        settings.environment,
        settings.dedupe_transactions,
    )
    return settings
