"""Environment-driven configuration for the booking service.

Settings are read once per process from environment variables and cached.
Secrets (the service API key) may instead be stored in SSM Parameter Store;
see ``Settings.resolve_service_api_key``.
"""

import os
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> list[str]:
    return [part.strip() for part in os.getenv(name, default).split(",") if part.strip()]


class Settings(BaseModel):
    """Process-wide service configuration."""

    model_config = ConfigDict(frozen=True)

    environment: str = "dev"
    table_prefix: str = "salonbook-dev"
    aws_region: str = "eu-west-1"

    # Identity provider (token verification)
    identity_issuer: str | None = None
    identity_audience: str | None = None
    identity_jwks_url: str | None = None
    identity_algorithms: list[str] = Field(default_factory=lambda: ["RS256"])
    jwks_cache_ttl_seconds: int = 3600

    # Machine-to-machine access
    service_api_key: str | None = None
    service_api_key_ssm_parameter: str | None = None
    service_account_external_id: str = "service-admin"
    service_account_email: str = "admin@salonbook.app"

    placeholder_email_domain: str = "accounts.salonbook.app"

    notifications_enabled: bool = True
    notification_sender: str = "bookings@salonbook.app"

    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        environment = os.getenv("ENVIRONMENT", "dev")
        issuer = os.getenv("IDENTITY_ISSUER")
        jwks_url = os.getenv("IDENTITY_JWKS_URL")
        if not jwks_url and issuer:
            jwks_url = issuer.rstrip("/") + "/.well-known/jwks.json"

        return cls(
            environment=environment,
            table_prefix=os.getenv("DYNAMODB_TABLE_PREFIX", f"salonbook-{environment}"),
            aws_region=os.getenv("AWS_DEFAULT_REGION") or os.getenv("AWS_REGION", "eu-west-1"),
            identity_issuer=issuer,
            identity_audience=os.getenv("IDENTITY_AUDIENCE"),
            identity_jwks_url=jwks_url,
            identity_algorithms=_env_list("IDENTITY_ALGORITHMS", "RS256"),
            jwks_cache_ttl_seconds=int(os.getenv("JWKS_CACHE_TTL_SECONDS", "3600")),
            service_api_key=os.getenv("SERVICE_API_KEY"),
            service_api_key_ssm_parameter=os.getenv("SERVICE_API_KEY_SSM_PARAMETER"),
            service_account_external_id=os.getenv(
                "SERVICE_ACCOUNT_EXTERNAL_ID", "service-admin"
            ),
            service_account_email=os.getenv(
                "SERVICE_ACCOUNT_EMAIL", "admin@salonbook.app"
            ).lower(),
            placeholder_email_domain=os.getenv(
                "PLACEHOLDER_EMAIL_DOMAIN", "accounts.salonbook.app"
            ),
            notifications_enabled=_env_bool("NOTIFICATIONS_ENABLED", True),
            notification_sender=os.getenv(
                "NOTIFICATION_SENDER", "bookings@salonbook.app"
            ),
            cors_origins=_env_list(
                "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
            ),
        )

    def resolve_service_api_key(self) -> str | None:
        """Return the machine-to-machine API key.

        An explicit SERVICE_API_KEY wins; otherwise the key is read from
        SSM Parameter Store when a parameter name is configured.
        """
        if self.service_api_key:
            return self.service_api_key
        if self.service_api_key_ssm_parameter:
            from salonbook.services.service_key_store import get_service_key_store

            return get_service_key_store(self.service_api_key_ssm_parameter).get_api_key()
        return None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the cached settings instance."""
    return Settings.from_env()


def reset_settings() -> None:
    """Drop cached settings (for testing only)."""
    get_settings.cache_clear()
