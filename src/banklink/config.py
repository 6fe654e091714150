"""Centralized configuration management for BankLink.

This module provides a Pydantic Settings-based configuration system that
consolidates provider secrets, transport, retry and storage settings with
environment variable integration, type validation, and clear error handling.
"""

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoCardlessConfig(BaseModel):
    """GoCardless Bank Account Data API credentials."""

    model_config = ConfigDict(frozen=True)

    secret_id: str = Field(default="", description="GoCardless secret ID")
    secret_key: str = Field(default="", description="GoCardless secret key")
    base_url: str = Field(
        default="https://bankaccountdata.gocardless.com",
        description="GoCardless API base URL",
    )


class PlaidConfig(BaseModel):
    """Plaid API configuration settings."""

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(default="", description="Plaid client ID")
    secret: str = Field(default="", description="Plaid secret key")
    environment: Literal["sandbox", "development", "production"] = Field(
        default="production", description="Plaid environment"
    )
    country_codes: tuple[str, ...] = Field(
        default=("US", "CA"),
        description="Country codes used for institution lookups",
    )
    status_url: str = Field(
        default="https://status.plaid.com/api/v2/status.json",
        description="Statuspage endpoint used for health checks",
    )


class TellerConfig(BaseModel):
    """Teller API configuration settings."""

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(default="https://api.teller.io", description="Teller API")
    certificate_path: Path | None = Field(
        default=None, description="Client certificate for Teller mTLS"
    )
    private_key_path: Path | None = Field(
        default=None, description="Private key for the Teller client certificate"
    )
    status_url: str = Field(
        default="https://teller.statuspage.io/api/v2/status.json",
        description="Statuspage endpoint used for health checks",
    )


class StripeConfig(BaseModel):
    """Stripe API configuration settings."""

    model_config = ConfigDict(frozen=True)

    secret_key: str = Field(default="", description="Stripe secret key")
    api_version: str | None = Field(
        default=None, description="Pinned Stripe API version"
    )


class HttpConfig(BaseModel):
    """Outbound transport settings shared by all adapters."""

    model_config = ConfigDict(frozen=True)

    timeout_seconds: float = Field(
        default=30.0, gt=0, le=300, description="Timeout for each vendor call"
    )
    health_timeout_seconds: float = Field(
        default=5.0, gt=0, le=60, description="Timeout for each health probe"
    )


class RetryConfig(BaseModel):
    """Resilience wrapper settings."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(
        default=3, ge=1, le=10, description="Attempts per vendor call"
    )
    initial_delay: float = Field(
        default=0.5, ge=0, le=30.0, description="Delay before the first retry"
    )
    backoff_factor: float = Field(
        default=2.0, ge=1.0, le=10.0, description="Delay multiplier per retry"
    )
    max_delay: float = Field(
        default=8.0, ge=0, le=120.0, description="Upper bound for a single delay"
    )


class PaginationConfig(BaseModel):
    """Bounds for paginated vendor reads."""

    model_config = ConfigDict(frozen=True)

    max_pages: int = Field(
        default=10, ge=1, le=100, description="Hard cap on calls per paginated read"
    )
    page_size: int = Field(
        default=500, ge=1, le=500, description="Requested page size"
    )
    page_delay: float = Field(
        default=0.1, ge=0, le=10.0, description="Delay between offset pages"
    )


class StorageConfig(BaseModel):
    """Object store and key/value store locations."""

    model_config = ConfigDict(frozen=True)

    statements_bucket: str | None = Field(
        default=None, description="S3 bucket holding cached statement PDFs"
    )
    redis_url: str | None = Field(
        default=None, description="Redis URL for the provider key/value cache"
    )


class LoggingConfig(BaseModel):
    """Logging configuration settings."""

    model_config = ConfigDict(frozen=True)

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_to_file: bool = Field(default=False, description="Enable file logging")
    log_file_path: Path = Field(
        default=Path("logs/banklink.log"), description="Path to log file"
    )
    max_file_size_mb: int = Field(
        default=50, ge=1, le=1000, description="Maximum log file size in MB"
    )
    backup_count: int = Field(
        default=5, ge=1, le=50, description="Number of log file backups to keep"
    )


# Flat secrets accepted without the BANKLINK_ prefix, keyed by section.
_LEGACY_ENV: dict[str, dict[str, str]] = {
    "gocardless": {
        "secret_id": "GOCARDLESS_SECRET_ID",
        "secret_key": "GOCARDLESS_SECRET_KEY",
    },
    "plaid": {
        "client_id": "PLAID_CLIENT_ID",
        "secret": "PLAID_SECRET",
        "environment": "PLAID_ENVIRONMENT",
    },
    "teller": {
        "certificate_path": "TELLER_CERTIFICATE_PATH",
        "private_key_path": "TELLER_CERTIFICATE_PRIVATE_KEY_PATH",
    },
    "stripe": {
        "secret_key": "STRIPE_SECRET_KEY",
    },
}

_REQUIRED_SECRETS: dict[str, tuple[str, ...]] = {
    "gocardless": ("secret_id", "secret_key"),
    "plaid": ("client_id", "secret"),
    "teller": (),
    "stripe": ("secret_key",),
}


class BankLinkSettings(BaseSettings):
    """Main application settings with environment variable integration.

    Environment variables are loaded with the BANKLINK_ prefix.
    For nested configs, use double underscores: BANKLINK_PLAID__SECRET

    The flat vendor secrets used by existing deployments (PLAID_CLIENT_ID,
    GOCARDLESS_SECRET_KEY, STRIPE_SECRET_KEY, ...) are honoured as well.
    """

    gocardless: GoCardlessConfig = Field(default_factory=GoCardlessConfig)
    plaid: PlaidConfig = Field(default_factory=PlaidConfig)
    teller: TellerConfig = Field(default_factory=TellerConfig)
    stripe: StripeConfig = Field(default_factory=StripeConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    pagination: PaginationConfig = Field(default_factory=PaginationConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Application environment"
    )

    def __init__(self, **kwargs: Any):
        """Initialize settings with legacy environment variable overrides.

        Args:
            **kwargs: Additional configuration overrides
        """
        for section, fields in _LEGACY_ENV.items():
            if section in kwargs:
                continue
            values = {
                field: os.environ[env_name]
                for field, env_name in fields.items()
                if os.environ.get(env_name)
            }
            if values:
                kwargs[section] = values

        super().__init__(**kwargs)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="BANKLINK_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate application environment."""
        if v == "production" and os.getenv("DEBUG", "").lower() in ("true", "1"):
            raise ValueError("DEBUG mode cannot be enabled in production")
        return v

    def missing_credentials(self, provider: str) -> list[str]:
        """List the secrets a provider needs that are not configured.

        Args:
            provider: Provider identifier (gocardless, plaid, teller, stripe)

        Returns:
            list[str]: Dotted names of missing settings, empty when complete
        """
        section = getattr(self, provider, None)
        if section is None:
            return []
        return [
            f"{provider}.{name}"
            for name in _REQUIRED_SECRETS.get(provider, ())
            if not getattr(section, name)
        ]

    def validate_provider_credentials(self, provider: str) -> None:
        """Validate that a provider's required credentials are present.

        Raises:
            ValueError: If any required secret is missing
        """
        missing = self.missing_credentials(provider)
        if missing:
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")


_settings: BankLinkSettings | None = None


def get_settings() -> BankLinkSettings:
    """Get the process-wide settings instance.

    Settings are loaded once from the environment and cached.

    Returns:
        BankLinkSettings: The configuration instance

    Raises:
        ValueError: If configuration values are invalid
    """
    global _settings

    if _settings is not None:
        return _settings

    try:
        _settings = BankLinkSettings()
    except Exception as e:
        raise ValueError(f"Configuration error: {e}") from e

    return _settings


def reload_settings() -> BankLinkSettings:
    """Reload settings from environment variables.

    Useful for testing or when environment variables change at runtime.

    Returns:
        BankLinkSettings: The reloaded configuration instance
    """
    clear_settings_cache()
    return get_settings()


def clear_settings_cache() -> None:
    """Drop the cached settings instance."""
    global _settings
    _settings = None
