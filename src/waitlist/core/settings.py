"""Application settings and configuration.

This module defines all configuration options for the waitlist service.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

TokenAlgorithm = Literal["HS256", "HS512", "ES256", "ES512"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Waitlist", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./waitlist.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Access control
    api_key: str = Field(alias="API_KEY")
    secure_path_1: str = Field(alias="SECURE_PATH_1")
    secure_path_2: str = Field(alias="SECURE_PATH_2")

    # Fernet key used to encrypt participant contacts at rest
    encryption_key: str = Field(alias="ENCRYPTION_KEY")

    # Activation token settings. Missing keys are generated at startup.
    jwt_algorithm: TokenAlgorithm = Field(default="ES256", alias="JWT_ALGORITHM")
    jwt_secret: str | None = Field(default=None, alias="JWT_SECRET")
    jwt_private_key: str | None = Field(default=None, alias="JWT_PRIVATE_KEY")
    token_issuer: str = Field(default="waitlist", alias="TOKEN_ISSUER")
    token_ttl_seconds: int = Field(default=600, ge=1, alias="TOKEN_TTL_SECONDS")
    activation_base_url: str = Field(
        default="http://localhost:8000",
        alias="ACTIVATION_BASE_URL",
    )

    # Per-client admission limiter (token bucket keyed on client IP)
    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")
    rate_limit_per_second: float = Field(default=0.1, ge=0, alias="RATE_LIMIT_PER_SECOND")
    rate_limit_burst: int = Field(default=10, ge=1, alias="RATE_LIMIT_BURST")
    rate_limit_sweep_interval_seconds: float = Field(
        default=300.0,
        gt=0,
        alias="RATE_LIMIT_SWEEP_INTERVAL_SECONDS",
    )
    rate_limit_idle_seconds: float = Field(
        default=600.0,
        gt=0,
        alias="RATE_LIMIT_IDLE_SECONDS",
    )

    # Background notification draining on shutdown
    shutdown_drain_timeout_seconds: float = Field(
        default=5.0,
        ge=0,
        alias="SHUTDOWN_DRAIN_TIMEOUT_SECONDS",
    )

    # Outbound mail. Without an SMTP host, notifications are only logged.
    smtp_host: str | None = Field(default=None, alias="SMTP_HOST")
    smtp_port: int = Field(default=587, alias="SMTP_PORT")
    smtp_user: str | None = Field(default=None, alias="SMTP_USER")
    smtp_password: str | None = Field(default=None, alias="SMTP_PASSWORD")
    mail_sender: str = Field(default="waitlist@localhost", alias="MAIL_SENDER")

    # Operator listing
    list_timezone: str = Field(default="Europe/Paris", alias="LIST_TIMEZONE")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["origin", "content-type", "accept", "authorization", "x-api-key"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def mail_enabled(self) -> bool:
        """Return True when an SMTP relay is configured."""
        return bool(self.smtp_host)


settings = Settings()  # type: ignore[call-arg]
