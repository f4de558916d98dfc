"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
Signing secrets and the database URL have no defaults.
"""

import re
from datetime import timedelta

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DURATION_PATTERN = re.compile(r"^(\d+)([smhd])$")
_DURATION_UNITS = {
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
}

KNOWN_SERVICES: frozenset[str] = frozenset({"auth", "laporan"})


def parse_duration(value: str | int | float | timedelta) -> timedelta:
    """Parse a token lifetime such as ``15m`` or ``7d``.

    Plain numbers are interpreted as seconds.

    Args:
        value: Duration string (``<n>s``, ``<n>m``, ``<n>h``, ``<n>d``), a
            number of seconds, or a timedelta.

    Returns:
        The parsed duration.

    Raises:
        ValueError: If the value cannot be parsed.
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, int | float):
        return timedelta(seconds=value)
    text = value.strip().lower()
    if text.isdigit():
        return timedelta(seconds=int(text))
    match = _DURATION_PATTERN.match(text)
    if match is None:
        msg = f"Invalid duration '{value}': expected a number followed by s, m, h or d"
        raise ValueError(msg)
    amount, unit = match.groups()
    return int(amount) * _DURATION_UNITS[unit]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        description="SQLAlchemy async connection string (e.g. postgresql+asyncpg://...)",
    )

    # JWT
    jwt_secret_key: str = Field(
        min_length=32,
        description="Secret key for signing access tokens (minimum 32 characters)",
    )
    jwt_refresh_secret_key: str = Field(
        min_length=32,
        description="Secret key for signing refresh tokens (minimum 32 characters, distinct from jwt_secret_key)",
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_access_expiry: timedelta = Field(
        default=timedelta(minutes=15),
        description="Access token lifetime (e.g. 15m)",
    )
    jwt_refresh_expiry: timedelta = Field(
        default=timedelta(days=7),
        description="Refresh token lifetime (e.g. 7d)",
    )

    @field_validator("jwt_access_expiry", "jwt_refresh_expiry", mode="before")
    @classmethod
    def validate_expiry(cls, v: object) -> timedelta:
        if not isinstance(v, str | int | float | timedelta):
            msg = "Token expiry must be a duration string such as 15m or 7d"
            raise ValueError(msg)
        duration = parse_duration(v)
        if duration <= timedelta(0):
            msg = "Token expiry must be positive"
            raise ValueError(msg)
        return duration

    @model_validator(mode="after")
    def validate_distinct_secrets(self) -> "Settings":
        if self.jwt_secret_key == self.jwt_refresh_secret_key:
            msg = "jwt_refresh_secret_key must differ from jwt_secret_key"
            raise ValueError(msg)
        return self

    # Server
    host: str = Field(default="0.0.0.0", description="Bind host for the API server")  # noqa: S104
    port: int = Field(default=8000, description="Listen port for the API server", gt=0, lt=65536)

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging with 24h rotation when set)",
    )
    log_json: bool = Field(
        default=False,
        description="Emit JSON-serialized log records on stderr",
    )

    # CORS
    cors_origins: str = Field(
        default="",
        description="Comma-separated list of allowed CORS origins (must be explicitly configured)",
    )

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        if not self.cors_origins.strip():
            return []
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # Environment
    environment: str = Field(
        default="production",
        description="Deployment environment name (e.g. production, dev, staging)",
    )

    # API
    api_prefix: str = Field(
        default="",
        description="Optional path prefix for every route (e.g. /api)",
    )

    @field_validator("api_prefix")
    @classmethod
    def validate_api_prefix(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            msg = "api_prefix must start with '/'"
            raise ValueError(msg)
        return v

    enabled_services: str = Field(
        default="auth,laporan",
        description="Comma-separated router groups served by this deployment (auth, laporan)",
    )

    @field_validator("enabled_services")
    @classmethod
    def validate_enabled_services(cls, v: str) -> str:
        names = {s.strip().lower() for s in v.split(",") if s.strip()}
        unknown = names - KNOWN_SERVICES
        if unknown:
            msg = f"Unknown service(s) in enabled_services: {', '.join(sorted(unknown))}"
            raise ValueError(msg)
        if not names:
            msg = "enabled_services must name at least one service"
            raise ValueError(msg)
        return v

    @property
    def enabled_service_list(self) -> list[str]:
        """Parse enabled services string into a lowercase list."""
        return [s.strip().lower() for s in self.enabled_services.split(",") if s.strip()]


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()  # type: ignore[call-arg]
