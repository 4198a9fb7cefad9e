"""
Configuration Management for Finance Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The token signing secret is the only value without a default: a
server that cannot sign tokens must fail at startup, not at first login.
"""

from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthSettings(BaseSettings):
    """Session token and credential hashing configuration."""

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    secret_key: SecretStr = Field(
        ...,
        description="Secret used to sign session tokens"
    )
    algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm"
    )
    token_lifetime_days: int = Field(
        default=7,
        ge=1,
        le=90,
        description="Session token lifetime in days"
    )
    bcrypt_rounds: int = Field(
        default=12,
        ge=4,
        le=16,
        description="bcrypt work factor for passwords and security answers"
    )
    cookie_name: str = Field(
        default="auth-token",
        description="Name of the session cookie"
    )

    @field_validator('secret_key')
    @classmethod
    def validate_secret_key(cls, v: SecretStr) -> SecretStr:
        """Reject an empty secret."""
        if not v.get_secret_value().strip():
            raise ValueError("AUTH_SECRET_KEY must not be empty")
        return v

    @property
    def token_lifetime_seconds(self) -> int:
        """Token lifetime in seconds (also the cookie max-age)."""
        return self.token_lifetime_days * 24 * 60 * 60


class DatabaseSettings(BaseSettings):
    """Relational storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    url: str = Field(
        default="sqlite:///finance_tracker.db",
        description="SQLAlchemy database URL"
    )
    echo: bool = Field(
        default=False,
        description="Log every SQL statement"
    )

    @field_validator('url')
    @classmethod
    def normalize_postgres_scheme(cls, v: str) -> str:
        """Some hosts still hand out postgres:// URLs, which SQLAlchemy rejects."""
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Input rules
    min_password_length: int = Field(
        default=6,
        ge=1,
        le=72,
        description="Minimum password length at signup and reset"
    )

    # Analytics
    default_trend_months: int = Field(
        default=6,
        ge=1,
        le=36,
        description="Number of monthly buckets when the caller asks for none"
    )

    # HTTP
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed browser origins"
    )

    @property
    def is_production(self) -> bool:
        """Secure cookies are only sent in production."""
        return self.app_environment.lower() == "production"

    @property
    def cors_origins_list(self) -> list[str]:
        """Get allowed origins as a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Loaded lazily so a missing AUTH_SECRET_KEY only fails where it is used

    @property
    def auth(self) -> AuthSettings:
        return AuthSettings()

    @property
    def database(self) -> DatabaseSettings:
        return DatabaseSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for the ones that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("auth", "database", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
