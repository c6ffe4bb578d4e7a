"""Application settings loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Configuration loaded from environment variables.

    Only secrets and deployment-specific values belong here.
    Application constants live in `vidbrief.core.constants`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ---------------------------------------------------------------------------
    # Auth (required secret)
    # ---------------------------------------------------------------------------
    jwt_secret: str = Field(..., validation_alias="JWT_SECRET")
    access_token_ttl_hours: int = Field(default=24, validation_alias="ACCESS_TOKEN_TTL_HOURS")
    refresh_token_ttl_days: int = Field(default=30, validation_alias="REFRESH_TOKEN_TTL_DAYS")
    starting_credits: int = Field(default=10, validation_alias="STARTING_CREDITS")

    # ---------------------------------------------------------------------------
    # Summary provider (optional; without a key only the local fallback runs)
    # ---------------------------------------------------------------------------
    openrouter_api_key: str | None = Field(default=None, validation_alias="OPENROUTER_API_KEY")
    openrouter_model: str = Field(default="openai/gpt-3.5-turbo", validation_alias="OPENROUTER_MODEL")
    openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1", validation_alias="OPENROUTER_BASE_URL")
    generation_timeout_seconds: float = Field(default=30.0, validation_alias="GENERATION_TIMEOUT_SECONDS")

    # ---------------------------------------------------------------------------
    # Postgres
    # ---------------------------------------------------------------------------
    database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")
    db_host: str = Field(default="localhost", validation_alias="DB_HOST")
    db_port: int = Field(default=5432, validation_alias="DB_PORT")
    db_user: str = Field(default="postgres", validation_alias="DB_USER")
    db_password: str | None = Field(default=None, validation_alias="DB_PASSWORD")
    db_name: str = Field(default="vidbrief", validation_alias="DB_NAME")
    db_pool_min_size: int = Field(default=1, validation_alias="DB_POOL_MIN_SIZE")
    db_pool_max_size: int = Field(default=10, validation_alias="DB_POOL_MAX_SIZE")

    # ---------------------------------------------------------------------------
    # Deployment config (optional)
    # ---------------------------------------------------------------------------
    app_env: str = Field(default="local", validation_alias="APP_ENV")
    cors_allow_origins: list[str] = Field(default_factory=list, validation_alias="CORS_ALLOW_ORIGINS")
    rate_limit: int = Field(default=0, validation_alias="RATE_LIMIT")  # requests/window, 0 = disabled
    rate_limit_window_seconds: int = Field(default=60, validation_alias="RATE_LIMIT_WINDOW_SECONDS")
    # Request bodies carry whole transcripts (an hour of speech is roughly 60-90 KB).
    max_request_bytes: int = Field(default=1_000_000, validation_alias="MAX_REQUEST_BYTES")  # 0 = unlimited

    @field_validator(
        "jwt_secret",
        "openrouter_api_key",
        "openrouter_model",
        "openrouter_base_url",
        "database_url",
        "db_host",
        "db_user",
        "db_password",
        "db_name",
        "app_env",
        mode="before",
    )
    @classmethod
    def _strip_strings(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("openrouter_api_key", "database_url", "db_password")
    @classmethod
    def _empty_to_none(cls, value: str | None) -> str | None:
        return value or None

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _parse_list(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            items = [item.strip() for item in value.split(",")]
            return [item for item in items if item]
        return value

    @field_validator("generation_timeout_seconds", mode="before")
    @classmethod
    def _clamp_generation_timeout(cls, value: object) -> object:
        if isinstance(value, (int, float)):
            return max(1.0, float(value))
        return value

    @field_validator(
        "db_pool_min_size",
        "db_pool_max_size",
        "access_token_ttl_hours",
        "rate_limit_window_seconds",
        mode="before",
    )
    @classmethod
    def _clamp_positive(cls, value: object) -> object:
        if isinstance(value, int):
            return max(1, value)
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
