"""Configuration management using Pydantic settings."""

import json
from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Required settings
    upstream_url: str = Field(
        ...,
        description="Base URL of the upstream service webhooks are forwarded to",
    )
    webhook_secret: str = Field(
        ...,
        description="Shared secret configured on the provider's webhook",
    )

    # Optional settings
    provider: str = Field(
        default="github",
        description="Webhook provider: github or gitlab",
    )
    allowed_paths: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Upstream paths webhooks may be forwarded to. Empty means all paths allowed.",
    )
    upstream_timeout: float = Field(
        default=30.0,
        description="Timeout in seconds for requests to the upstream",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    # Server settings
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")

    @field_validator("allowed_paths", mode="before")
    @classmethod
    def split_allowed_paths(cls, value: object) -> object:
        """Accept a JSON list or a comma-separated string of paths."""
        if not isinstance(value, str):
            return value

        value = value.strip()
        if value.startswith("["):
            return json.loads(value)
        return [path.strip() for path in value.split(",") if path.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]
