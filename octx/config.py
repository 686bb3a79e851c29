"""Settings for talking to the GitHub REST API."""

from __future__ import annotations

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from octx.exceptions import ConfigurationError
from octx.models import ErrorPolicy


class OctxConfig(BaseSettings):
    """Runtime configuration, read from the environment and an optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    github_api_token: str = Field(..., description="Personal access token (PAT is fine)")
    github_api_url: str = Field(
        default="https://api.github.com/",
        description="API entrypoint; GitHub Enterprise servers use https://<host>/api/v3/",
    )

    # GitHub rejects per_page above 100
    api_page_size: int = Field(default=100, ge=1, le=100)
    # Unset means requests wait indefinitely
    api_timeout_seconds: float | None = Field(default=None, gt=0)

    on_row_error: ErrorPolicy = Field(default=ErrorPolicy.ABORT)

    log_level: str = Field(default="INFO")

    @field_validator("github_api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("GITHUB_API_URL must start with http:// or https://")
        if not v.endswith("/"):
            v = v + "/"
        return v

    @field_validator("github_api_token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("GITHUB_API_TOKEN cannot be empty")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v


def get_config() -> OctxConfig:
    """Load configuration from environment."""
    try:
        load_dotenv(".env")
        return OctxConfig()
    except Exception as e:
        raise ConfigurationError(f"Failed to load configuration: {e}") from e
