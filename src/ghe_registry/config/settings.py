"""
Settings configuration for GHE Registry using Pydantic Settings.

Environment variables are used for configuration, with optional .env file support.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = Field(default="GHE Registry", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # Server settings
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")

    # Routing settings
    organization: str = Field(
        default="jenkins",
        description="Organization name served under /organizations/{organization}",
    )

    # Auth settings
    api_token: str | None = Field(
        default=None,
        description="Bearer token required for mutating and listing servers. "
        "If unset, authentication is disabled.",
    )

    # Server Registry settings
    server_registry_path: str | None = Field(
        default="config/github_enterprise_servers.json",
        description="Path to the JSON file the server registry is persisted to",
    )

    # Probe settings
    probe_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Timeout in seconds for the GitHub identity probe",
    )
    identity_header: str = Field(
        default="X-GitHub-Request-Id",
        description="Response header that identifies a GitHub API server",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
