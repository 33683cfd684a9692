"""Client settings and configuration.

This module defines the configuration options for the powgate client.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Gateway connection
    gateway_url: str = Field(default="http://localhost:8080", alias="POWGATE_GATEWAY_URL")
    http_timeout_seconds: float = Field(default=10.0, alias="POWGATE_HTTP_TIMEOUT_SECONDS")

    # Proof-of-work parameters (leading zero bytes required)
    difficulty: int = Field(default=2, ge=0, le=32, alias="POWGATE_DIFFICULTY")
    hash_algorithm: Literal["sha256", "blake3"] = Field(
        default="sha256",
        alias="POWGATE_HASH_ALGORITHM",
    )
    wire_schema: Literal["canonical", "garry", "legacy"] = Field(
        default="canonical",
        alias="POWGATE_WIRE_SCHEMA",
    )
    workers: int = Field(default=1, ge=1, alias="POWGATE_WORKERS")
    progress_interval: int = Field(default=1000, ge=1, alias="POWGATE_PROGRESS_INTERVAL")
    mining_timeout_seconds: float | None = Field(
        default=None,
        alias="POWGATE_MINING_TIMEOUT_SECONDS",
    )

    # Logging
    log_level: str = Field(default="WARNING", alias="POWGATE_LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def gateway_base_url(self) -> str:
        """Return the gateway URL without a trailing slash.

        Returns:
            Base URL suitable for joining with request paths
        """
        return self.gateway_url.rstrip("/")


settings = Settings()
