"""Application configuration using Pydantic Settings."""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Public api server operated by the home-gallery project
PUBLIC_API_SERVER = "https://api.home-gallery.org"


class ApiServerSettings(BaseModel):
    """Remote inference API configuration.

    Environment variables use the API_SERVER__ prefix:
    - API_SERVER__URL
    - API_SERVER__CONCURRENT
    - API_SERVER__TIMEOUT
    - API_SERVER__DISABLE (feature key or JSON list of feature keys)
    """

    url: str = Field(
        default=PUBLIC_API_SERVER,
        description="Base URL of the inference API server",
        pattern=r"^https?://.*",
    )
    concurrent: int = Field(
        default=5,
        ge=1,
        description="Maximum number of concurrent requests per feature",
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout of a single API request in seconds",
    )
    disable: Annotated[str | list[str] | None, NoDecode] = Field(
        default=None,
        description="Feature key or list of feature keys to disable "
        "(similarDetection, objectDetection, faceDetection)",
    )

    @field_validator("disable", mode="before")
    @classmethod
    def parse_disable(cls, v: object) -> object:
        """Accept a JSON list or a comma separated list from the environment."""
        if not isinstance(v, str):
            return v
        value = v.strip()
        if value.startswith("["):
            return json.loads(value)
        if "," in value:
            return [part.strip() for part in value.split(",") if part.strip()]
        return value or None

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so API paths can be appended."""
        return v.rstrip("/")

    def is_disabled(self, feature: str) -> bool:
        """Check whether the given feature key is disabled."""
        if self.disable is None:
            return False
        if isinstance(self.disable, list):
            return feature in self.disable
        return self.disable == feature


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage settings
    storage_dir: str = Field(
        default="data/storage",
        description="Root directory of the entry storage",
    )
    image_preview_sizes: list[int] = Field(
        default=[1920, 1280, 800, 320, 128],
        description="Sizes of the generated image previews, largest first",
    )

    api_server: ApiServerSettings = Field(
        default_factory=ApiServerSettings,
        description="Inference API server configuration",
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_json: bool = Field(
        default=False,
        description="Emit console logs as JSON lines",
    )
    log_file_path: str = Field(
        default="data/logs/extractor.log",
        description="Path for rotating log file",
    )
    log_file_max_bytes: int = Field(
        default=10485760,  # 10MB
        description="Maximum size of each log file in bytes",
    )
    log_file_backup_count: int = Field(
        default=7,
        description="Number of backup log files to keep",
    )

    @field_validator("image_preview_sizes")
    @classmethod
    def validate_image_preview_sizes(cls, v: list[int]) -> list[int]:
        """Reject non-positive preview sizes."""
        if any(size <= 0 for size in v):
            raise ValueError(f"Image preview sizes must be positive, got: {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate the log level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return level

    @field_validator("log_file_path")
    @classmethod
    def validate_log_file_path(cls, v: str) -> str:
        """Ensure log directory exists."""
        Path(v).parent.mkdir(parents=True, exist_ok=True)
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    runtime_env_path = os.getenv("EXTRACTOR_RUNTIME_ENV_PATH", "./data/runtime.env")
    return Settings(_env_file=(".env", runtime_env_path))
