"""Configuration management for the time tracker."""

import logging
from datetime import tzinfo
from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from timebox.tracking.query import DEFAULT_LIMIT, SortOrder
from timebox.tracking.strategies import JsonFormat

logger = logging.getLogger(__name__)

# User config directory
TIMEBOX_DIR = Path.home() / ".timebox"
TIMEBOX_ENV_FILE = TIMEBOX_DIR / ".env"

JSON_FILE_NAME = "time_boxes.json"
SQLITE_FILE_NAME = "time_boxes.db"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TIMEBOX_",
        # Later files override earlier ones
        env_file=(str(TIMEBOX_ENV_FILE), ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage settings
    storage_dir: Path = Field(
        default=Path(".timebox-tracker"),
        description="Directory holding the persisted time boxes",
    )
    backend: Literal["json", "sqlite"] = Field(
        default="json",
        description="Persistence backend: json or sqlite",
    )
    json_format: JsonFormat = Field(
        default=JsonFormat.PRETTY,
        description="Density of the JSON state file: pretty or compact",
    )
    repair_on_load: bool = Field(
        default=False,
        description="Sort unsorted notes and time boxes on load instead of failing",
    )

    # Listing settings
    list_limit: int = Field(
        default=DEFAULT_LIMIT,
        description="Default page size when listing finished time boxes",
    )
    list_order: SortOrder = Field(
        default=SortOrder.ASCENDING,
        description="Default order when listing finished time boxes",
    )
    timezone: str = Field(
        default="",
        description="IANA timezone for date filters and display (empty = system timezone)",
    )

    # Logging settings
    log_level: str = Field(
        default="WARNING",
        description="Log level when not running verbosely",
    )

    def get_storage_path(self) -> Path:
        """Get the path of the state file for the configured backend."""
        name = SQLITE_FILE_NAME if self.backend == "sqlite" else JSON_FILE_NAME
        return self.storage_dir / name

    def get_timezone(self) -> tzinfo | None:
        """Get the configured timezone, None for the system timezone."""
        if not self.timezone:
            return None
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown timezone '{self.timezone}', using the system timezone")
            return None


# Global settings instance
settings = Settings()
