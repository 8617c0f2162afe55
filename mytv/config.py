from typing import Annotated, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging

from croniter import croniter
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


logger = logging.getLogger(__name__)

ASSET_URL_PREFIX = "asset://"


class FeedSettings(BaseSettings):
    """Application settings loaded from environment variables.

    Validates configuration at startup to catch misconfiguration early.
    """

    epg_xml_url: str = ""  # Empty disables guide fetching
    epg_filtered_channels: Annotated[list[str] | None, NoDecode] = None
    epg_refresh_time_threshold: int = 2  # Hour of day before which the guide is not refreshed
    epg_parse_timeout_sec: int = 600  # XML parsing timeout, 0 disables timeout

    iptv_source_url: str = f"{ASSET_URL_PREFIX}iptv.txt"
    iptv_source_cache_time_sec: int = 86400
    iptv_source_simplify: bool = False

    timezone: str = "UTC"
    http_timeout_sec: float = 30.0

    cache_backend: Literal["file", "sqlite"] = "file"
    cache_dir: str = "./data/cache"
    database_path: str = "./data/mytv.db"

    refresh_cron: str = "0 * * * *"  # Hourly
    refresh_misfire_grace_sec: int = 600
    scheduler_enabled: bool = True

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("epg_filtered_channels", mode="before")
    @classmethod
    def parse_filtered_channels(cls, value):
        """Parse comma-separated channel names or list."""
        if value is None:
            return []
        if isinstance(value, str):
            if not value.strip():
                return []
            return [name.strip() for name in value.split(",") if name.strip()]
        if isinstance(value, list):
            return value
        return []

    @field_validator("epg_xml_url")
    @classmethod
    def validate_epg_xml_url(cls, value: str) -> str:
        """Validate the guide URL is empty or HTTP/HTTPS."""
        value = value.strip()
        if value and not value.lower().startswith(("http://", "https://")):
            raise ValueError(f"EPG XML URL must be HTTP/HTTPS: {value}")
        return value

    @field_validator("iptv_source_url")
    @classmethod
    def validate_iptv_source_url(cls, value: str) -> str:
        """Validate the playlist URL is HTTP/HTTPS or a bundled asset."""
        value = value.strip()
        if not value.lower().startswith(("http://", "https://", ASSET_URL_PREFIX)):
            raise ValueError(
                f"IPTV source URL must be HTTP/HTTPS or start with {ASSET_URL_PREFIX}: {value}"
            )
        return value

    @field_validator("epg_refresh_time_threshold")
    @classmethod
    def validate_refresh_time_threshold(cls, value: int) -> int:
        """Validate the refresh threshold is an hour of day."""
        if not 0 <= value <= 23:
            raise ValueError("epg_refresh_time_threshold must be between 0 and 23")
        return value

    @field_validator("epg_parse_timeout_sec", "iptv_source_cache_time_sec", "refresh_misfire_grace_sec")
    @classmethod
    def validate_non_negative(cls, value: int, info) -> int:
        """Ensure durations are non-negative."""
        if value < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return value

    @field_validator("http_timeout_sec")
    @classmethod
    def validate_http_timeout(cls, value: float) -> float:
        """Ensure the HTTP timeout is positive."""
        if value <= 0:
            raise ValueError("http_timeout_sec must be > 0")
        return value

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Validate timezone string"""
        try:
            ZoneInfo(value)
            return value
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(
                f"Invalid timezone: {value}. Must be a valid IANA timezone (e.g., 'Asia/Shanghai') or 'UTC'"
            ) from exc

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate logging level name."""
        normalized = value.upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if normalized not in allowed:
            raise ValueError(f"log_level must be one of {sorted(allowed)}")
        return normalized

    @field_validator("refresh_cron")
    @classmethod
    def validate_cron_expression(cls, value: str) -> str:
        """Validate cron expression is valid."""
        try:
            croniter(value)
            return value
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Invalid cron expression '{value}': {exc}") from exc

    @model_validator(mode="after")
    def validate_feed_configuration(self):
        """Validate cross-field configuration."""
        if not self.epg_xml_url:
            logger.warning("No EPG XML URL configured - programme guide will be empty")
        return self

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def __init__(self, **data):
        """Initialize settings and log configuration."""
        super().__init__(**data)

        logger.info("Configuration loaded:")
        logger.info("  EPG XML URL: %s", "configured" if self.epg_xml_url else "disabled")
        logger.info("  EPG Filtered Channels: %s", len(self.epg_filtered_channels or []))
        logger.info("  EPG Refresh Threshold: %s:00", self.epg_refresh_time_threshold)
        logger.info(
            "  EPG Parse Timeout: %s",
            f"{self.epg_parse_timeout_sec}s" if self.epg_parse_timeout_sec else "disabled",
        )
        logger.info("  IPTV Cache Time: %ss", self.iptv_source_cache_time_sec)
        logger.info("  IPTV Simplify: %s", self.iptv_source_simplify)
        logger.info("  Timezone: %s", self.timezone)
        logger.info("  Cache Backend: %s", self.cache_backend)
        logger.info("  Refresh Schedule: %s", self.refresh_cron)


settings = FeedSettings()


def setup_logging() -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
