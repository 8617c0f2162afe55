"""
Structured logging helpers for consistent log formatting.
"""
import logging
from datetime import datetime, timezone


def sanitize_url_for_logging(url: str) -> str:
    """Remove credentials from URL for safe logging."""
    if "://" not in url:
        return url
    try:
        protocol, rest = url.split("://", 1)
        if "@" in rest.split("/", 1)[0]:
            rest = rest.split("@", 1)[1]
            return f"{protocol}://***:***@{rest}"
        return url
    except (ValueError, IndexError):
        return url


def log_refresh_start(logger: logging.Logger) -> None:
    """Log feed refresh operation start."""
    logger.info(f"Feed refresh started at {datetime.now(timezone.utc).isoformat()}")


def log_refresh_end(logger: logging.Logger) -> None:
    """Log feed refresh operation end."""
    logger.info(f"Feed refresh completed at {datetime.now(timezone.utc).isoformat()}")


def log_epg_summary(logger: logging.Logger, channels_count: int, programmes_count: int) -> None:
    """
    Log programme guide summary.

    Args:
        logger: Logger instance
        channels_count: Number of channels kept
        programmes_count: Number of programmes across those channels
    """
    logger.info(f"EPG summary - Channels: {channels_count}, Programmes: {programmes_count}")


def log_iptv_summary(logger: logging.Logger, groups_count: int, channels_count: int) -> None:
    """Log playlist summary."""
    logger.info(f"IPTV summary - Groups: {groups_count}, Channels: {channels_count}")
