"""
Scheduled cache warming

Runs refresh_feeds() on the configured cron schedule, in the configured
timezone, so the first request of the day rarely pays for a fetch.
"""
import logging
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from mytv.config import settings
from mytv.services.feed_service import refresh_feeds


logger = logging.getLogger(__name__)

REFRESH_JOB_ID = "feed_refresh"
FEEDS = ("iptv", "epg")


def build_trigger(cron: str | None = None) -> CronTrigger:
    """Cron trigger for the refresh job, evaluated in the configured timezone."""
    return CronTrigger.from_crontab(cron or settings.refresh_cron, timezone=settings.tzinfo)


def log_refresh_result(result: dict) -> None:
    """Log one line per feed from a refresh_feeds() result."""
    if result.get("status") == "skipped":
        logger.info("Scheduled refresh skipped: %s", result.get("message"))
        return

    for feed in FEEDS:
        feed_result = result.get(feed, {})
        if feed_result.get("status") == "failed":
            logger.warning("Scheduled %s refresh failed: %s", feed, feed_result.get("error"))
        else:
            details = ", ".join(f"{k}={v}" for k, v in feed_result.items() if k != "status")
            logger.info("Scheduled %s refresh ok (%s)", feed, details)


class FeedScheduler:
    """APScheduler wrapper owning the single refresh job"""

    def __init__(self):
        self.scheduler: AsyncIOScheduler | None = None

    @property
    def running(self) -> bool:
        return bool(self.scheduler and self.scheduler.running)

    async def _refresh_job(self) -> None:
        try:
            log_refresh_result(await refresh_feeds())
        except Exception as e:
            # Keeps the job scheduled; the next run tries again
            logger.error(f"Scheduled refresh crashed: {e}", exc_info=True)

    def start(self) -> None:
        if self.running:
            logger.warning("Scheduler already running")
            return

        scheduler = AsyncIOScheduler(timezone=settings.tzinfo)
        scheduler.add_job(
            self._refresh_job,
            trigger=build_trigger(),
            id=REFRESH_JOB_ID,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=settings.refresh_misfire_grace_sec,
        )
        scheduler.start()
        self.scheduler = scheduler

        next_time = self.get_next_run_time()
        logger.info(
            "Scheduler started (%s, %s). Next refresh: %s",
            settings.refresh_cron,
            settings.timezone,
            next_time.isoformat() if next_time else "unknown",
        )

    def shutdown(self) -> None:
        if self.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")
        self.scheduler = None

    def get_next_run_time(self) -> datetime | None:
        if self.scheduler is None:
            return None
        job = self.scheduler.get_job(REFRESH_JOB_ID)
        return job.next_run_time if job else None


feed_scheduler = FeedScheduler()
