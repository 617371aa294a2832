"""Background housekeeping jobs."""
import logging
from datetime import timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from eventspark.core.config import settings
from eventspark.deck.sessions import deck_sessions

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


async def expire_idle_decks():
    """Drop deck sessions nobody has touched recently."""
    deck_sessions.expire_idle(timedelta(minutes=settings.deck_idle_minutes))


def start_scheduler():
    """Start the background scheduler."""
    scheduler.add_job(
        expire_idle_decks,
        trigger=IntervalTrigger(minutes=5),
        id="deck_expiry",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(f"Scheduler started, expiring decks idle for {settings.deck_idle_minutes} minutes")


def shutdown_scheduler():
    """Graceful shutdown."""
    scheduler.shutdown(wait=False)
    logger.info("Scheduler shut down")
