"""Job scheduler using APScheduler."""

import asyncio
import logging
from typing import NoReturn

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from agora.config import Settings
from agora.worker import run_settlement

logger = logging.getLogger(__name__)


def settle_job(settings: Settings) -> None:
    """Run one settlement batch. Errors are logged so the next tick still fires."""
    try:
        asyncio.run(run_settlement(settings))
    except Exception as e:
        logger.error(f"Settlement run failed: {e}", exc_info=True)


def start_scheduler(settings: Settings) -> NoReturn:
    """Start the APScheduler with the settlement job."""
    # Fail before scheduling anything if the store is not configured
    settings.require_store_credentials()

    scheduler = BlockingScheduler(timezone="UTC")

    interval = settings.scheduler.settle_interval_minutes
    scheduler.add_job(
        settle_job,
        IntervalTrigger(minutes=interval),
        args=[settings],
        id="settle-games",
        name="Settle community games",
        max_instances=1,
        coalesce=True,
    )
    logger.info(f"Registered job: Settle community games (every {interval} min)")

    try:
        logger.info("Scheduler starting...")
        logger.info("Press Ctrl+C to stop")

        scheduler.start()

    except (KeyboardInterrupt, SystemExit):
        logger.info("Received interrupt signal")
        scheduler.shutdown()
        logger.info("Scheduler stopped cleanly")
