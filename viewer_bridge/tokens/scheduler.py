"""Scheduled token expiry.

Each minted token gets a one-off ``date`` job that discards it at expiry.
A low-frequency interval job sweeps anything those jobs missed (delayed
jobs, clock drift). Both are safe to run against already-removed records.

Usage in application startup:
    scheduler = create_scheduler()
    store = ViewerTokenStore(scheduler=scheduler)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        start_scheduler(scheduler, store, sweep_interval_seconds=300)
        yield
        shutdown_scheduler(scheduler)
"""

import logging
from datetime import timezone
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from viewer_bridge.tokens.store import ViewerTokenStore

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "viewer_token_sweep"


def create_scheduler() -> AsyncIOScheduler:
    """Create the (not yet started) scheduler used for token expiry."""
    return AsyncIOScheduler(timezone=timezone.utc)


def start_scheduler(
    scheduler: AsyncIOScheduler,
    store: ViewerTokenStore,
    sweep_interval_seconds: int,
) -> None:
    """
    Start the scheduler and register the periodic sweep.

    Must be called from within a running event loop.
    """
    if scheduler.running:
        logger.warning("Token scheduler already running")
        return

    scheduler.add_job(
        store.sweep,
        trigger=IntervalTrigger(seconds=sweep_interval_seconds),
        id=SWEEP_JOB_ID,
        name="Sweep expired viewer tokens",
        replace_existing=True,
        coalesce=True,
        max_instances=1,
    )
    scheduler.start()

    logger.info(
        "Token scheduler started (sweep every %ss)", sweep_interval_seconds
    )


def shutdown_scheduler(scheduler: AsyncIOScheduler) -> None:
    """
    Stop the scheduler without waiting for pending expiry jobs.

    AsyncIOScheduler performs the stop as a callback on its event loop, so
    ``scheduler.running`` only turns False once the loop gets control back.
    """
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Token scheduler stopped")


def get_scheduler_status(scheduler: AsyncIOScheduler) -> dict[str, Any]:
    """Get scheduler status for the health endpoint."""
    if not scheduler.running:
        return {"running": False, "jobs": 0}

    return {"running": True, "jobs": len(scheduler.get_jobs())}
