"""
Background alert scanner.

Runs the full alert detector (stock + expiry) periodically so alerts appear
without anyone pressing "check stock". Manual checks stay available through
the /alerts/check-* endpoints; the detector's de-duplication keeps both paths
from producing repeats.
"""
import logging
import asyncio
from typing import Optional

from app.core.config import settings
from app.db.session import session_scope
from app.services import alert_detector

logger = logging.getLogger(__name__)

INITIAL_DELAY_SECONDS = 10

_scheduler_running = False
_scheduler_task: Optional[asyncio.Task] = None


def scan_alerts() -> int:
    """One detector pass in its own session. Called from a worker thread."""
    try:
        with session_scope() as db:
            created = alert_detector.run_all_checks(db)
    except Exception as e:
        logger.error(f"[AlertScheduler] Scan failed: {e}", exc_info=True)
        return 0

    if created:
        logger.info(f"[AlertScheduler] Created {created} new alerts")
    else:
        logger.debug("[AlertScheduler] No new alerts")
    return created


async def _alert_scheduler_loop(interval: int, initial_delay: float):
    global _scheduler_running
    _scheduler_running = True

    logger.info(f"[AlertScheduler] Scheduler started. Interval: {interval}s")

    # Let the server finish starting
    await asyncio.sleep(initial_delay)

    while _scheduler_running:
        # Detector uses a sync session; keep it off the event loop
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, scan_alerts)
        await asyncio.sleep(interval)


def start_alert_scheduler(
    interval: Optional[int] = None,
    initial_delay: float = INITIAL_DELAY_SECONDS,
) -> asyncio.Task:
    """Start the background scanner. Called from the FastAPI lifespan (needs a running loop)."""
    global _scheduler_task
    _scheduler_task = asyncio.create_task(
        _alert_scheduler_loop(interval or settings.ALERT_SCAN_INTERVAL_SECONDS, initial_delay)
    )
    logger.info("[AlertScheduler] Alert scheduler initialized")
    return _scheduler_task


def stop_alert_scheduler():
    """Stop the scanner. Called from FastAPI shutdown."""
    global _scheduler_running, _scheduler_task
    _scheduler_running = False
    if _scheduler_task is not None:
        _scheduler_task.cancel()
        _scheduler_task = None
    logger.info("[AlertScheduler] Scheduler stopped")
