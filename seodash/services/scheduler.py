"""
seodash/services/scheduler.py
Polls scheduled_scans with APScheduler (AsyncIOScheduler) and queues a scan
request for every due schedule. The analysis backend consumes scan_requests.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from seodash.utils import store

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler(timezone="UTC")
POLL_JOB_ID = "scheduled_scans_poll"


def next_run(frequency_days: int, after: Optional[datetime] = None) -> str:
    after = after or datetime.now(timezone.utc)
    return (after + timedelta(days=frequency_days)).isoformat()


async def run_due_scans(now: Optional[datetime] = None) -> int:
    """Queue every active schedule whose next_scan_at has passed. Returns how many were queued."""
    now = now or datetime.now(timezone.utc)
    due = await store.find(
        "scheduled_scans",
        {"is_active": True, "next_scan_at": {"$lte": now.isoformat()}},
        sort="next_scan_at",
        descending=False,
    )

    queued = 0
    for schedule in due:
        try:
            await store.insert("scan_requests", {
                "user_id": schedule["user_id"],
                "url": schedule["website_url"],
                "source": "scheduled",
                "schedule_id": schedule["id"],
                "email_alerts": schedule.get("email_alerts", True),
                "auto_optimize": schedule.get("auto_optimize", False),
                "status": "pending",
            })
            await store.update("scheduled_scans", {"id": schedule["id"]}, {
                "last_scan_at": now.isoformat(),
                "next_scan_at": next_run(schedule["frequency_days"], now),
            })
            queued += 1
        except Exception as e:
            logger.error("Could not queue scheduled scan %s for %s: %s",
                         schedule.get("id"), schedule.get("website_url"), e)

    if queued:
        logger.info("Queued %d scheduled scan(s)", queued)
    return queued


def start_scheduler(poll_minutes: int):
    if scheduler.get_job(POLL_JOB_ID) is None:
        scheduler.add_job(
            run_due_scans,
            trigger=IntervalTrigger(minutes=poll_minutes),
            id=POLL_JOB_ID,
            replace_existing=True,
            misfire_grace_time=300,
        )
    if not scheduler.running:
        scheduler.start()
        logger.info("APScheduler started (poll every %d min)", poll_minutes)


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("APScheduler stopped")
