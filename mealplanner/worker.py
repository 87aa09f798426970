"""
Polling worker for scheduled archival.

Wakes up every POLL_INTERVAL seconds and runs the archival sweep once per
UTC day, during the hour configured by ARCHIVAL_SCHEDULE_HOUR, while
ARCHIVAL_ENABLED is true.

Usage:
    mealplanner-worker
"""

import logging
import os
import time
from datetime import date, datetime, timezone
from typing import Optional

from .core.config import settings
from .core.logging_config import setup_logging
from .database import SessionLocal, init_db
from .exceptions import ArchivalInProgressError
from .services.archival_service import ArchivalService, RetentionPolicy, should_run

# Seconds between schedule checks. Must stay under an hour so the
# scheduled hour is never skipped.
POLL_INTERVAL = int(os.getenv("ARCHIVAL_POLL_INTERVAL", "300"))

logger = logging.getLogger("worker")


def run_scheduled_sweep(now: datetime, last_run: Optional[date], policy: RetentionPolicy) -> Optional[date]:
    """Run the sweep if it is due. Returns the date of the last completed run."""
    if not should_run(now, policy) or last_run == now.date():
        return last_run

    db = SessionLocal()
    try:
        result = ArchivalService(db, policy).run_sweep(trigger="scheduled", now=now)
        logger.info(
            "Scheduled archival complete: %d row(s) %s (%d failure(s))",
            result.total_archived, result.archived, len(result.partial_failures),
        )
        return now.date()
    except ArchivalInProgressError:
        logger.info("Archival sweep already running; skipping this tick")
        return last_run
    finally:
        db.close()


def main() -> None:
    """Check the archival schedule forever."""
    setup_logging(log_level=settings.log_level, log_format=settings.log_format)
    init_db()

    policy = RetentionPolicy.from_settings()
    logger.info(
        "Worker started (archival %s, hour=%02d UTC, poll=%ds)",
        "enabled" if policy.enabled else "disabled", policy.schedule_hour, POLL_INTERVAL,
    )

    last_run: Optional[date] = None
    while True:
        try:
            last_run = run_scheduled_sweep(datetime.now(timezone.utc), last_run, policy)
        except Exception:
            # Keep the schedule alive; the next tick retries.
            logger.exception("Scheduled archival failed")
        time.sleep(POLL_INTERVAL)


if __name__ == "__main__":
    main()
