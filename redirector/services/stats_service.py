"""
Statistics Service

This service answers the info endpoint from the durable store's point of
view.

Design Decisions:
- Three independent reads: health probe, rolling-window count, all-time count
- A failed read degrades only its own field (db_status "error", counts -1),
  whatever the exception type, so the report never turns into a 5xx
- Counts come from the request log, not the CounterCache, so operators can
  compare them with the counter values being handed out and spot drift
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from redirector.db.models import utcnow
from redirector.db.store import DurableStore

logger = logging.getLogger(__name__)

DB_STATUS_OK = "ok"
DB_STATUS_ERROR = "error"
COUNT_UNAVAILABLE = -1


class StatsService:
    """
    Service for the aggregate statistics report.
    """

    def __init__(self, store: DurableStore, window: timedelta = timedelta(hours=24)):
        """
        Initialize the stats service.

        Args:
            store: The application's durable store
            window: Width of the rolling window counted as last_24_hours
        """
        self.store = store
        self.window = window

    async def get_db_status(self) -> str:
        try:
            await self.store.health_check()
        except Exception as e:
            logger.error(f"Database health check failed: {str(e)}", exc_info=True)
            return DB_STATUS_ERROR
        return DB_STATUS_OK

    async def get_window_count(self, now: datetime) -> int:
        try:
            return await self.store.count_log_entries(now - self.window, now)
        except Exception as e:
            logger.error(
                f"Failed to count redirects in the last {self.window}: {str(e)}",
                exc_info=True
            )
            return COUNT_UNAVAILABLE

    async def get_total_count(self) -> int:
        try:
            return await self.store.count_all_log_entries()
        except Exception as e:
            logger.error(f"Failed to count all redirects: {str(e)}", exc_info=True)
            return COUNT_UNAVAILABLE

    async def get_stats(self, service_started_at: str, now: Optional[datetime] = None) -> dict:
        """
        Assemble the info report.

        Args:
            service_started_at: Service start marker to report
            now: Reference time for the rolling window (defaults to current UTC)

        Returns:
            Dictionary with:
            - db_status: "ok" or "error"
            - since_start: all-time redirect count, -1 if unavailable
            - last_24_hours: count within the window, -1 if unavailable
            - service_started_at: the start marker
        """
        now = now or utcnow()

        return {
            "db_status": await self.get_db_status(),
            "since_start": await self.get_total_count(),
            "last_24_hours": await self.get_window_count(now),
            "service_started_at": service_started_at,
        }
