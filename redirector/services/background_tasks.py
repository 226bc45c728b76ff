"""
Background Task Helpers

Detached store writes scheduled by the redirect endpoint. They run after
the response has been sent, so their outcome is never visible to the
client.

Guarantees (and the lack of them):
- Unordered relative to the response and to tasks of other redirects
- Bounded by a timeout so a slow store cannot pile up pending work
- Any failure is logged, never retried, and never touches the CounterCache;
  a failed durable increment leaves the store one behind for good
- Nothing is raised, so the log insert queued behind a failed increment
  still runs
"""

import asyncio
import logging

from redirector.db.models import RequestLog
from redirector.db.store import DurableStore

logger = logging.getLogger(__name__)


async def increment_counter_background(store: DurableStore, timeout: float) -> None:
    """
    Background task to increment the durable counter.

    Args:
        store: The application's durable store
        timeout: Seconds before the write is abandoned
    """
    try:
        await asyncio.wait_for(store.increment_counter(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.error(f"Durable counter increment timed out after {timeout}s")
    except Exception as e:
        logger.error(f"Failed to increment durable counter: {str(e)}", exc_info=True)


async def log_request_background(store: DurableStore, entry: RequestLog, timeout: float) -> None:
    """
    Background task to append a request log entry.

    Args:
        store: The application's durable store
        entry: Log entry captured while handling the request
        timeout: Seconds before the write is abandoned
    """
    try:
        await asyncio.wait_for(store.append_log_entry(entry), timeout=timeout)
    except asyncio.TimeoutError:
        logger.error(
            f"Request log insert for {entry.request_method} {entry.request_uri} "
            f"timed out after {timeout}s"
        )
    except Exception as e:
        logger.error(
            f"Failed to log request {entry.request_method} {entry.request_uri}: {str(e)}",
            exc_info=True
        )
