"""
Service State

Creates, seeds and tears down the objects shared by all requests:
- DurableStore: engine + migrations
- CounterCache: seeded from the durable counter
- RedirectService / StatsService: built around the two above

Everything lives on app.state and reaches endpoints through FastAPI
dependencies. Startup either completes fully or raises: serving traffic
with an unknown counter is worse than not starting.
"""

import logging
from datetime import timedelta

from fastapi import FastAPI, Request

from redirector.core.setting import Settings
from redirector.db.models import utcnow
from redirector.db.store import DurableStore
from redirector.services.counter_cache import CounterCache
from redirector.services.redirect_service import RedirectService
from redirector.services.stats_service import StatsService

logger = logging.getLogger(__name__)

STARTED_AT_FORMAT = "%Y-%m-%d %H:%M"


async def startup(app: FastAPI, settings: Settings) -> None:
    """
    Initialize the store, seed the counter cache and publish both on app.state.

    Raises:
        StoreUnavailable: Store unreachable or counter unreadable
        MigrationFailed: Schema could not be brought up to date
        RecordMissing: Seed counter row absent after migrations
    """
    store = DurableStore.from_settings(settings)
    try:
        applied = await store.initialize()
        if applied:
            logger.info(f"Schema migrated: applied versions {applied}")

        durable_count = await store.read_counter()
    except Exception as e:
        logger.critical(f"Startup aborted, counter state unknown: {str(e)}", exc_info=True)
        await store.close()
        raise

    counter_cache = CounterCache()
    counter_cache.initialize_from(durable_count)
    logger.info(f"Redirect count loaded from database: {counter_cache.get()}")

    app.state.settings = settings
    app.state.store = store
    app.state.counter_cache = counter_cache
    app.state.redirect_service = RedirectService(
        counter_cache,
        target_url=settings.REDIRECT_TARGET_URL,
        count_param=settings.REDIRECT_COUNT_PARAM,
    )
    app.state.stats_service = StatsService(
        store,
        window=timedelta(hours=settings.STATS_WINDOW_HOURS),
    )
    app.state.service_started_at = (
        settings.SERVICE_STARTED_AT or utcnow().strftime(STARTED_AT_FORMAT)
    )


async def shutdown(app: FastAPI) -> None:
    """Dispose the store engine."""
    store = getattr(app.state, "store", None)
    if store is not None:
        logger.info("Closing durable store")
        await store.close()
        app.state.store = None


def get_store(request: Request) -> DurableStore:
    return request.app.state.store


def get_redirect_service(request: Request) -> RedirectService:
    return request.app.state.redirect_service


def get_stats_service(request: Request) -> StatsService:
    return request.app.state.stats_service


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
