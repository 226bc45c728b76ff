"""
FastAPI Endpoints for the Redirect Service

This module defines the HTTP endpoints with minimal logic.
Endpoints only handle:
- Dependency wiring (services from app.state)
- Scheduling detached store writes
- Rate limiting of the info endpoint

All counting and aggregation logic is in services.

Endpoints:
- "/info": JSON report of store health and redirect counts
- "/" and every other path: 307 redirect carrying the visit counter.
  The catch-all is registered after "/info" so it never shadows it.

Both answer every method except OPTIONS, which the CORS middleware
answers before routing.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import RedirectResponse

from redirector.api.schemas import InfoResponse
from redirector.core.rate_limit import limit_info_requests
from redirector.core.service_state import (
    get_app_settings,
    get_redirect_service,
    get_stats_service,
    get_store,
)
from redirector.core.setting import Settings
from redirector.db.store import DurableStore
from redirector.services.background_tasks import (
    increment_counter_background,
    log_request_background,
)
from redirector.services.redirect_service import (
    REDIRECT_STATUS,
    RedirectService,
    build_request_log,
)
from redirector.services.stats_service import StatsService

router = APIRouter()

SERVED_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]


@router.api_route(
    "/info",
    methods=SERVED_METHODS,
    response_model=InfoResponse,
    dependencies=[Depends(limit_info_requests)],
    summary="Service info",
    description="Reports store health and redirect counts as seen by the database"
)
async def get_info(
    request: Request,
    stats_service: StatsService = Depends(get_stats_service),
) -> InfoResponse:
    """
    Report store health, all-time count and rolling-window count.

    Always answers 200 (or 429 when rate limited): each failed store read
    is replaced by a sentinel value in its own field.
    """
    stats = await stats_service.get_stats(
        service_started_at=request.app.state.service_started_at
    )
    return InfoResponse(**stats)


# Decorators apply bottom-up: "/" is registered before the catch-all.
@router.api_route(
    "/{path:path}",
    methods=SERVED_METHODS,
    status_code=REDIRECT_STATUS,
    include_in_schema=False
)
@router.api_route(
    "/",
    methods=SERVED_METHODS,
    status_code=REDIRECT_STATUS,
    summary="Count and redirect",
    description="Increments the visit counter and redirects to the configured target with the count attached"
)
async def count_and_redirect(
    request: Request,
    background_tasks: BackgroundTasks,
    redirect_service: RedirectService = Depends(get_redirect_service),
    store: DurableStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    """
    Redirect to the target URL with the next counter value.

    The counter is incremented in memory before the response is built.
    The durable increment and the request log insert run after the
    response is sent; their failures are logged and never reach the client.

    Returns:
        RedirectResponse (HTTP 307)
    """
    _, redirect_url = redirect_service.next_redirect()
    entry = build_request_log(request, status_code=REDIRECT_STATUS)

    background_tasks.add_task(
        increment_counter_background,
        store,
        timeout=settings.BACKGROUND_TASK_TIMEOUT
    )

    background_tasks.add_task(
        log_request_background,
        store,
        entry,
        timeout=settings.BACKGROUND_TASK_TIMEOUT
    )

    return RedirectResponse(
        url=redirect_url,
        status_code=REDIRECT_STATUS
    )
