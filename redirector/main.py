"""
FastAPI Application Entry Point

This module builds the FastAPI application and configures:
- API routes
- Middleware (request logging, fixed CORS headers)
- Rate limiting for the info endpoint
- Startup/shutdown of the store and counter cache

Run with ``redirector`` (console script) or
``uvicorn --factory redirector.main:create_app``.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from redirector.api import endpoints
from redirector.core.rate_limit import configure_rate_limiting
from redirector.core.service_state import shutdown, startup
from redirector.core.setting import Settings, get_settings
from redirector.middleware.cors import add_cors_middleware
from redirector.middleware.logging import add_logging_middleware


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Explicit settings; loaded from the environment when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await startup(app, settings)
        try:
            yield
        finally:
            await shutdown(app)

    app = FastAPI(
        title="Redirector",
        description="Counting redirect service",
        version="1.0.0",
        lifespan=lifespan,
    )

    configure_rate_limiting(app, settings)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    add_cors_middleware(app, settings.CORS_ALLOW_ORIGINS)
    add_logging_middleware(app)

    app.include_router(endpoints.router, tags=["Redirect"])

    return app


def run() -> None:
    """Console entry point: configure logging and serve on the configured port."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    run()
