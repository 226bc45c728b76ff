"""
Rate Limiting Configuration

The info endpoint issues three store queries per call, so it is the one
endpoint worth protecting. The redirect endpoint is never limited: a
redirect must succeed whenever the process is up.

Design Decisions:
- Uses slowapi for rate limiting (lightweight, FastAPI-compatible)
- IP-based limiting
- Each application owns its Limiter and its parsed info limit on
  app.state, so two apps in one process never share counters or settings
- Enforced as a route dependency that reads the limiter from the app
  serving the request
"""

import logging

from fastapi import FastAPI, Request
from limits import parse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from slowapi.wrappers import Limit

from redirector.core.setting import Settings

logger = logging.getLogger(__name__)

# Scope under which info requests are counted in the limiter storage
INFO_SCOPE = "info"


def build_info_limit(limit_value: str) -> Limit:
    """
    Parse a "count/period" string (e.g. "60/minute") into a slowapi Limit.

    Raises:
        ValueError: If the string is not a valid rate limit
    """
    return Limit(
        parse(limit_value),
        get_remote_address,
        INFO_SCOPE,
        False,
        None,
        None,
        None,
        1,
        False,
    )


def configure_rate_limiting(app: FastAPI, settings: Settings) -> Limiter:
    """Create the app's own limiter and info limit and publish them on app.state."""
    limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
    app.state.limiter = limiter
    app.state.info_rate_limit = build_info_limit(settings.INFO_RATE_LIMIT)
    return limiter


def limit_info_requests(request: Request) -> None:
    """
    Count this request against the serving app's info limit.

    Raises:
        RateLimitExceeded: When the client has used up its allowance
    """
    limiter: Limiter = request.app.state.limiter
    # read by slowapi's 429 handler
    request.state.view_rate_limit = None
    if not limiter.enabled:
        return

    limit: Limit = request.app.state.info_rate_limit
    key = limit.key_func(request)
    request.state.view_rate_limit = (limit.limit, [key, INFO_SCOPE])

    if not limiter.limiter.hit(limit.limit, key, INFO_SCOPE):
        logger.warning(f"Rate limit {limit.limit} exceeded for {key} on /info")
        raise RateLimitExceeded(limit)
