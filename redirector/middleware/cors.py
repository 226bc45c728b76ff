"""
CORS Middleware

Sets one fixed set of CORS headers on every response and answers every
OPTIONS request with 204 and no body.

Starlette's CORSMiddleware echoes the request origin and only answers
preflights that carry Origin and Access-Control-Request-Method; this
service advertises the same headers regardless of the request.
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

ALLOW_METHODS = "GET, OPTIONS"
ALLOW_HEADERS = "Accept, Authorization, Content-Type, X-CSRF-Token"


class FixedCORSMiddleware(BaseHTTPMiddleware):
    """Middleware adding fixed CORS headers and short-circuiting preflights."""

    def __init__(self, app, allow_origins: list[str]):
        super().__init__(app)
        self.cors_headers = {
            "Access-Control-Allow-Origin": ",".join(allow_origins),
            "Access-Control-Allow-Methods": ALLOW_METHODS,
            "Access-Control-Allow-Headers": ALLOW_HEADERS,
            "Access-Control-Allow-Credentials": "false",
        }

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS":
            response = Response(status_code=204)
        else:
            response = await call_next(request)

        response.headers.update(self.cors_headers)
        return response


def add_cors_middleware(app, allow_origins: list[str]):
    """
    Add fixed CORS middleware to FastAPI app.

    Args:
        app: FastAPI application instance
        allow_origins: Origins advertised in Access-Control-Allow-Origin
    """
    app.add_middleware(FixedCORSMiddleware, allow_origins=allow_origins)
