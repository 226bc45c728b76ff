"""
Redirect Service

This service turns an inbound request into a redirect target and a request
log entry.

Design Decisions:
- The counter value is taken from the CounterCache before the response
  exists, so every response carries a value issued for it alone
- The target URL keeps whatever query it was configured with; the counter
  is added as one more parameter
- Building the log entry is separate from writing it, so the write can
  run after the response is sent
"""

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from fastapi import Request, status

from redirector.db.models import RequestLog, utcnow
from redirector.services.counter_cache import CounterCache

REDIRECT_STATUS = status.HTTP_307_TEMPORARY_REDIRECT


def build_redirect_url(target_url: str, count_param: str, count: int) -> str:
    """
    Add the counter to the target URL's query string.

    Args:
        target_url: Configured redirect target
        count_param: Query parameter name for the counter
        count: Value to embed

    Returns:
        Target URL with count_param=count appended
    """
    parts = urlsplit(target_url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != count_param]
    query.append((count_param, str(count)))
    return urlunsplit(parts._replace(query=urlencode(query, safe="@")))


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request.

    Handles proxies and load balancers by checking X-Forwarded-For header.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first one
        return forwarded_for.split(",")[0].strip()

    return request.client.host if request.client else "unknown"


def build_request_log(request: Request, status_code: int = REDIRECT_STATUS) -> RequestLog:
    """
    Capture the request metadata stored for one redirect.

    Header values are copied now: the request object must not be touched
    once the response has been sent.
    """
    request_uri = request.url.path
    if request.url.query:
        request_uri = f"{request_uri}?{request.url.query}"

    return RequestLog(
        timestamp=utcnow(),
        remote_addr=get_client_ip(request),
        request_method=request.method,
        request_uri=request_uri,
        protocol=f"HTTP/{request.scope.get('http_version', '1.1')}",
        status_code=status_code,
        user_agent=request.headers.get("User-Agent", ""),
        referer=request.headers.get("Referer", ""),
    )


class RedirectService:
    """
    Service issuing counted redirect targets.

    Holds the counter cache by reference; one instance per application.
    """

    def __init__(self, counter_cache: CounterCache, target_url: str, count_param: str = "cnt"):
        """
        Args:
            counter_cache: The application's seeded CounterCache
            target_url: External URL every redirect points to
            count_param: Query parameter name for the counter
        """
        self.counter_cache = counter_cache
        self.target_url = target_url
        self.count_param = count_param

    def next_redirect(self) -> tuple[int, str]:
        """
        Take the next counter value and build its redirect URL.

        Returns:
            (count, url) for this request
        """
        count = self.counter_cache.increment_and_get()
        return count, build_redirect_url(self.target_url, self.count_param, count)
