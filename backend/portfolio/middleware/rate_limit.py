"""
Portfolio Backend — Rate Limiting Middleware
==============================================

What:  Fixed-window request budget per client IP.
How:   Each client gets a counter and the start of its current window.
       When the window has elapsed the counter restarts; once the counter
       reaches `rate_limit_requests` within the window the request is
       answered with 429 and a Retry-After header counting down to the
       window's end.

Excluded paths: /health and the API docs.

State is per process. Several workers each enforce their own budget.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from portfolio.config import settings
from portfolio.exceptions import RateLimitExceededError
from portfolio.middleware.request_id import request_id_var
from portfolio.schemas.contact_info import ErrorResponse

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    started_at: float
    count: int = 0


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory fixed-window rate limiter.

    Configuration (from settings, overridable per instance for tests):
        rate_limit_requests: requests allowed per window (default 100)
        rate_limit_window:   window length in seconds (default 60)
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(
        self,
        app,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(app)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._clock = clock
        self._windows: Dict[str, _Window] = {}

    def _check(self, client: str) -> None:
        """Count one request for `client`, or raise if its budget is spent."""
        now = self._clock()
        window = self._windows.get(client)
        if window is None or now - window.started_at >= self.window_seconds:
            self._evict_expired(now)
            window = self._windows[client] = _Window(started_at=now)

        if window.count >= self.max_requests:
            retry_after = max(1, math.ceil(window.started_at + self.window_seconds - now))
            raise RateLimitExceededError(retry_after=retry_after)
        window.count += 1

    def _evict_expired(self, now: float) -> None:
        expired = [
            client for client, window in self._windows.items()
            if now - window.started_at >= self.window_seconds
        ]
        for client in expired:
            del self._windows[client]

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        try:
            self._check(client_ip)
        except RateLimitExceededError as exc:
            # Raised outside the routing layer, so the app's exception
            # handlers never see it; answer here in the same shape
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                self.max_requests,
                self.window_seconds,
            )
            body = ErrorResponse(
                error=exc.error_code,
                message=exc.message,
                details=exc.context,
                request_id=request_id_var.get("") or None,
            )
            return JSONResponse(
                status_code=exc.status_code,
                content=body.model_dump(),
                headers={"Retry-After": str(exc.retry_after)},
            )

        return await call_next(request)
