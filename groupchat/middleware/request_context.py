"""Request context middleware.

One pass per request:
    * adopt or mint an ``X-Request-ID`` and expose it to the logging layer
    * throttle each client with a token bucket (probes and docs are exempt)
    * add ``X-Response-Time`` and write one access-log line

The bucket arithmetic lives in ``check_rate_limit`` and ``evict_stale`` so it
can be exercised without HTTP.
"""

import logging
import threading
import time
import uuid
from typing import Dict, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ..core.config import settings
from ..core.logging_config import request_id_var
from ..exceptions import ErrorCode

logger = logging.getLogger(__name__)

# client -> (tokens left, time of last update)
Buckets = Dict[str, Tuple[float, float]]

_rate_buckets: Buckets = {}
_rate_lock = threading.Lock()

_STALE_AFTER = 120.0
_SWEEP_ABOVE = 1000

_EXEMPT_PATHS = frozenset({"/", "/health", "/docs", "/redoc", "/openapi.json"})


def check_rate_limit(
    bucket: Buckets,
    key: str,
    max_per_minute: int,
    now: Optional[float] = None,
) -> Tuple[bool, float]:
    """Spend one token from *key*'s bucket.

    The bucket holds at most *max_per_minute* tokens and refills continuously
    at ``max_per_minute / 60`` tokens per second. A value of 0 or less turns
    limiting off.

    Returns:
        ``(allowed, retry_after)``; *retry_after* is the wait in seconds until
        a token is available, 0.0 when allowed.
    """
    if max_per_minute <= 0:
        return True, 0.0
    if now is None:
        now = time.monotonic()

    capacity = float(max_per_minute)
    per_second = capacity / 60.0

    available, updated = bucket.get(key, (capacity, now))
    available = min(capacity, available + (now - updated) * per_second)

    allowed = available >= 1.0
    if allowed:
        available -= 1.0
    bucket[key] = (available, now)

    if allowed:
        return True, 0.0
    return False, (1.0 - available) / per_second


def evict_stale(bucket: Buckets, now: float) -> int:
    """Forget clients idle for longer than a full refill; returns the count."""
    idle = [key for key, (_, updated) in bucket.items() if now - updated > _STALE_AFTER]
    for key in idle:
        del bucket[key]
    return len(idle)


def _client_key(request: Request) -> str:
    # First hop of X-Forwarded-For when behind a proxy.
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",", 1)[0].strip()
    if first_hop:
        return first_hop
    return request.client.host if request.client else "unknown"


def _throttle(client: str) -> Tuple[bool, float]:
    now = time.monotonic()
    with _rate_lock:
        if len(_rate_buckets) > _SWEEP_ABOVE:
            evict_stale(_rate_buckets, now)
        return check_rate_limit(_rate_buckets, client, settings.rate_limit_per_minute, now=now)


def _too_many_requests(request_id: str, retry_after: float) -> JSONResponse:
    wait = round(retry_after, 1)
    return JSONResponse(
        status_code=429,
        content={
            "error": ErrorCode.RATE_LIMITED.value,
            "message": "Too many requests",
            "details": {"retry_after": wait},
        },
        headers={"Retry-After": str(int(retry_after) + 1), "X-Request-ID": request_id},
    )


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Request id, per-client throttling, timing and access logging."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        request_id_var.set(request_id)
        path = request.url.path
        client = _client_key(request)

        if path not in _EXEMPT_PATHS:
            allowed, retry_after = _throttle(client)
            if not allowed:
                logger.warning(
                    "Rate limit exceeded",
                    extra={"client": client, "path": path, "retry_after": round(retry_after, 1)},
                )
                return _too_many_requests(request_id, retry_after)

        started = time.monotonic()
        response = await call_next(request)
        elapsed_ms = round((time.monotonic() - started) * 1000, 1)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{elapsed_ms}ms"

        logger.info(
            "%s %s %s",
            request.method,
            path,
            response.status_code,
            extra={
                "client": client,
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
            },
        )
        return response
