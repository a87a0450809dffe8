from __future__ import annotations

import logging
import time
import uuid
from typing import Callable, Dict, Iterable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from storefront.api.middleware.error_shaping import error_body
from storefront.api.observability.metrics import (
    HTTP_REQUESTS_TOTAL,
    HTTP_REQUEST_DURATION_SECONDS,
    normalize_path,
)
from storefront.core.observability.metrics import inc_http

log = logging.getLogger("storefront.request")

RATE_LIMITED_CODE = "FRAMEWORK_TOO_MANY_REQUESTS"


def _json_log(event: str, **fields):
    # Structured log in a single line; tokens and credentials are never logged.
    msg = {"event": event, **fields}
    log.info("%s", msg)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Request ID + structured request log fields (no secrets).

    Adds:
      request.state.request_id
      response header: X-Request-Id
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = rid

        start = time.time()
        resp = await call_next(request)
        dur_ms = int((time.time() - start) * 1000)

        resp.headers["X-Request-Id"] = rid

        # Prometheus metrics (low-cardinality path)
        p = normalize_path(request.url.path)
        m = request.method.upper()
        s = str(getattr(resp, "status_code", 0))
        HTTP_REQUESTS_TOTAL.labels(method=m, path=p, status=s).inc()
        HTTP_REQUEST_DURATION_SECONDS.labels(method=m, path=p).observe(dur_ms / 1000.0)
        inc_http(m, p, resp.status_code)

        if request.url.path.startswith("/storefront-api"):
            ctx = getattr(request.state, "checkout_context", None)
            _json_log(
                "request",
                request_id=rid,
                method=request.method,
                path=request.url.path,
                status_code=resp.status_code,
                duration_ms=dur_ms,
                sales_channel_id=getattr(ctx, "sales_channel_id", None),
                customer_id=getattr(ctx, "customer_id", None),
            )
        return resp


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Security headers for a JSON-only API (enabled in prod by default).

    Storefront responses carry context tokens and customer data, so they are
    also marked non-cacheable.
    """

    def __init__(self, app, enabled: bool = True):
        super().__init__(app)
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        resp = await call_next(request)
        if not self.enabled:
            return resp

        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("X-Frame-Options", "DENY")
        resp.headers.setdefault("Referrer-Policy", "no-referrer")
        resp.headers.setdefault("Content-Security-Policy", "default-src 'none'; frame-ancestors 'none'")
        if request.url.path.startswith("/storefront-api"):
            resp.headers["Cache-Control"] = "no-store"
        return resp


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Fixed one-minute window per client on /storefront-api.

    The client is the direct peer address. X-Forwarded-For is only read when
    that peer is one of ``trusted_proxies``; the rightmost hop not belonging
    to a trusted proxy is used. Counts of earlier minutes are dropped as soon
    as a new minute starts.
    """

    def __init__(self, app, enabled: bool = False, rpm: int = 120, trusted_proxies: Iterable[str] = ()):
        super().__init__(app)
        self.enabled = enabled
        self.rpm = max(1, int(rpm))
        self.trusted_proxies = frozenset(p.strip() for p in trusted_proxies if p and p.strip())
        self._minute: Optional[int] = None
        self._counts: Dict[str, int] = {}

    def client_key(self, request: Request) -> str:
        peer = request.client.host if request.client else "unknown"
        if peer not in self.trusted_proxies:
            return peer
        hops = [h.strip() for h in request.headers.get("x-forwarded-for", "").split(",") if h.strip()]
        for hop in reversed(hops):
            if hop not in self.trusted_proxies:
                return hop
        return peer

    def hit(self, key: str, minute: int) -> int:
        if minute != self._minute:
            self._minute = minute
            self._counts = {}
        self._counts[key] = self._counts.get(key, 0) + 1
        return self._counts[key]

    def tracked_clients(self) -> int:
        return len(self._counts)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self.enabled or not request.url.path.startswith("/storefront-api"):
            return await call_next(request)

        now = time.time()
        key = self.client_key(request)
        if self.hit(key, int(now // 60)) > self.rpm:
            log.info("rate limited client=%s path=%s", key, request.url.path)
            return JSONResponse(
                status_code=429,
                content=error_body(RATE_LIMITED_CODE, "Rate limit exceeded"),
                headers={"Retry-After": str(60 - int(now) % 60)},
            )
        return await call_next(request)
