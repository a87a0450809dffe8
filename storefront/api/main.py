from __future__ import annotations

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.api.endpoints import customer, health
from storefront.api.endpoints import metrics as metrics_ep
from storefront.api.middleware.checkout_context import CheckoutContextMiddleware
from storefront.api.middleware.error_shaping import SafeErrorMiddleware
from storefront.api.middleware.request_context import (
    RateLimitMiddleware,
    RequestContextMiddleware,
    SecurityHeadersMiddleware,
)


def _flag(name: str, default: str) -> bool:
    return (os.getenv(name) or default).strip().lower() in ("1", "true", "yes")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront Customer API",
        version="0.1.0",
    )

    # ------------------------------------------------------------
    # Middleware stack (ORDER MATTERS)
    # Starlette reverses add_middleware order: the LAST call is the OUTERMOST wrapper.
    # Runtime order (outermost -> innermost):
    #   SafeErrorMiddleware -> CORSMiddleware -> SecurityHeaders -> RateLimit
    #   -> RequestContext -> CheckoutContext -> handler
    # ------------------------------------------------------------
    env = (os.getenv("STOREFRONT_ENV") or "dev").strip().lower()

    app.add_middleware(CheckoutContextMiddleware)
    app.add_middleware(RequestContextMiddleware)

    rl_rpm = int((os.getenv("STOREFRONT_RATE_LIMIT_RPM") or "120").strip())
    app.add_middleware(
        RateLimitMiddleware,
        enabled=_flag("STOREFRONT_RATE_LIMIT_ENABLED", "0"),
        rpm=rl_rpm,
        trusted_proxies=(os.getenv("STOREFRONT_TRUSTED_PROXIES") or "").split(","),
    )

    app.add_middleware(
        SecurityHeadersMiddleware,
        enabled=_flag("STOREFRONT_SECURITY_HEADERS_ENABLED", "true" if env == "prod" else "false"),
    )

    _cors_origins_raw = os.getenv("STOREFRONT_CORS_ORIGINS", "").strip()
    _cors_origins = [o.strip() for o in _cors_origins_raw.split(",") if o.strip()] if _cors_origins_raw else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["x-sw-context-token", "X-Request-Id"],
    )

    # Outermost: catches all exceptions from inner middleware
    app.add_middleware(SafeErrorMiddleware)

    app.include_router(customer.router)
    app.include_router(health.router)
    app.include_router(metrics_ep.router)

    return app


app = create_app()
