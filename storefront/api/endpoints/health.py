from __future__ import annotations

import os

from fastapi import APIRouter
from starlette.responses import JSONResponse

from storefront.api.state import get_services
from storefront.core.observability.metrics import inc_named

router = APIRouter()


@router.get("/health")
def health_check():
    return {"status": "healthy"}


@router.get("/health/live")
def live():
    inc_named("health_live")
    return {"status": "alive"}


@router.get("/health/ready")
def ready():
    """
    Readiness reflects ability to serve traffic: services wire up and, in
    prod, a real signing key is configured.
    """
    inc_named("health_ready")

    env = (os.getenv("STOREFRONT_ENV") or "dev").strip().lower()
    problems: list[str] = []

    if env == "prod" and not (os.getenv("STOREFRONT_SIGNING_KEY") or "").strip():
        problems.append("missing_env:STOREFRONT_SIGNING_KEY")

    try:
        services = get_services()
        services.customers.count()
    except Exception as e:
        problems.append(f"services_unavailable:{type(e).__name__}")

    if problems:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "problems": problems},
        )

    return {"status": "ready"}
