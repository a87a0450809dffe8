from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from storefront.core.observability.metrics import snapshot_named, snapshot_requests

router = APIRouter(tags=["operations"])


@router.get("/metrics/snapshot")
def metrics_snapshot():
    """In-process counters: HTTP traffic by method and path, plus storefront events."""
    req = snapshot_requests()
    return {
        "requests_total": req.get("requests_total", 0),
        "requests": req,
        "events": snapshot_named(),
    }


@router.get("/metrics", include_in_schema=False)
def prometheus_metrics() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
