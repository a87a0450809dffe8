from __future__ import annotations

import re
from prometheus_client import Counter, Histogram


def normalize_path(path: str) -> str:
    """Reduce high-cardinality paths for metrics labels."""
    p = path or "/"

    # storefront ids (32 hex)
    p = re.sub(r"/[0-9a-fA-F]{32}(?=/|$)", "/:id", p)
    # UUID-ish
    p = re.sub(r"/[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}", "/:uuid", p)
    # ints
    p = re.sub(r"/\d+(?=/|$)", "/:id", p)
    # anything else after an address segment is still an id
    p = re.sub(r"^(/storefront-api/customer/(?:address|default-billing-address|default-shipping-address))/[^/]+$", r"\1/:id", p)

    return p


HTTP_REQUESTS_TOTAL = Counter(
    "storefront_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "storefront_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)
