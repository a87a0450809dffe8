from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from storefront.core.errors import StorefrontError

log = logging.getLogger("storefront.errors")

INTERNAL_ERROR_CODE = "FRAMEWORK_INTERNAL_ERROR"


def error_body(code: str, message: str, request_id: Optional[str] = None) -> dict:
    """Same ``detail`` shape the customer endpoints raise for domain errors."""
    body = {"detail": {"code": code, "message": message}}
    if request_id:
        body["request_id"] = request_id
    return body


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """
    Last line of defence for the storefront API.

    Domain errors that escape a route or an inner middleware keep their status
    and code. Anything else becomes a bare 500; the traceback goes to the
    server log only.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except StorefrontError as e:
            rid = self._request_id(request)
            log.info("storefront error code=%s rid=%s path=%s", e.code, rid, request.url.path)
            return JSONResponse(status_code=e.status_code, content=error_body(e.code, str(e), rid))
        except Exception:
            rid = self._request_id(request)
            log.exception("unhandled error rid=%s method=%s path=%s", rid, request.method, request.url.path)
            return JSONResponse(
                status_code=500,
                content=error_body(INTERNAL_ERROR_CODE, "Internal Server Error", rid),
            )

    @staticmethod
    def _request_id(request: Request) -> Optional[str]:
        return getattr(request.state, "request_id", None) or request.headers.get("x-request-id")
