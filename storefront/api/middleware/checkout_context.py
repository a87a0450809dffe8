from __future__ import annotations

from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from storefront.api.state import get_services
from storefront.core.context.service import CONTEXT_TOKEN_HEADER


class CheckoutContextMiddleware(BaseHTTPMiddleware):
    """
    Resolves the x-sw-context-token header into a CheckoutContext for
    /storefront-api requests and echoes the effective token on the response.

    Adds:
      request.state.checkout_context
      request.state.context_token (endpoints may replace it, e.g. on login)
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not request.url.path.startswith("/storefront-api"):
            return await call_next(request)

        token = request.headers.get(CONTEXT_TOKEN_HEADER)
        ctx = get_services().contexts.get(token)
        request.state.checkout_context = ctx
        request.state.context_token = ctx.token

        resp = await call_next(request)
        resp.headers[CONTEXT_TOKEN_HEADER] = request.state.context_token
        return resp
