from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from starlette.responses import Response

from storefront.api.state import StorefrontServices, get_services
from storefront.core.account.requests import (
    AddressSaveRequest,
    EmailSaveRequest,
    LoginRequest,
    PasswordSaveRequest,
    ProfileSaveRequest,
    RegistrationRequest,
)
from storefront.core.context.models import CheckoutContext
from storefront.core.context.service import CONTEXT_TOKEN_HEADER
from storefront.core.errors import StorefrontError
from storefront.core.ids import ensure_valid_id
from storefront.core.orders.query import DEFAULT_LIMIT, DEFAULT_PAGE, load_orders
from storefront.core.serialization.normalizer import to_envelope

router = APIRouter(prefix="/storefront-api/customer", tags=["customer"])


def checkout_context(request: Request) -> CheckoutContext:
    ctx = getattr(request.state, "checkout_context", None)
    if ctx is None:
        ctx = get_services().contexts.get(request.headers.get(CONTEXT_TOKEN_HEADER))
        request.state.checkout_context = ctx
        request.state.context_token = ctx.token
    return ctx


@contextmanager
def _storefront_errors():
    try:
        yield
    except StorefrontError as e:
        raise HTTPException(status_code=e.status_code, detail={"code": e.code, "message": str(e)}) from e


def _no_content() -> Response:
    return Response(status_code=204)


def _refresh(services: StorefrontServices, ctx: CheckoutContext) -> None:
    services.contexts.refresh(ctx.sales_channel_id, ctx.token)


# ------------------------------------------------------------
# Session
# ------------------------------------------------------------
@router.post("/login")
def login(
    body: LoginRequest,
    request: Request,
    ctx: CheckoutContext = Depends(checkout_context),
    services: StorefrontServices = Depends(get_services),
) -> Dict[str, Any]:
    with _storefront_errors():
        token = services.accounts.login(body, ctx)
    request.state.context_token = token
    return {CONTEXT_TOKEN_HEADER: token}


@router.post("/logout", status_code=204)
def logout(
    request: Request,
    ctx: CheckoutContext = Depends(checkout_context),
    services: StorefrontServices = Depends(get_services),
) -> Response:
    request.state.context_token = services.accounts.logout(ctx)
    return _no_content()


# ------------------------------------------------------------
# Customer
# ------------------------------------------------------------
@router.post("")
def register(
    body: RegistrationRequest,
    ctx: CheckoutContext = Depends(checkout_context),
    services: StorefrontServices = Depends(get_services),
) -> Dict[str, Any]:
    with _storefront_errors():
        customer_id = services.accounts.create_new_customer(body, ctx)
    return to_envelope(customer_id)


@router.get("")
def customer_detail(
    ctx: CheckoutContext = Depends(checkout_context),
    services: StorefrontServices = Depends(get_services),
) -> Dict[str, Any]:
    with _storefront_errors():
        return to_envelope(services.accounts.get_customer_by_context(ctx))


@router.get("/orders")
def order_overview(
    page: int = Query(default=DEFAULT_PAGE, ge=1),
    limit: int = Query(default=DEFAULT_LIMIT, ge=1),
    ctx: CheckoutContext = Depends(checkout_context),
    services: StorefrontServices = Depends(get_services),
) -> Dict[str, Any]:
    with _storefront_errors():
        orders = load_orders(services.orders, ctx, page, limit)
    return to_envelope(list(orders.values()))


@router.put("/email", status_code=204)
def save_email(
    body: EmailSaveRequest,
    ctx: CheckoutContext = Depends(checkout_context),
    services: StorefrontServices = Depends(get_services),
) -> Response:
    with _storefront_errors():
        services.accounts.save_email(body, ctx)
    _refresh(services, ctx)
    return _no_content()


@router.put("/password", status_code=204)
def save_password(
    body: PasswordSaveRequest,
    ctx: CheckoutContext = Depends(checkout_context),
    services: StorefrontServices = Depends(get_services),
) -> Response:
    with _storefront_errors():
        services.accounts.save_password(body, ctx)
    _refresh(services, ctx)
    return _no_content()


@router.put("/profile", status_code=204)
def save_profile(
    body: ProfileSaveRequest,
    ctx: CheckoutContext = Depends(checkout_context),
    services: StorefrontServices = Depends(get_services),
) -> Response:
    with _storefront_errors():
        services.accounts.save_profile(body, ctx)
    _refresh(services, ctx)
    return _no_content()


# ------------------------------------------------------------
# Address book
# ------------------------------------------------------------
@router.get("/addresses")
def addresses(
    ctx: CheckoutContext = Depends(checkout_context),
    services: StorefrontServices = Depends(get_services),
) -> Dict[str, Any]:
    with _storefront_errors():
        return to_envelope(services.accounts.get_addresses_by_customer(ctx))


@router.get("/address/{address_id}")
def get_address(
    address_id: str,
    ctx: CheckoutContext = Depends(checkout_context),
    services: StorefrontServices = Depends(get_services),
) -> Dict[str, Any]:
    with _storefront_errors():
        return to_envelope(services.accounts.get_address_by_id(address_id, ctx))


@router.post("/address")
def create_address(
    body: AddressSaveRequest,
    ctx: CheckoutContext = Depends(checkout_context),
    services: StorefrontServices = Depends(get_services),
) -> Dict[str, Any]:
    with _storefront_errors():
        address_id = services.accounts.save_address(body, ctx)
    _refresh(services, ctx)
    return to_envelope(address_id)


@router.delete("/address/{address_id}")
def delete_address(
    address_id: str,
    ctx: CheckoutContext = Depends(checkout_context),
    services: StorefrontServices = Depends(get_services),
) -> Dict[str, Any]:
    with _storefront_errors():
        services.accounts.delete_address(address_id, ctx)
    return to_envelope(address_id)


@router.put("/default-billing-address/{address_id}")
def set_default_billing_address(
    address_id: str,
    ctx: CheckoutContext = Depends(checkout_context),
    services: StorefrontServices = Depends(get_services),
) -> Dict[str, Any]:
    with _storefront_errors():
        services.accounts.set_default_billing_address(address_id, ctx)
    return to_envelope(address_id)


@router.put("/default-shipping-address/{address_id}")
def set_default_shipping_address(
    address_id: str,
    ctx: CheckoutContext = Depends(checkout_context),
    services: StorefrontServices = Depends(get_services),
) -> Dict[str, Any]:
    with _storefront_errors():
        ensure_valid_id(address_id)
        services.accounts.set_default_shipping_address(address_id, ctx)
    return to_envelope(address_id)
