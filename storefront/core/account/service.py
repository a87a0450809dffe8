from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import List

from storefront.core.account.models import Customer, CustomerAddress
from storefront.core.account.passwords import hash_password, verify_password
from storefront.core.account.requests import (
    AddressSaveRequest,
    EmailSaveRequest,
    LoginRequest,
    PasswordSaveRequest,
    ProfileSaveRequest,
    RegistrationRequest,
)
from storefront.core.context.models import CheckoutContext
from storefront.core.context.service import CheckoutContextService
from storefront.core.errors import (
    AddressNotFoundError,
    BadCredentialsError,
    CannotDeleteDefaultAddressError,
    ConfirmationMismatchError,
    CustomerAlreadyExistsError,
    CustomerNotFoundError,
    CustomerNotLoggedInError,
)
from storefront.core.ids import ensure_valid_id, new_id
from storefront.core.observability.metrics import CUSTOMER_LOGINS_TOTAL, inc_named
from storefront.core.search.criteria import EqualsFilter, QueryDescriptor, TotalCountMode
from storefront.core.search.repository import EntityRepository
from storefront.core.timeutil import utc_now_iso

log = logging.getLogger("storefront.account")

CUSTOMER_NUMBER_START = 10000


def _require_customer(context: CheckoutContext) -> Customer:
    if context.customer is None:
        raise CustomerNotLoggedInError()
    return context.customer


class AccountService:
    """Customer account operations scoped to a checkout context."""

    def __init__(
        self,
        *,
        customers: EntityRepository,
        addresses: EntityRepository,
        contexts: CheckoutContextService,
    ):
        self.customers = customers
        self.addresses = addresses
        self.contexts = contexts
        # guards email uniqueness and customer number allocation
        self._lock = threading.Lock()

    # ------------------------------------------------------------
    # lookups
    # ------------------------------------------------------------
    def _find_registered_by_email(self, email: str):
        descriptor = QueryDescriptor(
            filters=(
                EqualsFilter("customer.email", email.strip().lower()),
                EqualsFilter("customer.guest", False),
            ),
            limit=1,
        )
        return self.customers.search(descriptor).first()

    def _owned_address(self, address_id: str, context: CheckoutContext) -> CustomerAddress:
        ensure_valid_id(address_id)
        customer = _require_customer(context)
        addr = self.addresses.get(address_id)
        if addr is None or addr.customer_id != customer.id:
            raise AddressNotFoundError(address_id)
        return addr

    def get_customer_by_context(self, context: CheckoutContext) -> Customer:
        customer = _require_customer(context)
        fresh = self.customers.get(customer.id)
        if fresh is None:
            raise CustomerNotLoggedInError()
        return fresh

    # ------------------------------------------------------------
    # session
    # ------------------------------------------------------------
    def login(self, req: LoginRequest, context: CheckoutContext) -> str:
        customer = self._find_registered_by_email(req.username)
        if customer is None:
            CUSTOMER_LOGINS_TOTAL.labels(outcome="unknown_customer").inc()
            raise CustomerNotFoundError(req.username)

        if not customer.active or not verify_password(req.password, customer.password_hash):
            CUSTOMER_LOGINS_TOTAL.labels(outcome="bad_credentials").inc()
            log.info("login rejected customer_id=%s", customer.id)
            raise BadCredentialsError()

        self.customers.upsert(replace(customer, last_login_ts=utc_now_iso()))
        token = self.contexts.bind_customer(context.token, customer.id)

        CUSTOMER_LOGINS_TOTAL.labels(outcome="success").inc()
        inc_named("customer_login")
        log.info("login customer_id=%s sales_channel_id=%s", customer.id, context.sales_channel_id)
        return token

    def logout(self, context: CheckoutContext) -> str:
        """Drop the session behind the context token and return a fresh anonymous token."""
        self.contexts.invalidate(context.token)
        inc_named("customer_logout")
        log.info("logout customer_id=%s", context.customer_id)
        return self.contexts.issue(sales_channel_id=context.sales_channel_id)

    # ------------------------------------------------------------
    # registration / profile
    # ------------------------------------------------------------
    def create_new_customer(self, req: RegistrationRequest, context: CheckoutContext) -> str:
        email = req.email.strip().lower()
        password_hash = hash_password(req.password) if req.password else None

        now = utc_now_iso()
        customer_id = new_id()
        billing = self._new_address(customer_id, req.billing_address)
        shipping = self._new_address(customer_id, req.shipping_address) if req.shipping_address else billing

        with self._lock:
            if not req.guest and self._find_registered_by_email(email) is not None:
                raise CustomerAlreadyExistsError(email)

            customer = Customer(
                id=customer_id,
                customer_number=str(CUSTOMER_NUMBER_START + self.customers.count() + 1),
                salutation=req.salutation,
                title=req.title,
                first_name=req.first_name,
                last_name=req.last_name,
                email=email,
                birthday=req.birthday,
                sales_channel_id=context.sales_channel_id,
                created_ts=now,
                updated_ts=now,
                password_hash=password_hash,
                guest=req.guest,
                default_billing_address_id=billing.id,
                default_shipping_address_id=shipping.id,
            )
            self.addresses.upsert_many([billing] if shipping is billing else [billing, shipping])
            self.customers.upsert(customer)

        inc_named("customer_registered")
        log.info("customer registered customer_id=%s guest=%s", customer_id, req.guest)
        return customer_id

    def save_profile(self, req: ProfileSaveRequest, context: CheckoutContext) -> None:
        customer = self.get_customer_by_context(context)
        self.customers.upsert(
            replace(
                customer,
                salutation=req.salutation,
                title=req.title,
                first_name=req.first_name,
                last_name=req.last_name,
                birthday=req.birthday,
                updated_ts=utc_now_iso(),
            )
        )

    def save_email(self, req: EmailSaveRequest, context: CheckoutContext) -> None:
        customer = self.get_customer_by_context(context)
        email = req.email.strip().lower()
        if email != req.email_confirmation.strip().lower():
            raise ConfirmationMismatchError("email")

        with self._lock:
            other = self._find_registered_by_email(email)
            if other is not None and other.id != customer.id:
                raise CustomerAlreadyExistsError(email)
            self.customers.upsert(replace(customer, email=email, updated_ts=utc_now_iso()))
        log.info("email changed customer_id=%s", customer.id)

    def save_password(self, req: PasswordSaveRequest, context: CheckoutContext) -> None:
        customer = self.get_customer_by_context(context)
        if req.password_confirmation is not None and req.password != req.password_confirmation:
            raise ConfirmationMismatchError("password")

        self.customers.upsert(
            replace(customer, password_hash=hash_password(req.password), updated_ts=utc_now_iso())
        )
        log.info("password changed customer_id=%s", customer.id)

    # ------------------------------------------------------------
    # address book
    # ------------------------------------------------------------
    def _new_address(self, customer_id: str, req: AddressSaveRequest) -> CustomerAddress:
        return CustomerAddress(
            id=new_id(),
            customer_id=customer_id,
            salutation=req.salutation,
            first_name=req.first_name,
            last_name=req.last_name,
            street=req.street,
            zipcode=req.zipcode,
            city=req.city,
            country_id=req.country_id,
            company=req.company,
            department=req.department,
            phone_number=req.phone_number,
            additional_address_line1=req.additional_address_line1,
        )

    def get_addresses_by_customer(self, context: CheckoutContext) -> List[CustomerAddress]:
        customer = _require_customer(context)
        result = self.addresses.search(
            QueryDescriptor(
                filters=(EqualsFilter("customer_address.customerId", customer.id),),
                total_count_mode=TotalCountMode.EXACT,
            )
        )
        return list(result.elements.values())

    def get_address_by_id(self, address_id: str, context: CheckoutContext) -> CustomerAddress:
        return self._owned_address(address_id, context)

    def save_address(self, req: AddressSaveRequest, context: CheckoutContext) -> str:
        customer = _require_customer(context)
        if req.id:
            existing = self._owned_address(req.id, context)
            updated = self._new_address(customer.id, req)
            updated.id = existing.id
            self.addresses.upsert(updated)
            return existing.id

        addr = self._new_address(customer.id, req)
        self.addresses.upsert(addr)
        return addr.id

    def delete_address(self, address_id: str, context: CheckoutContext) -> None:
        addr = self._owned_address(address_id, context)
        customer = self.get_customer_by_context(context)
        if addr.id in (customer.default_billing_address_id, customer.default_shipping_address_id):
            raise CannotDeleteDefaultAddressError(addr.id)
        self.addresses.delete(addr.id)

    def set_default_billing_address(self, address_id: str, context: CheckoutContext) -> None:
        addr = self._owned_address(address_id, context)
        customer = self.get_customer_by_context(context)
        self.customers.upsert(
            replace(customer, default_billing_address_id=addr.id, updated_ts=utc_now_iso())
        )

    def set_default_shipping_address(self, address_id: str, context: CheckoutContext) -> None:
        addr = self._owned_address(address_id, context)
        customer = self.get_customer_by_context(context)
        self.customers.upsert(
            replace(customer, default_shipping_address_id=addr.id, updated_ts=utc_now_iso())
        )
