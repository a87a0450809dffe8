from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml

from storefront.core.account.models import Customer, CustomerAddress
from storefront.core.account.passwords import hash_password
from storefront.core.account.service import CUSTOMER_NUMBER_START
from storefront.core.ids import new_id
from storefront.core.orders.models import Order
from storefront.core.search.repository import EntityRepository
from storefront.core.timeutil import utc_now_iso

log = logging.getLogger("storefront.fixtures")


class FixtureError(ValueError):
    pass


def _customer_from_seed(raw: Dict[str, Any], sales_channel_id: str, number: int) -> tuple[Customer, List[CustomerAddress]]:
    customer_id = str(raw.get("id") or new_id())
    addresses = [
        CustomerAddress.from_dict({"id": a.get("id") or new_id(), "customer_id": customer_id, **a})
        for a in raw.get("addresses") or []
    ]
    now = utc_now_iso()
    password = raw.get("password")
    customer = Customer.from_dict(
        {
            "id": customer_id,
            "customer_number": raw.get("customer_number") or str(number),
            "salutation": raw.get("salutation"),
            "first_name": raw["first_name"],
            "last_name": raw["last_name"],
            "email": str(raw["email"]).strip().lower(),
            "sales_channel_id": raw.get("sales_channel_id") or sales_channel_id,
            "created_ts": now,
            "password_hash": hash_password(str(password)) if password else None,
            "guest": raw.get("guest", False),
            "active": raw.get("active", True),
            "title": raw.get("title"),
            "birthday": raw.get("birthday"),
            "default_billing_address_id": addresses[0].id if addresses else None,
            "default_shipping_address_id": addresses[-1].id if addresses else None,
        }
    )
    return customer, addresses


def load_seed(
    path: Path,
    *,
    customers: EntityRepository,
    addresses: EntityRepository,
    orders: EntityRepository,
    sales_channel_id: str,
) -> Dict[str, int]:
    """
    Load a YAML fixture of customers (with addresses and plain-text passwords)
    and orders. Orders name their owner by ``customer_email``.
    """
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise FixtureError(f"Seed file must be a mapping: {path}")

    by_email: Dict[str, Customer] = {}
    for raw in data.get("customers") or []:
        number = CUSTOMER_NUMBER_START + customers.count() + 1
        customer, addrs = _customer_from_seed(raw, sales_channel_id, number)
        addresses.upsert_many(addrs)
        customers.upsert(customer)
        by_email[customer.email] = customer

    loaded_orders = []
    for raw in data.get("orders") or []:
        email = str(raw.get("customer_email") or "").strip().lower()
        owner = by_email.get(email)
        if owner is None:
            raise FixtureError(f"Order {raw.get('order_number')} references unknown customer '{email}'")
        loaded_orders.append(
            Order.from_dict(
                {
                    "id": raw.get("id") or new_id(),
                    "sales_channel_id": owner.sales_channel_id,
                    "order_customer": {
                        "customer_id": owner.id,
                        "email": owner.email,
                        "first_name": owner.first_name,
                        "last_name": owner.last_name,
                        "customer_number": owner.customer_number,
                    },
                    **raw,
                }
            )
        )
    orders.upsert_many(loaded_orders)

    counts = {"customers": len(by_email), "orders": len(loaded_orders)}
    log.info("seed loaded path=%s customers=%d orders=%d", path, counts["customers"], counts["orders"])
    return counts
