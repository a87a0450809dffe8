from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from storefront.core.account.models import Customer, CustomerAddress
from storefront.core.account.service import AccountService
from storefront.core.context.service import CheckoutContextService, TokenConfig, load_token_config
from storefront.core.fixtures import load_seed
from storefront.core.orders.models import Order
from storefront.core.search.repository import EntityRepository

log = logging.getLogger("storefront.state")


@dataclass
class StorefrontServices:
    customers: EntityRepository
    addresses: EntityRepository
    orders: EntityRepository
    contexts: CheckoutContextService
    accounts: AccountService


def _data_dir_from_env() -> Optional[Path]:
    raw = (os.getenv("STOREFRONT_DATA_DIR") or "").strip()
    return Path(raw).resolve() if raw else None


def _seed_file_from_env() -> Optional[Path]:
    raw = (os.getenv("STOREFRONT_SEED_FILE") or "").strip()
    return Path(raw) if raw else None


def build_services(
    *,
    data_dir: Optional[Path] = None,
    seed_file: Optional[Path] = None,
    token_config: Optional[TokenConfig] = None,
) -> StorefrontServices:
    """
    Wire repositories and services.

    With ``data_dir`` every repository persists to <data_dir>/<entity>.json.
    A seed file is loaded on top of whatever was persisted.
    """

    def _path(entity: str) -> Optional[Path]:
        return data_dir / f"{entity}.json" if data_dir else None

    customers = EntityRepository("customer", decode=Customer.from_dict, path=_path("customer"))
    addresses = EntityRepository(
        "customer_address", decode=CustomerAddress.from_dict, path=_path("customer_address")
    )
    orders = EntityRepository("order", decode=Order.from_dict, path=_path("order"))

    cfg = token_config or load_token_config()
    contexts = CheckoutContextService(customers=customers, cfg=cfg)
    accounts = AccountService(customers=customers, addresses=addresses, contexts=contexts)

    if seed_file is not None:
        load_seed(
            seed_file,
            customers=customers,
            addresses=addresses,
            orders=orders,
            sales_channel_id=cfg.default_sales_channel_id,
        )

    return StorefrontServices(
        customers=customers,
        addresses=addresses,
        orders=orders,
        contexts=contexts,
        accounts=accounts,
    )


_SERVICES: Optional[StorefrontServices] = None
_SERVICES_LOCK = threading.Lock()


def get_services() -> StorefrontServices:
    global _SERVICES
    with _SERVICES_LOCK:
        if _SERVICES is None:
            _SERVICES = build_services(data_dir=_data_dir_from_env(), seed_file=_seed_file_from_env())
            log.info("storefront services initialized")
        return _SERVICES


def set_services(services: Optional[StorefrontServices]) -> None:
    """Swap the process-wide services (tests pass None to force a rebuild)."""
    global _SERVICES
    with _SERVICES_LOCK:
        _SERVICES = services
