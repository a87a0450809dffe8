from __future__ import annotations

from typing import Dict

from storefront.core.context.models import CheckoutContext
from storefront.core.errors import CustomerNotLoggedInError
from storefront.core.orders.models import Order
from storefront.core.search.criteria import (
    EqualsFilter,
    FieldSorting,
    QueryDescriptor,
    SortDirection,
    TotalCountMode,
)
from storefront.core.search.repository import EntityRepository

ORDER_CUSTOMER_FIELD = "order.orderCustomer.customerId"
ORDER_DATE_FIELD = "order.date"

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


def build_order_query(
    context: CheckoutContext,
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
) -> QueryDescriptor:
    """
    Describe one page of the logged-in customer's orders, newest first.

    Counts only far enough to tell whether further pages exist (NEXT_PAGES);
    an exact total would need a full scan on every page.
    """
    if context.customer is None:
        raise CustomerNotLoggedInError()

    return QueryDescriptor.for_page(
        page=page,
        limit=limit,
        filters=(EqualsFilter(ORDER_CUSTOMER_FIELD, context.customer.id),),
        sortings=(FieldSorting(ORDER_DATE_FIELD, SortDirection.DESC),),
        total_count_mode=TotalCountMode.NEXT_PAGES,
    )


def load_orders(
    repository: EntityRepository,
    context: CheckoutContext,
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
) -> Dict[str, Order]:
    return repository.search(build_order_query(context, page, limit)).elements
