from .models import Order, OrderCustomer, OrderLineItem
from .query import build_order_query, load_orders

__all__ = ["Order", "OrderCustomer", "OrderLineItem", "build_order_query", "load_orders"]
