from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from storefront.core.timeutil import to_utc_iso


@dataclass
class OrderCustomer:
    customer_id: str
    email: str
    first_name: str
    last_name: str
    customer_number: Optional[str] = None


@dataclass
class OrderLineItem:
    id: str
    label: str
    quantity: int
    unit_price: float
    total_price: float


@dataclass
class Order:
    id: str
    order_number: str
    date: str
    amount_total: float
    order_customer: OrderCustomer
    sales_channel_id: str
    state: str = "open"
    currency: str = "EUR"
    line_items: List[OrderLineItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Order":
        items = [
            OrderLineItem(
                id=str(li["id"]),
                label=li["label"],
                quantity=int(li.get("quantity", 1)),
                unit_price=float(li.get("unit_price", 0.0)),
                total_price=float(li.get("total_price", float(li.get("unit_price", 0.0)) * int(li.get("quantity", 1)))),
            )
            for li in d.get("line_items", []) or []
        ]
        oc = d["order_customer"]
        return Order(
            id=d["id"],
            order_number=str(d["order_number"]),
            date=to_utc_iso(d["date"]),
            amount_total=float(d.get("amount_total", sum(li.total_price for li in items))),
            order_customer=OrderCustomer(
                customer_id=oc["customer_id"],
                email=oc["email"],
                first_name=oc["first_name"],
                last_name=oc["last_name"],
                customer_number=oc.get("customer_number"),
            ),
            sales_channel_id=d["sales_channel_id"],
            state=d.get("state") or "open",
            currency=d.get("currency") or "EUR",
            line_items=items,
        )
