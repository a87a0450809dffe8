from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from storefront.core.account.models import Customer


@dataclass(frozen=True)
class CheckoutContext:
    token: str
    sales_channel_id: str
    customer: Optional[Customer] = None

    @property
    def customer_id(self) -> Optional[str]:
        return self.customer.id if self.customer else None


@dataclass
class ContextSession:
    jti: str
    sales_channel_id: str
    expires_at: int
    customer_id: Optional[str] = None
