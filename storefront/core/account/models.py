from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional


@dataclass
class CustomerAddress:
    id: str
    customer_id: str
    salutation: str
    first_name: str
    last_name: str
    street: str
    zipcode: str
    city: str
    country_id: str
    company: Optional[str] = None
    department: Optional[str] = None
    phone_number: Optional[str] = None
    additional_address_line1: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "CustomerAddress":
        return CustomerAddress(
            id=d["id"],
            customer_id=d["customer_id"],
            salutation=d.get("salutation") or "",
            first_name=d["first_name"],
            last_name=d["last_name"],
            street=d["street"],
            zipcode=str(d.get("zipcode") or ""),
            city=d["city"],
            country_id=d["country_id"],
            company=d.get("company"),
            department=d.get("department"),
            phone_number=d.get("phone_number"),
            additional_address_line1=d.get("additional_address_line1"),
        )


@dataclass
class Customer:
    id: str
    customer_number: str
    salutation: str
    first_name: str
    last_name: str
    email: str
    sales_channel_id: str
    created_ts: str
    updated_ts: str
    # never leaves the service
    password_hash: Optional[str] = field(default=None, metadata={"serialize": False})
    title: Optional[str] = None
    birthday: Optional[str] = None
    guest: bool = False
    active: bool = True
    default_billing_address_id: Optional[str] = None
    default_shipping_address_id: Optional[str] = None
    last_login_ts: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Customer":
        return Customer(
            id=d["id"],
            customer_number=str(d["customer_number"]),
            salutation=d.get("salutation") or "",
            first_name=d["first_name"],
            last_name=d["last_name"],
            email=d["email"],
            sales_channel_id=d["sales_channel_id"],
            created_ts=d["created_ts"],
            updated_ts=d.get("updated_ts") or d["created_ts"],
            password_hash=d.get("password_hash"),
            title=d.get("title"),
            birthday=d.get("birthday"),
            guest=bool(d.get("guest", False)),
            active=bool(d.get("active", True)),
            default_billing_address_id=d.get("default_billing_address_id"),
            default_shipping_address_id=d.get("default_shipping_address_id"),
            last_login_ts=d.get("last_login_ts"),
        )
