"""Order data models.

``Order`` is what a caller submits at checkout.  ``OrderRecord`` is what
lands in the store: the order fields plus the owning user, the derived
record key, a status and a creation timestamp.  Records are immutable
once written; there is no update or delete path.

Item attribute names match the table layout exactly::

    UserId | HashKey | Email | Name | Surname | Address | TelNumber
    OrderList | TotalPrice (N) | OrderStatus | TimeStamp (ISO-8601 UTC)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from order_spine.core.errors import ValidationError
from order_spine.core.timestamps import format_display_date

ORDER_STATUS_COMPLETED = "COMPLETED"

# Attributes returned by the history query
DISPLAY_ATTRIBUTES = (
    "Name",
    "Surname",
    "TimeStamp",
    "TotalPrice",
    "OrderStatus",
    "OrderList",
    "Email",
    "Address",
    "TelNumber",
)


def _require_text(field_name: str, value: Any) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field_name} is required", field=field_name, value=value)
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string", field=field_name, value=value)
    return value


@dataclass(frozen=True)
class Order:
    """A checkout submission.

    Attributes:
        email: Contact email
        name: Given name
        surname: Family name
        address: Delivery address
        tel_number: Contact telephone
        order_list: Order lines, serialized as text by the client
        total_price: Order total
    """

    email: str
    name: str
    surname: str
    address: str
    tel_number: str
    order_list: str
    total_price: Decimal

    def validate(self) -> None:
        for name in ("email", "name", "surname", "address", "tel_number", "order_list"):
            _require_text(name, getattr(self, name))

        price = self.total_price
        if price is None:
            raise ValidationError("total_price is required", field="total_price")
        if isinstance(price, bool) or not isinstance(price, (Decimal, int, str, float)):
            raise ValidationError("total_price must be a decimal", field="total_price", value=price)
        try:
            amount = Decimal(str(price))
        except InvalidOperation:
            raise ValidationError(
                "total_price must be a decimal", field="total_price", value=price
            ) from None
        if not amount.is_finite() or amount < 0:
            raise ValidationError(
                "total_price must be a non-negative amount", field="total_price", value=price
            )
        if not isinstance(price, Decimal):
            object.__setattr__(self, "total_price", amount)


@dataclass(frozen=True)
class OrderRecord:
    """A persisted order.

    ``user_id`` and ``hash_key`` are ``None`` on records read back through
    the history query, which projects display attributes only.
    """

    email: str
    name: str
    surname: str
    address: str
    tel_number: str
    order_list: str
    total_price: Decimal
    timestamp: str
    status: str = ORDER_STATUS_COMPLETED
    user_id: str | None = None
    hash_key: str | None = None

    @classmethod
    def from_order(cls, order: Order, *, user_id: str, hash_key: str, timestamp: str) -> OrderRecord:
        return cls(
            email=order.email,
            name=order.name,
            surname=order.surname,
            address=order.address,
            tel_number=order.tel_number,
            order_list=order.order_list,
            total_price=order.total_price,
            timestamp=timestamp,
            status=ORDER_STATUS_COMPLETED,
            user_id=user_id,
            hash_key=hash_key,
        )

    def to_item(self) -> dict[str, Any]:
        """Plain attribute map for the store (values not yet type-tagged)."""
        item: dict[str, Any] = {}
        if self.user_id is not None:
            item["UserId"] = self.user_id
        if self.hash_key is not None:
            item["HashKey"] = self.hash_key
        item.update(
            {
                "Email": self.email,
                "Name": self.name,
                "Surname": self.surname,
                "Address": self.address,
                "TelNumber": self.tel_number,
                "OrderList": self.order_list,
                "TotalPrice": Decimal(self.total_price),
                "OrderStatus": self.status,
                "TimeStamp": self.timestamp,
            }
        )
        return item

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> OrderRecord:
        """Inverse of ``to_item`` for a decoded store item."""
        price = item.get("TotalPrice")
        return cls(
            email=item.get("Email", ""),
            name=item.get("Name", ""),
            surname=item.get("Surname", ""),
            address=item.get("Address", ""),
            tel_number=item.get("TelNumber", ""),
            order_list=item.get("OrderList", ""),
            total_price=Decimal(str(price)) if price is not None else Decimal(0),
            timestamp=item.get("TimeStamp", ""),
            status=item.get("OrderStatus", ORDER_STATUS_COMPLETED),
            user_id=item.get("UserId"),
            hash_key=item.get("HashKey"),
        )

    def to_display(self, tz: str = "UTC") -> dict[str, str]:
        """History row as returned to the caller, with a dd-MM-yyyy date."""
        return {
            "Name": self.name,
            "Surname": self.surname,
            "TimeStamp": format_display_date(self.timestamp, tz),
            "TotalPrice": str(self.total_price),
            "OrderStatus": self.status,
            "OrderList": self.order_list,
            "Email": self.email,
            "Address": self.address,
            "TelNumber": self.tel_number,
        }
