"""
Order API schemas.

Wire names are camelCase (``telNumber``, ``orderList``, ``totalPrice``,
``totalPages``); Python attributes stay snake_case.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from order_spine.core.models import Order


class OrderIn(BaseModel):
    """Checkout request body.

    Example:
        {
            "email": "ada@example.com",
            "name": "Ada",
            "surname": "Lovelace",
            "address": "12 St James's Square, London",
            "telNumber": "+44 20 7946 0000",
            "orderList": "[{\\"productId\\": \\"p1\\", \\"quantity\\": 2}]",
            "totalPrice": 299.99
        }
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    email: str = Field(description="Contact email")
    name: str = Field(description="Given name")
    surname: str = Field(description="Family name")
    address: str = Field(description="Delivery address")
    tel_number: str = Field(description="Contact telephone")
    order_list: str = Field(
        validation_alias=AliasChoices("orderList", "orderListStr", "order_list"),
        description="Order lines serialized as text",
    )
    total_price: Decimal = Field(description="Order total")

    def to_order(self) -> Order:
        return Order(
            email=self.email,
            name=self.name,
            surname=self.surname,
            address=self.address,
            tel_number=self.tel_number,
            order_list=self.order_list,
            total_price=self.total_price,
        )


class OrdersPage(BaseModel):
    """One page of order history.

    Each order is a flat map keyed by stored attribute name
    (``Name``, ``Surname``, ``TimeStamp`` as ``dd-MM-yyyy``, ``TotalPrice`` …).
    """

    model_config = ConfigDict(populate_by_name=True)

    orders: list[dict[str, str]] = Field(default_factory=list)
    total_pages: int = Field(default=0, alias="totalPages")


class CheckoutOut(BaseModel):
    """Successful checkout response."""

    message: str


class FallbackOut(BaseModel):
    """Degraded response body (distinct status: 503, or 500 for fatal failures)."""

    description: str
