"""Shared order schema (v1).

The storefront posts these payloads to the order-email endpoint, and the endpoint renders
them into the confirmation email. Keys go over the wire in camelCase.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class OrderLineV1(_WireModel):
    name: str
    color: str | None = None
    quantity: int = Field(..., ge=1)
    price: str


class ShippingAddressV1(_WireModel):
    street: str
    city: str
    phone: str
    email: str | None = None


class OrderDraftV1(_WireModel):
    order_id: str = Field(..., min_length=1)
    customer_name: str
    shipping_address: ShippingAddressV1
    lines: tuple[OrderLineV1, ...] = Field(..., min_length=1)

    # Display strings, e.g. "$13.98" and "Free".
    subtotal: str
    shipping: str
    total: str

    notes: str | None = None
    payment_method: str | None = None

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class OrderSubmitResultV1(BaseModel):
    success: bool
    id: str | None = None
    error: str | None = None
