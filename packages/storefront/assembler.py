from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone

from packages.shared.schemas.order_v1 import OrderDraftV1, OrderLineV1, ShippingAddressV1
from packages.storefront.cart import CartEntry
from packages.storefront.catalogue import Catalogue, format_color_label
from packages.storefront.errors import EmptyCartError
from packages.storefront.pricing import (
    ShippingPolicy,
    compute_pricing,
    format_money,
    format_shipping,
)
from pydantic import BaseModel, ConfigDict

DEFAULT_CUSTOMER_NAME = "Friend"
DEFAULT_STREET = "—"
DEFAULT_CITY = "Lebanon"
DEFAULT_PHONE = "Not provided"
DEFAULT_PAYMENT_METHOD = "Cash On Delivery"

PAYMENT_METHOD_LABELS = {
    "cod": "Cash On Delivery",
}

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


class CheckoutForm(BaseModel):
    """Raw checkout form fields. Every field may be blank."""

    model_config = ConfigDict(str_strip_whitespace=True)

    full_name: str = ""
    street: str = ""
    city: str = ""
    phone: str = ""
    email: str = ""
    notes: str = ""
    payment_method: str = ""


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def generate_order_id(now: datetime | None = None) -> str:
    """Short, human-scannable id from the epoch milliseconds, e.g. UC-M3X9K2QF.

    Unique in practice for a single shopper; nothing deduplicates across sessions.
    """

    now = now or datetime.now(timezone.utc)
    millis = int(now.timestamp() * 1000)
    return f"UC-{_to_base36(millis).upper()}"


def _payment_label(value: str) -> str:
    if not value:
        return DEFAULT_PAYMENT_METHOD
    return PAYMENT_METHOD_LABELS.get(value.lower(), value)


def assemble_order(
    cart: Mapping[str, CartEntry],
    catalogue: Catalogue,
    form: CheckoutForm,
    *,
    policy: ShippingPolicy | None = None,
    now: datetime | None = None,
) -> OrderDraftV1:
    pricing = compute_pricing(cart, catalogue, policy)
    if pricing.is_empty:
        raise EmptyCartError()

    lines = tuple(
        OrderLineV1(
            name=line.item.name,
            color=format_color_label(line.color) or None,
            quantity=line.quantity,
            price=format_money(line.line_total),
        )
        for line in pricing.lines
    )

    return OrderDraftV1(
        order_id=generate_order_id(now),
        customer_name=form.full_name or DEFAULT_CUSTOMER_NAME,
        shipping_address=ShippingAddressV1(
            street=form.street or DEFAULT_STREET,
            city=form.city or DEFAULT_CITY,
            phone=form.phone or DEFAULT_PHONE,
            email=form.email or None,
        ),
        lines=lines,
        subtotal=format_money(pricing.subtotal_discounted),
        shipping=format_shipping(pricing.shipping_fee),
        total=format_money(pricing.order_total),
        notes=form.notes or None,
        payment_method=_payment_label(form.payment_method),
    )
