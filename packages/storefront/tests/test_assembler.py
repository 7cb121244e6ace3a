from __future__ import annotations

import re
from datetime import datetime, timezone

import pytest
from packages.storefront.assembler import CheckoutForm, assemble_order, generate_order_id
from packages.storefront.cart import CartEntry
from packages.storefront.catalogue import FEATURED_PRODUCTS
from packages.storefront.errors import CheckoutValidationError, EmptyCartError
from pydantic import ValidationError

_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_empty_cart_is_rejected() -> None:
    with pytest.raises(EmptyCartError) as exc_info:
        assemble_order({}, FEATURED_PRODUCTS, CheckoutForm())

    assert isinstance(exc_info.value, CheckoutValidationError)
    assert exc_info.value.code == "EmptyCart"


def test_cart_of_unknown_items_counts_as_empty() -> None:
    with pytest.raises(EmptyCartError):
        assemble_order({"ghost": CartEntry(1, "white")}, FEATURED_PRODUCTS, CheckoutForm())


def test_blank_fields_fall_back_to_placeholders() -> None:
    form = CheckoutForm(full_name="   ", street="", city=" ", phone="", email="  ", notes="")

    draft = assemble_order({"grip": CartEntry(1, "gray")}, FEATURED_PRODUCTS, form, now=_NOW)

    assert draft.customer_name == "Friend"
    assert draft.shipping_address.street == "—"
    assert draft.shipping_address.city == "Lebanon"
    assert draft.shipping_address.phone == "Not provided"
    assert draft.shipping_address.email is None
    assert draft.notes is None
    assert draft.payment_method == "Cash On Delivery"


def test_draft_snapshots_lines_and_totals() -> None:
    cart = {
        "light": CartEntry(quantity=1, color="black"),
        "grip": CartEntry(quantity=2, color="black"),
    }
    form = CheckoutForm(
        full_name="Rami K",
        street="Hamra Main Road, Bldg 12",
        city="Zalka",
        phone="+961 70 000 000",
        email="rami@example.com",
        notes="Gate code 12",
        payment_method="cod",
    )

    draft = assemble_order(cart, FEATURED_PRODUCTS, form, now=_NOW)

    assert [(line.name, line.color, line.quantity, line.price) for line in draft.lines] == [
        ("Gym Grips", "Black", 2, "$13.98"),
        ("Undercontrol Gym Light", "Black", 1, "$14.99"),
    ]
    assert draft.subtotal == "$28.97"
    assert draft.shipping == "$2.00"
    assert draft.total == "$30.97"
    assert draft.customer_name == "Rami K"
    assert draft.shipping_address.email == "rami@example.com"
    assert draft.notes == "Gate code 12"
    assert draft.payment_method == "Cash On Delivery"


def test_free_shipping_renders_as_free() -> None:
    cart = {"light": CartEntry(quantity=3, color="black")}

    draft = assemble_order(cart, FEATURED_PRODUCTS, CheckoutForm(), now=_NOW)

    assert draft.shipping == "Free"
    assert draft.total == "$44.97"


def test_draft_does_not_follow_later_cart_changes() -> None:
    cart = {"grip": CartEntry(quantity=1, color="gray")}
    draft = assemble_order(cart, FEATURED_PRODUCTS, CheckoutForm(), now=_NOW)

    cart["grip"] = CartEntry(quantity=9, color="black")

    assert draft.lines[0].quantity == 1
    assert draft.lines[0].color == "Gray"
    with pytest.raises(ValidationError):
        draft.total = "$0.00"


def test_wire_format_uses_camel_case_and_omits_empty_optionals() -> None:
    draft = assemble_order(
        {"grip": CartEntry(1, "gray")}, FEATURED_PRODUCTS, CheckoutForm(), now=_NOW
    )

    wire = draft.to_wire()

    assert wire["orderId"] == draft.order_id
    assert wire["customerName"] == "Friend"
    assert wire["paymentMethod"] == "Cash On Delivery"
    assert "email" not in wire["shippingAddress"]
    assert "notes" not in wire
    assert wire["lines"] == [
        {"name": "Gym Grips", "color": "Gray", "quantity": 1, "price": "$6.99"}
    ]


def test_order_id_is_short_upper_base36() -> None:
    order_id = generate_order_id(_NOW)

    assert re.fullmatch(r"UC-[0-9A-Z]{6,10}", order_id)
    assert order_id == generate_order_id(_NOW)
    assert generate_order_id(datetime(2025, 3, 1, 12, 0, 0, 1000, tzinfo=timezone.utc)) != order_id
