"""Cart pricing.

Everything here is a pure function of the cart and the catalogue. Prices are kept as
display strings in the catalogue and parsed leniently, so "$12.99" and "12.99 USD" both
read as 12.99.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from packages.storefront.cart import CartEntry
from packages.storefront.catalogue import Catalogue, CatalogueItem

ZERO = Decimal("0")
CENT = Decimal("0.01")

_NON_PRICE_CHARS = re.compile(r"[^0-9.]")


def parse_price(value: str | None) -> Decimal:
    if not value:
        return ZERO
    try:
        parsed = Decimal(_NON_PRICE_CHARS.sub("", value))
    except InvalidOperation:
        return ZERO
    return parsed if parsed.is_finite() else ZERO


def format_money(value: Decimal) -> str:
    return f"${value.quantize(CENT, rounding=ROUND_HALF_UP)}"


def format_shipping(fee: Decimal) -> str:
    return "Free" if fee == ZERO else format_money(fee)


@dataclass(frozen=True, slots=True)
class ShippingPolicy:
    """Flat-fee shipping, waived once the discounted subtotal is strictly above the threshold."""

    free_threshold: Decimal = Decimal("30")
    flat_fee: Decimal = Decimal("2")

    @classmethod
    def from_env(cls) -> ShippingPolicy:
        default = cls()
        threshold = os.getenv("UC_FREE_SHIPPING_THRESHOLD", "").strip()
        fee = os.getenv("UC_SHIPPING_FEE", "").strip()
        try:
            return cls(
                free_threshold=Decimal(threshold) if threshold else default.free_threshold,
                flat_fee=Decimal(fee) if fee else default.flat_fee,
            )
        except InvalidOperation as e:
            raise ValueError(
                f"Invalid shipping policy UC_FREE_SHIPPING_THRESHOLD={threshold!r} "
                f"UC_SHIPPING_FEE={fee!r}"
            ) from e

    def fee_for(self, subtotal: Decimal, has_items: bool) -> Decimal:
        if not has_items or subtotal <= ZERO:
            return ZERO
        if subtotal > self.free_threshold:
            return ZERO
        return max(ZERO, self.flat_fee)


@dataclass(frozen=True, slots=True)
class PricedLine:
    item: CatalogueItem
    quantity: int
    color: str
    unit_price: Decimal
    line_total: Decimal


@dataclass(frozen=True, slots=True)
class PricingSnapshot:
    lines: tuple[PricedLine, ...]
    item_count: int
    subtotal_list_price: Decimal
    subtotal_discounted: Decimal
    discount_amount: Decimal
    shipping_fee: Decimal
    order_total: Decimal

    @property
    def is_empty(self) -> bool:
        return not self.lines


def resolve_lines(cart: Mapping[str, CartEntry], catalogue: Catalogue) -> tuple[PricedLine, ...]:
    """Priced lines in catalogue order. Cart entries for unknown items are skipped."""

    lines: list[PricedLine] = []
    for item in catalogue:
        entry = cart.get(item.id)
        if entry is None:
            continue
        unit_price = parse_price(item.effective_price)
        lines.append(
            PricedLine(
                item=item,
                quantity=entry.quantity,
                color=entry.color,
                unit_price=unit_price,
                line_total=unit_price * entry.quantity,
            )
        )
    return tuple(lines)


def compute_pricing(
    cart: Mapping[str, CartEntry],
    catalogue: Catalogue,
    policy: ShippingPolicy | None = None,
) -> PricingSnapshot:
    policy = policy or ShippingPolicy()
    lines = resolve_lines(cart, catalogue)

    subtotal_list = sum((parse_price(line.item.list_price) * line.quantity for line in lines), ZERO)
    subtotal_discounted = sum((line.line_total for line in lines), ZERO)
    shipping_fee = policy.fee_for(subtotal_discounted, has_items=bool(lines))

    return PricingSnapshot(
        lines=lines,
        item_count=sum(line.quantity for line in lines),
        subtotal_list_price=subtotal_list,
        subtotal_discounted=subtotal_discounted,
        discount_amount=max(ZERO, subtotal_list - subtotal_discounted),
        shipping_fee=shipping_fee,
        order_total=subtotal_discounted + shipping_fee,
    )
