from __future__ import annotations

import argparse
import os

import httpx
from packages.storefront.assembler import CheckoutForm
from packages.storefront.cart import CartStore
from packages.storefront.catalogue import FEATURED_PRODUCTS, format_color_label
from packages.storefront.errors import EmptyCartError
from packages.storefront.pricing import (
    ShippingPolicy,
    compute_pricing,
    format_money,
    format_shipping,
)
from packages.storefront.storage import SqlStorage
from packages.storefront.submission import (
    Committed,
    Drafted,
    HttpOrderSubmitter,
    SubmissionPipeline,
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Drive an UnderControl cart from the terminal")
    parser.add_argument(
        "--storage-url",
        default=os.getenv("UC_STORAGE_URL"),
        help="SQLAlchemy URL for cart storage (default: sqlite+pysqlite:///.local/uc_storage.db)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Add one unit of a product")
    add.add_argument("item_id", choices=[item.id for item in FEATURED_PRODUCTS])
    add.add_argument("--color")

    remove = sub.add_parser("remove", help="Remove one unit of a product")
    remove.add_argument("item_id")

    color = sub.add_parser("color", help="Pick a color for a product")
    color.add_argument("item_id", choices=[item.id for item in FEATURED_PRODUCTS])
    color.add_argument("color")

    sub.add_parser("show", help="Print the cart and its totals")

    checkout = sub.add_parser("checkout", help="Confirm the order and send the email")
    checkout.add_argument("--name", default="")
    checkout.add_argument("--street", default="")
    checkout.add_argument("--city", default="")
    checkout.add_argument("--phone", default="")
    checkout.add_argument("--email", default="")
    checkout.add_argument("--notes", default="")
    checkout.add_argument("--payment-method", default="cod")
    checkout.add_argument(
        "--api-url",
        default=os.getenv("UC_API_URL", "http://127.0.0.1:8000"),
        help="Storefront API base URL (default: http://127.0.0.1:8000)",
    )
    checkout.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the order draft without sending it",
    )
    return parser


def _print_cart(cart: CartStore, policy: ShippingPolicy) -> None:
    pricing = compute_pricing(cart.entries(), cart.catalogue, policy)
    if pricing.is_empty:
        print("Your cart is empty.")
        return

    for line in pricing.lines:
        print(
            f"{line.item.name} · {format_color_label(line.color)} · "
            f"Qty {line.quantity}  {format_money(line.line_total)}"
        )
    print(f"Subtotal: {format_money(pricing.subtotal_list_price)}")
    if pricing.discount_amount > 0:
        print(f"Discounts: -{format_money(pricing.discount_amount)}")
    print(f"Total After Discounts: {format_money(pricing.subtotal_discounted)}")
    print(f"Shipping: {format_shipping(pricing.shipping_fee)}")
    print(f"Order Total: {format_money(pricing.order_total)}")


def _checkout(
    cart: CartStore,
    policy: ShippingPolicy,
    args: argparse.Namespace,
    http_client: httpx.Client | None,
) -> int:
    form = CheckoutForm(
        full_name=args.name,
        street=args.street,
        city=args.city,
        phone=args.phone,
        email=args.email,
        notes=args.notes,
        payment_method=args.payment_method,
    )

    client = http_client or httpx.Client(base_url=args.api_url, timeout=30.0)
    try:
        pipeline = SubmissionPipeline(cart, HttpOrderSubmitter(client), policy=policy)
        try:
            draft = pipeline.confirm(form)
        except EmptyCartError as e:
            print(e.user_message)
            return 1

        print(f"Order ID: {draft.order_id}")
        for line in draft.lines:
            print(f"  {line.name} · {line.color or '-'} · Qty {line.quantity}  {line.price}")
        print(f"Subtotal: {draft.subtotal}  Shipping: {draft.shipping}  Total: {draft.total}")

        if args.dry_run:
            return 0

        state = pipeline.pass_order()
        if isinstance(state, Committed):
            print(f"Order passed. Email id: {state.receipt.message_id or 'n/a'}")
            return 0

        if isinstance(state, Drafted) and state.error is not None:
            print(state.error.message)
        else:
            print(f"Order was not sent (state: {state.kind.value}).")
        return 2
    finally:
        if http_client is None:
            client.close()


def main(argv: list[str] | None = None, *, http_client: httpx.Client | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    color = getattr(args, "color", None)
    if color is not None and color not in FEATURED_PRODUCTS.get(args.item_id).colors:
        parser.error(f"{args.item_id} is not available in {color!r}")

    policy = ShippingPolicy.from_env()
    cart = CartStore.open(SqlStorage(args.storage_url), FEATURED_PRODUCTS)

    if args.command == "add":
        entry = cart.increment(args.item_id, args.color)
        print(f"{args.item_id}: {entry.quantity} ({format_color_label(entry.color)})")
        return 0

    if args.command == "remove":
        entry = cart.decrement(args.item_id)
        print(f"{args.item_id}: {entry.quantity if entry else 0}")
        return 0

    if args.command == "color":
        cart.select_color(args.item_id, args.color)
        print(f"{args.item_id}: {format_color_label(cart.selected_color(args.item_id))}")
        return 0

    if args.command == "show":
        _print_cart(cart, policy)
        return 0

    return _checkout(cart, policy, args, http_client)


if __name__ == "__main__":
    raise SystemExit(main())
