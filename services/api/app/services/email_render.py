from __future__ import annotations

from dataclasses import dataclass
from html import escape

from packages.shared.schemas.order_v1 import OrderDraftV1

_CONTAINER_STYLE = (
    "font-family:'Helvetica Neue',Helvetica,Arial,sans-serif;"
    "background-color:#f4f4f5;padding:32px 16px;"
)
_CARD_STYLE = (
    "max-width:640px;margin:0 auto;background-color:#ffffff;border-radius:16px;"
    "border:1px solid #e4e4e7;padding:32px;"
)
_DIVIDER = '<div style="border-top:1px solid #e4e4e7;margin:24px 0;"></div>'
_ROW_STYLE = "display:flex;justify-content:space-between;margin-bottom:8px;"

_INTRO = (
    "Your order is being processed. Below is a summary for your records. If anything "
    "looks off, just reply to this email and we'll get it sorted fast."
)
_OUTRO = "We'll reach out once the courier picks up your package. Until then, stay under control."


@dataclass(frozen=True, slots=True)
class RenderedEmail:
    html: str
    text: str


def order_subject(draft: OrderDraftV1) -> str:
    return f"Order {draft.order_id} · {draft.total}"


def _line_detail(quantity: int, color: str | None) -> str:
    return f"Qty {quantity} • {color}" if color else f"Qty {quantity}"


def _address_lines(draft: OrderDraftV1) -> list[str]:
    address = draft.shipping_address
    lines = [address.street, address.city, address.phone]
    if address.email:
        lines.append(address.email)
    return lines


def render_order_confirmation(draft: OrderDraftV1) -> RenderedEmail:
    return RenderedEmail(html=_render_html(draft), text=_render_text(draft))


def _render_html(draft: OrderDraftV1) -> str:
    parts: list[str] = [
        f'<div style="{_CONTAINER_STYLE}"><div style="{_CARD_STYLE}">',
        f'<h1 style="font-size:24px;margin-bottom:8px;color:#11181c;">'
        f"Thank you, {escape(draft.customer_name)}!</h1>",
        f'<p style="margin:0 0 24px;color:#3f3f46;font-size:15px;line-height:1.5;">'
        f"{escape(_INTRO)}</p>",
        '<p style="margin:0;color:#71717a;font-size:12px;text-transform:uppercase;">Order</p>',
        f'<p style="font-weight:600;">#{escape(draft.order_id)}</p>',
        '<div style="margin-bottom:16px;">',
    ]

    for line in draft.lines:
        parts.append(
            f'<div style="{_ROW_STYLE}"><div><strong>{escape(line.name)}</strong>'
            f'<div style="color:#71717a;">{escape(_line_detail(line.quantity, line.color))}</div>'
            f'</div><div style="font-weight:600;">{escape(line.price)}</div></div>'
        )
    parts.append("</div>")
    parts.append(_DIVIDER)

    parts.append('<div style="font-size:14px;color:#18181b;">')
    for label, value in (
        ("Subtotal", draft.subtotal),
        ("Shipping", draft.shipping),
        ("Total", draft.total),
    ):
        parts.append(
            f'<div style="{_ROW_STYLE}"><span>{label}</span><strong>{escape(value)}</strong></div>'
        )
    parts.append("</div>")
    parts.append(_DIVIDER)

    address_html = "<br />".join(escape(value) for value in _address_lines(draft))
    parts.append(
        '<div><p style="margin:0;color:#71717a;font-size:12px;text-transform:uppercase;">'
        f'Shipping to</p><p style="margin:8px 0 0;">{address_html}</p></div>'
    )

    if draft.notes:
        parts.append(f'<p style="color:#3f3f46;">Notes: {escape(draft.notes)}</p>')
    if draft.payment_method:
        parts.append(f'<p style="color:#3f3f46;">Payment: {escape(draft.payment_method)}</p>')

    parts.append(f'<p style="margin-top:24px;color:#3f3f46;">{escape(_OUTRO)}</p>')
    parts.append("</div></div>")
    return "".join(parts)


def _render_text(draft: OrderDraftV1) -> str:
    out: list[str] = [
        f"Thank you, {draft.customer_name}!",
        "",
        _INTRO,
        "",
        f"Order #{draft.order_id}",
        "",
    ]
    for line in draft.lines:
        out.append(f"{line.name} ({_line_detail(line.quantity, line.color)}): {line.price}")

    out.extend(
        [
            "",
            f"Subtotal: {draft.subtotal}",
            f"Shipping: {draft.shipping}",
            f"Total: {draft.total}",
            "",
            "Shipping to:",
            *_address_lines(draft),
        ]
    )
    if draft.notes:
        out.append(f"Notes: {draft.notes}")
    if draft.payment_method:
        out.append(f"Payment: {draft.payment_method}")

    out.extend(["", _OUTRO])
    return "\n".join(out)
