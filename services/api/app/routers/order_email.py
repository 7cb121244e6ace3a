from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from packages.shared.schemas.order_v1 import OrderDraftV1, OrderSubmitResultV1
from pydantic import ValidationError
from services.api.app.services.email_base import (
    EmailMessage,
    EmailNotConfiguredError,
    EmailProviderError,
)
from services.api.app.services.email_factory import admin_email, from_email, get_email_sender
from services.api.app.services.email_render import order_subject, render_order_confirmation

logger = logging.getLogger(__name__)

router = APIRouter()


def _result(status_code: int, result: OrderSubmitResultV1) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=result.model_dump(exclude_none=True))


def _failure(status_code: int, error: str) -> JSONResponse:
    return _result(status_code, OrderSubmitResultV1(success=False, error=error))


def _send_error_response(order_id: str, e: Exception) -> JSONResponse:
    if isinstance(e, EmailNotConfiguredError):
        logger.error("Order %s not sent: %s", order_id, e)
        return _failure(500, str(e))

    if isinstance(e, EmailProviderError):
        logger.error("Order %s rejected by email provider: %s", order_id, e)
        return _failure(502, f"Unable to send email via {e.provider}.")

    logger.error("Failed to send order email for %s", order_id, exc_info=e)
    return _failure(500, "Unexpected error while sending email.")


def recipients_for(draft: OrderDraftV1) -> tuple[str, ...]:
    """Admin first, then the customer. Duplicates collapse to one address."""

    addresses = [admin_email()]
    if draft.shipping_address.email:
        addresses.append(draft.shipping_address.email)
    return tuple(dict.fromkeys(addresses))


@router.post("/api/order-email", response_model=OrderSubmitResultV1)
async def send_order_email(request: Request) -> JSONResponse:
    try:
        sender = get_email_sender()
    except EmailNotConfiguredError as e:
        logger.error("Email sender unavailable: %s", e)
        return _failure(500, str(e))
    except ValueError as e:
        logger.error("Email sender misconfigured: %s", e)
        return _failure(500, "Email service is not configured.")

    try:
        draft = OrderDraftV1.model_validate(await request.json())
    except (ValueError, ValidationError) as e:
        logger.warning("Invalid order payload: %s", e)
        return _failure(400, "Malformed payload.")

    rendered = render_order_confirmation(draft)
    message = EmailMessage(
        sender=from_email(),
        to=recipients_for(draft),
        subject=order_subject(draft),
        html=rendered.html,
        text=rendered.text,
    )

    try:
        result = await run_in_threadpool(sender.send, message)
    except Exception as e:
        return _send_error_response(draft.order_id, e)

    logger.info(
        "Order %s email sent via %s to %d recipient(s)",
        draft.order_id,
        sender.provider,
        len(message.to),
    )
    return _result(200, OrderSubmitResultV1(success=True, id=result.message_id))
