"""Shared checkout event schema (v1).

The submission pipeline keeps an append-only history of its transitions. Clients can
consume these events to render an audit trail of a checkout attempt.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class CheckoutEventTypeV1(str, Enum):
    ORDER_DRAFTED = "ORDER_DRAFTED"
    ORDER_CANCELLED = "ORDER_CANCELLED"
    SUBMISSION_STARTED = "SUBMISSION_STARTED"
    SUBMISSION_FAILED = "SUBMISSION_FAILED"
    ORDER_COMMITTED = "ORDER_COMMITTED"
    CHECKOUT_RESET = "CHECKOUT_RESET"


class CheckoutEventV1(BaseModel):
    order_id: str | None = None
    event_type: CheckoutEventTypeV1
    payload: dict[str, Any] = Field(default_factory=dict)
    created_at: str
