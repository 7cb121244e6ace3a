"""Shared checkout view schema (v1).

The checkout page and the order confirmation modal render these payloads. They only
describe the pipeline's current state; actions are dispatched back into the pipeline.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class CheckoutStateV1(str, Enum):
    IDLE = "IDLE"
    DRAFTED = "DRAFTED"
    SENDING = "SENDING"
    COMMITTED = "COMMITTED"


class CheckoutActionTypeV1(str, Enum):
    CONFIRM = "CONFIRM"
    PASS_ORDER = "PASS_ORDER"
    CANCEL = "CANCEL"
    RETRY = "RETRY"


class CheckoutActionV1(BaseModel):
    type: CheckoutActionTypeV1
    label: str
    enabled: bool = True


class CheckoutViewV1(BaseModel):
    version: str = "1"
    state: CheckoutStateV1

    title: str
    summary: str

    order_id: str | None = None

    # Wire form of the order draft, when one exists.
    draft: dict[str, Any] | None = None

    actions: list[CheckoutActionV1] = Field(default_factory=list, max_length=4)
    error: str | None = None
    warnings: list[str] = Field(default_factory=list, max_length=8)
