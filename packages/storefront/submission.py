"""Checkout submission pipeline.

    Idle --confirm--> Drafted --pass_order--> Sending --success--> Committed
    Drafted --cancel--> Idle
    Sending --failure--> Drafted (same draft, error set, retry allowed)

Every send is a user action. There is no automatic retry and at most one request is
in flight. No idempotency key reaches the email provider, so retrying after an
ambiguous transport failure can send a second email for the same order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import ClassVar, Protocol

import httpx
from packages.shared.schemas.checkout_v1 import (
    CheckoutActionTypeV1,
    CheckoutActionV1,
    CheckoutStateV1,
    CheckoutViewV1,
)
from packages.shared.schemas.events import CheckoutEventTypeV1, CheckoutEventV1
from packages.shared.schemas.order_v1 import OrderDraftV1, OrderSubmitResultV1
from packages.storefront.assembler import CheckoutForm, assemble_order
from packages.storefront.cart import CartStore
from packages.storefront.errors import (
    InvalidTransitionError,
    SubmissionError,
    SubmissionInProgressError,
    SubmissionRejectedError,
    TransportError,
)
from packages.storefront.pricing import ShippingPolicy
from pydantic import ValidationError

logger = logging.getLogger(__name__)

ORDER_EMAIL_PATH = "/api/order-email"


@dataclass(frozen=True, slots=True)
class SubmissionFailure:
    kind: str
    message: str
    retryable: bool = True


@dataclass(frozen=True, slots=True)
class SubmissionReceipt:
    order_id: str
    message_id: str | None


@dataclass(frozen=True, slots=True)
class Idle:
    kind: ClassVar[CheckoutStateV1] = CheckoutStateV1.IDLE


@dataclass(frozen=True, slots=True)
class Drafted:
    draft: OrderDraftV1
    error: SubmissionFailure | None = None
    kind: ClassVar[CheckoutStateV1] = CheckoutStateV1.DRAFTED


@dataclass(frozen=True, slots=True)
class Sending:
    draft: OrderDraftV1
    kind: ClassVar[CheckoutStateV1] = CheckoutStateV1.SENDING


@dataclass(frozen=True, slots=True)
class Committed:
    draft: OrderDraftV1
    receipt: SubmissionReceipt
    kind: ClassVar[CheckoutStateV1] = CheckoutStateV1.COMMITTED


SubmissionState = Idle | Drafted | Sending | Committed


class OrderSubmitter(Protocol):
    def submit(self, draft: OrderDraftV1) -> SubmissionReceipt: ...


class HttpOrderSubmitter:
    """Posts order drafts to the order-email endpoint."""

    def __init__(self, client: httpx.Client, path: str = ORDER_EMAIL_PATH) -> None:
        self._client = client
        self._path = path

    def submit(self, draft: OrderDraftV1) -> SubmissionReceipt:
        try:
            response = self._client.post(self._path, json=draft.to_wire())
        except httpx.HTTPError as e:
            raise TransportError(f"Could not reach order endpoint: {e}") from e

        try:
            result = OrderSubmitResultV1.model_validate(response.json())
        except (ValueError, ValidationError):
            result = None

        if response.status_code != 200 or result is None or not result.success:
            raise SubmissionRejectedError(
                status_code=response.status_code,
                error=result.error if result is not None else None,
            )

        return SubmissionReceipt(order_id=draft.order_id, message_id=result.id)


class SubmissionPipeline:
    """Drives one shopper's checkout from confirmation to a sent order email."""

    def __init__(
        self,
        cart: CartStore,
        submitter: OrderSubmitter,
        *,
        policy: ShippingPolicy | None = None,
    ) -> None:
        self._cart = cart
        self._submitter = submitter
        self._policy = policy
        self._state: SubmissionState = Idle()
        self.history: list[CheckoutEventV1] = []

    @property
    def state(self) -> SubmissionState:
        return self._state

    def confirm(self, form: CheckoutForm, *, now: datetime | None = None) -> OrderDraftV1:
        if isinstance(self._state, (Sending, Committed)):
            raise InvalidTransitionError("confirm an order", self._state.kind.value)

        # EmptyCartError propagates before any state change.
        draft = assemble_order(
            self._cart.entries(),
            self._cart.catalogue,
            form,
            policy=self._policy,
            now=now,
        )
        self._state = Drafted(draft=draft)
        self._record(
            CheckoutEventTypeV1.ORDER_DRAFTED,
            draft.order_id,
            {"total": draft.total, "lines": len(draft.lines)},
        )
        return draft

    def cancel(self) -> None:
        state = self._state
        if isinstance(state, Idle):
            return
        if not isinstance(state, Drafted):
            raise InvalidTransitionError("cancel the order", state.kind.value)

        self._state = Idle()
        self._record(CheckoutEventTypeV1.ORDER_CANCELLED, state.draft.order_id)

    def pass_order(self) -> SubmissionState:
        state = self._state
        if isinstance(state, Sending):
            raise SubmissionInProgressError()
        if not isinstance(state, Drafted):
            raise InvalidTransitionError("pass the order", state.kind.value)

        draft = state.draft
        self._state = Sending(draft=draft)
        self._record(CheckoutEventTypeV1.SUBMISSION_STARTED, draft.order_id)

        try:
            receipt = self._submitter.submit(draft)
        except SubmissionError as e:
            return self._fail(draft, e)
        except Exception as e:
            logger.exception("Unexpected error submitting order %s", draft.order_id)
            return self._fail(draft, SubmissionError(str(e)))

        self._cart.clear()
        self._state = Committed(draft=draft, receipt=receipt)
        self._record(
            CheckoutEventTypeV1.ORDER_COMMITTED,
            draft.order_id,
            {"message_id": receipt.message_id},
        )
        logger.info("Order %s submitted (message_id=%s)", draft.order_id, receipt.message_id)
        return self._state

    def reset(self) -> None:
        state = self._state
        if isinstance(state, Idle):
            return
        if not isinstance(state, Committed):
            raise InvalidTransitionError("start a new order", state.kind.value)

        self._state = Idle()
        self._record(CheckoutEventTypeV1.CHECKOUT_RESET, state.draft.order_id)

    def view(self) -> CheckoutViewV1:
        state = self._state

        if isinstance(state, Idle):
            return CheckoutViewV1(
                state=state.kind,
                title="Checkout",
                summary="Fill in your shipping details to confirm the order.",
                actions=[
                    CheckoutActionV1(
                        type=CheckoutActionTypeV1.CONFIRM,
                        label="Confirm Order",
                        enabled=not self._cart.is_empty(),
                    )
                ],
            )

        draft = state.draft
        warnings = [_follow_up_notice(draft)]

        if isinstance(state, Drafted):
            pass_action = CheckoutActionTypeV1.PASS_ORDER
            if state.error is not None:
                pass_action = CheckoutActionTypeV1.RETRY
            return CheckoutViewV1(
                state=state.kind,
                title="Ready to pass this order?",
                summary=f"Order ID: {draft.order_id}",
                order_id=draft.order_id,
                draft=draft.to_wire(),
                actions=[
                    CheckoutActionV1(type=pass_action, label="Pass Order"),
                    CheckoutActionV1(type=CheckoutActionTypeV1.CANCEL, label="Close"),
                ],
                error=state.error.message if state.error else None,
                warnings=warnings,
            )

        if isinstance(state, Sending):
            return CheckoutViewV1(
                state=state.kind,
                title="Ready to pass this order?",
                summary=f"Order ID: {draft.order_id}",
                order_id=draft.order_id,
                draft=draft.to_wire(),
                actions=[
                    CheckoutActionV1(
                        type=CheckoutActionTypeV1.PASS_ORDER, label="Sending...", enabled=False
                    ),
                ],
                warnings=warnings,
            )

        return CheckoutViewV1(
            state=state.kind,
            title="Order passed",
            summary=f"Order {draft.order_id} · {draft.total}",
            order_id=draft.order_id,
            draft=draft.to_wire(),
            actions=[],
            warnings=warnings,
        )

    def _fail(self, draft: OrderDraftV1, error: SubmissionError) -> SubmissionState:
        logger.warning(
            "Order %s submission failed kind=%s detail=%s",
            draft.order_id,
            error.kind,
            error,
        )
        self._state = Drafted(
            draft=draft,
            error=SubmissionFailure(
                kind=error.kind,
                message=error.user_message,
                retryable=error.retryable,
            ),
        )
        self._record(
            CheckoutEventTypeV1.SUBMISSION_FAILED,
            draft.order_id,
            {"kind": error.kind, "error": str(error)},
        )
        return self._state

    def _record(
        self,
        event_type: CheckoutEventTypeV1,
        order_id: str | None,
        payload: dict | None = None,
    ) -> None:
        self.history.append(
            CheckoutEventV1(
                order_id=order_id,
                event_type=event_type,
                payload=payload or {},
                created_at=datetime.now(timezone.utc).isoformat(),
            )
        )


def _follow_up_notice(draft: OrderDraftV1) -> str:
    if draft.shipping_address.email:
        return "A copy of this summary was emailed to you."
    return "No email provided. We will follow up on WhatsApp using the number above."
