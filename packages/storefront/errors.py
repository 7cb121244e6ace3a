from __future__ import annotations


class StorefrontError(Exception):
    """Base class for storefront errors."""


class StoredStateParseError(StorefrontError):
    """A persisted cart or color payload could not be parsed.

    Raised only inside storage normalization, which recovers it as empty state.
    """


class CheckoutValidationError(StorefrontError):
    code = "Validation"
    user_message = "Please review your order and try again."


class EmptyCartError(CheckoutValidationError):
    code = "EmptyCart"
    user_message = "Add at least one product before checking out."

    def __init__(self) -> None:
        super().__init__("Cannot assemble an order from an empty cart")


class InvalidTransitionError(StorefrontError):
    def __init__(self, action: str, state: str) -> None:
        super().__init__(f"Cannot {action} while checkout is {state}")
        self.action = action
        self.state = state


class SubmissionInProgressError(InvalidTransitionError):
    def __init__(self) -> None:
        super().__init__("pass order", "SENDING")


class SubmissionError(StorefrontError):
    """Base class for failures sending an order draft. All of them are retryable."""

    kind = "SubmissionError"
    retryable = True
    user_message = "We couldn't send the order email. Please try again."


class TransportError(SubmissionError):
    kind = "TransportError"
    user_message = "Unable to reach the email service. Please try again in a moment."


class SubmissionRejectedError(SubmissionError):
    kind = "SubmissionRejected"

    def __init__(self, status_code: int, error: str | None) -> None:
        super().__init__(
            f"Order submission rejected. status={status_code} error={error or 'unknown'}"
        )
        self.status_code = status_code
        self.error = error
