from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class EmailSenderError(Exception):
    """Base class for email sender errors."""


class EmailNotConfiguredError(EmailSenderError):
    def __init__(self, missing: str) -> None:
        super().__init__(f"Email service is not configured. Please set {missing}.")
        self.missing = missing


class EmailProviderError(EmailSenderError):
    def __init__(self, provider: str, detail: str, status_code: int | None = None) -> None:
        super().__init__(f"{provider} rejected the email. status={status_code} detail={detail}")
        self.provider = provider
        self.detail = detail
        self.status_code = status_code


@dataclass(frozen=True, slots=True)
class EmailMessage:
    sender: str
    to: tuple[str, ...]
    subject: str
    html: str
    text: str


@dataclass(frozen=True, slots=True)
class SendResult:
    message_id: str | None


class EmailSender(Protocol):
    provider: str

    def send(self, message: EmailMessage) -> SendResult: ...
