from __future__ import annotations

from uuid import uuid4

from services.api.app.services.email_base import EmailMessage, SendResult

OUTBOX_LIMIT = 100

# Most recent messages accepted by the mock sender, oldest first, capped at
# OUTBOX_LIMIT so a long-running dev server does not grow without bound.
outbox: list[EmailMessage] = []


def reset_outbox() -> None:
    outbox.clear()


class MockEmailSender:
    provider = "MOCK"

    def send(self, message: EmailMessage) -> SendResult:
        outbox.append(message)
        del outbox[:-OUTBOX_LIMIT]
        return SendResult(message_id=f"mock_{uuid4().hex[:10]}")
