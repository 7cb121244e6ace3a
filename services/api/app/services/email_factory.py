from __future__ import annotations

import os

from services.api.app.services.email_base import EmailSender
from services.api.app.services.email_mock import MockEmailSender

SUPPORT_EMAIL = "support@undercontrol.dev"
DEFAULT_FROM_EMAIL = "UNDERCONTROL Orders <orders@mail.undercontrol.dev>"


def get_email_sender() -> EmailSender:
    """Select a sender based on env vars.

    Defaults to the mock sender so tests and local dev never send real email unless
    explicitly configured otherwise.
    """

    mode = os.getenv("UC_EMAIL_PROVIDER", "mock").strip().lower()

    if mode == "mock":
        return MockEmailSender()

    if mode == "resend":
        from services.api.app.services.email_resend import ResendEmailSender

        return ResendEmailSender.from_env()

    raise ValueError(f"Unknown UC_EMAIL_PROVIDER={mode!r}. Expected mock or resend.")


def admin_email() -> str:
    return os.getenv("ADMIN_EMAIL", "").strip() or SUPPORT_EMAIL


def from_email() -> str:
    return os.getenv("FROM_EMAIL", "").strip() or DEFAULT_FROM_EMAIL
