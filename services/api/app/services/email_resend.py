from __future__ import annotations

import json
import os
import urllib.error
import urllib.request

from services.api.app.services.email_base import (
    EmailMessage,
    EmailNotConfiguredError,
    EmailProviderError,
    SendResult,
)

RESEND_API_URL = "https://api.resend.com/emails"


class ResendEmailSender:
    """Transactional email via the Resend HTTP API."""

    provider = "RESEND"

    def __init__(self, *, api_key: str, api_url: str = RESEND_API_URL) -> None:
        self._api_key = api_key
        self._api_url = api_url

    @classmethod
    def from_env(cls) -> ResendEmailSender:
        api_key = os.getenv("RESEND_API_KEY", "").strip()
        if not api_key:
            raise EmailNotConfiguredError("RESEND_API_KEY")
        return cls(api_key=api_key, api_url=os.getenv("UC_RESEND_API_URL", RESEND_API_URL))

    def send(self, message: EmailMessage) -> SendResult:
        body = {
            "from": message.sender,
            "to": list(message.to),
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
        }
        payload = _resend_post_json(api_key=self._api_key, url=self._api_url, body=body)

        message_id = payload.get("id") if isinstance(payload, dict) else None
        return SendResult(message_id=str(message_id) if message_id else None)


def _resend_post_json(*, api_key: str, url: str, body: dict) -> object:
    req = urllib.request.Request(url, method="POST")
    req.add_header("Authorization", f"Bearer {api_key}")
    req.add_header("Content-Type", "application/json")

    try:
        with urllib.request.urlopen(req, data=json.dumps(body).encode("utf-8"), timeout=30) as resp:
            raw = resp.read().decode("utf-8")
    except urllib.error.HTTPError as e:
        detail = e.read().decode("utf-8", errors="replace")
        raise EmailProviderError("Resend", detail, status_code=e.code) from e
    except urllib.error.URLError as e:
        raise EmailProviderError("Resend", str(e.reason)) from e

    try:
        return json.loads(raw) if raw else {}
    except ValueError as e:
        raise EmailProviderError("Resend", f"Unexpected response body: {raw!r}") from e
