"""SendGrid v3 mail connector (plain HTTP via `requests`)."""

from __future__ import annotations

import logging
import os

import requests
from dotenv import load_dotenv

from src.backend.certify.errors import EmailDeliveryError

load_dotenv(override=False)

logger = logging.getLogger(__name__)

SENDGRID_MAIL_URL = "https://api.sendgrid.com/v3/mail/send"


class SendGridClient:
    def __init__(
        self,
        *,
        api_key: str,
        from_email: str,
        from_name: str,
        timeout_seconds: int = 30,
    ) -> None:
        self._api_key = api_key
        self._from_email = from_email
        self._from_name = from_name
        self._timeout_seconds = timeout_seconds

    @classmethod
    def from_env(cls) -> "SendGridClient":
        load_dotenv(override=False)
        api_key = os.environ.get("SENDGRID_API_KEY")
        if not api_key:
            raise ValueError("SENDGRID_API_KEY environment variable is not set")
        return cls(
            api_key=api_key,
            from_email=os.environ.get("REMINDER_FROM_EMAIL", "notifications@teamcertify.com"),
            from_name=os.environ.get("REMINDER_FROM_NAME", "TeamCertify Notifications"),
            timeout_seconds=int(os.environ.get("HTTP_TIMEOUT_SECONDS", "30")),
        )

    def send(
        self,
        *,
        to_email: str,
        to_name: str | None,
        subject: str,
        text: str,
        html: str,
    ) -> None:
        recipient = {"email": to_email}
        if to_name:
            recipient["name"] = to_name
        payload = {
            "personalizations": [{"to": [recipient], "subject": subject}],
            "from": {"email": self._from_email, "name": self._from_name},
            "content": [
                {"type": "text/plain", "value": text},
                {"type": "text/html", "value": html},
            ],
        }
        try:
            resp = requests.request(
                "POST",
                SENDGRID_MAIL_URL,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as e:
            raise EmailDeliveryError(f"SendGrid request failed: {e}") from e

        if resp.status_code >= 400:
            logger.error(f"SendGrid error ({resp.status_code}): {resp.text}")
            raise EmailDeliveryError(f"SendGrid error ({resp.status_code})")
