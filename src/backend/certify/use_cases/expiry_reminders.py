"""Daily certification expiry reminders.

For every certification the store reports as expiring today, email the staff
member and the account administrator. A failed email is counted and reported;
it never stops the run.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Protocol

from src.backend.certify.errors import EmailDeliveryError
from src.backend.certify.use_cases.reminder_templates import (
    ReminderEmail,
    admin_reminder,
    certification_url,
    staff_reminder,
    staff_url,
)

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MAX_EMAIL_LENGTH = 254


class Mailer(Protocol):
    def send(
        self, *, to_email: str, to_name: str | None, subject: str, text: str, html: str
    ) -> None: ...


@dataclass(slots=True)
class ReminderSummary:
    total_certifications: int = 0
    emails_sent: int = 0
    emails_failed: int = 0
    failures: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        if self.total_certifications == 0:
            return {
                "success": True,
                "message": "No certifications expiring today",
                "count": 0,
            }
        payload: dict[str, Any] = {
            "success": True,
            "message": "Certification expiry reminders processed",
            "totalCertifications": self.total_certifications,
            "emailsSent": self.emails_sent,
            "emailsFailed": self.emails_failed,
        }
        if self.failures:
            payload["failures"] = list(self.failures)
        return payload


def is_valid_email(email: str | None) -> bool:
    return bool(email) and len(email) <= MAX_EMAIL_LENGTH and bool(EMAIL_RE.match(email))


def mask_email(email: str) -> str:
    """`jane.doe@co.com` -> `ja******@co.com` (for logs and failure lists)."""
    local, _, domain = (email or "").partition("@")
    return f"{local[:2]}{'*' * max(0, len(local) - 2)}@{domain}"


def _deliver(mailer: Mailer, *, to_email: str, to_name: str, email: ReminderEmail) -> bool:
    try:
        mailer.send(
            to_email=to_email,
            to_name=to_name,
            subject=email.subject,
            text=email.text,
            html=email.html,
        )
    except EmailDeliveryError as e:
        logger.error(f"Email to {mask_email(to_email)} failed: {e.message}")
        return False
    return True


def send_expiry_reminders(
    store: Any,
    mailer: Mailer,
    *,
    default_admin_email: str,
    default_base_url: str,
    delay_seconds: float = 0.1,
) -> ReminderSummary:
    settings = store.get_app_settings(["admin_email", "app_base_url"])
    admin_email = settings.get("admin_email") or default_admin_email
    base_url = (settings.get("app_base_url") or default_base_url).rstrip("/")

    certifications = store.get_expiring_certifications()
    summary = ReminderSummary(total_certifications=len(certifications))
    if not certifications:
        logger.info("No certifications expiring today")
        return summary

    logger.info(f"Found {len(certifications)} expiring certifications")

    for cert in certifications:
        staff_name = cert.get("staff_full_name") or ""
        cert_name = cert.get("certification_name") or ""
        staff_email = cert.get("staff_email") or ""

        if not is_valid_email(staff_email) or not is_valid_email(admin_email):
            logger.error("Invalid email address detected")
            summary.emails_failed += 2
            summary.failures.append(f"Invalid email addresses for {staff_name}")
            continue

        cert_link = certification_url(
            base_url, staff_id=cert.get("staff_id"), certification_id=cert.get("certification_id")
        )
        profile_link = staff_url(base_url, staff_id=cert.get("staff_id"))

        if _deliver(
            mailer,
            to_email=staff_email,
            to_name=staff_name,
            email=staff_reminder(staff_name=staff_name, certification_name=cert_name, cert_url=cert_link),
        ):
            summary.emails_sent += 1
        else:
            summary.emails_failed += 1
            summary.failures.append(f"Staff email to {mask_email(staff_email)}")

        if _deliver(
            mailer,
            to_email=admin_email,
            to_name="Administrator",
            email=admin_reminder(
                staff_name=staff_name,
                certification_name=cert_name,
                cert_url=cert_link,
                profile_url=profile_link,
            ),
        ):
            summary.emails_sent += 1
        else:
            summary.emails_failed += 1
            summary.failures.append(f"Admin email to {mask_email(admin_email)}")

        if delay_seconds > 0:
            time.sleep(delay_seconds)

    logger.info(f"Email summary: {summary.emails_sent} sent, {summary.emails_failed} failed")
    return summary
