"""Subject, plain-text and HTML bodies for expiry reminder emails."""

from __future__ import annotations

from dataclasses import dataclass
from html import escape
from urllib.parse import quote

FOOTER_STYLE = "font-size: 12px; color: #6c757d;"
BUTTON_STYLE = (
    "display: inline-block; color: white; padding: 12px 24px; "
    "text-decoration: none; border-radius: 5px; font-weight: bold;"
)


@dataclass(frozen=True, slots=True)
class ReminderEmail:
    subject: str
    text: str
    html: str


def certification_url(base_url: str, *, staff_id: str, certification_id: str) -> str:
    return f"{base_url}/?go=cert&staffId={quote(str(staff_id), safe='')}&certId={quote(str(certification_id), safe='')}"


def staff_url(base_url: str, *, staff_id: str) -> str:
    return f"{base_url}/?go=staff&staffId={quote(str(staff_id), safe='')}"


def _page(title: str, accent: str, body: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
</head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
  <div style="background-color: #f8f9fa; padding: 30px; border-radius: 10px; border-left: 5px solid {accent};">
{body}
  </div>
</body>
</html>"""


def staff_reminder(*, staff_name: str, certification_name: str, cert_url: str) -> ReminderEmail:
    name = escape(staff_name)
    cert = escape(certification_name)
    body = f"""    <h2 style="color: #dc3545; margin-top: 0;">Certification Expiry Notice</h2>
    <p>Dear {name},</p>
    <p>This is an important reminder that your qualification <strong>"{cert}"</strong> is expiring today.</p>
    <div style="background-color: #fff; padding: 20px; border-radius: 5px; margin: 20px 0; border: 1px solid #dee2e6;">
      <h3 style="margin-top: 0; color: #495057;">Action Required</h3>
      <p>Please take immediate action to renew this certification to maintain your compliance status.</p>
    </div>
    <p><a href="{escape(cert_url)}" style="{BUTTON_STYLE} background-color: #007bff;">View Certification Details</a></p>
    <p>If you have any questions, please contact your administrator.</p>
    <hr style="margin: 30px 0; border: none; border-top: 1px solid #dee2e6;">
    <p style="{FOOTER_STYLE}">This is an automated message from TeamCertify. Please do not reply to this email.</p>"""
    return ReminderEmail(
        subject=f'Your Qualification "{certification_name}" is Expiring Today',
        text=(
            f'Your qualification "{certification_name}" is expiring today. '
            f"Please take action to renew it. View details: {cert_url}"
        ),
        html=_page("Certification Expiry Reminder", "#dc3545", body),
    )


def admin_reminder(
    *, staff_name: str, certification_name: str, cert_url: str, profile_url: str
) -> ReminderEmail:
    name = escape(staff_name)
    cert = escape(certification_name)
    body = f"""    <h2 style="color: #856404; margin-top: 0;">Certification Expiry Alert</h2>
    <p>Dear Administrator,</p>
    <p>A staff member's certification is expiring today and requires attention:</p>
    <div style="background-color: #fff; padding: 20px; border-radius: 5px; margin: 20px 0; border: 1px solid #dee2e6;">
      <h3 style="margin-top: 0; color: #495057;">Expiry Details</h3>
      <p><strong>Staff Member:</strong> {name}</p>
      <p><strong>Certification:</strong> {cert}</p>
      <p><strong>Expiry Date:</strong> Today</p>
    </div>
    <div style="margin: 20px 0;">
      <a href="{escape(cert_url)}" style="{BUTTON_STYLE} background-color: #007bff; margin-right: 10px;">View Certification</a>
      <a href="{escape(profile_url)}" style="{BUTTON_STYLE} background-color: #28a745;">View Staff Profile</a>
    </div>
    <p>Please follow up with the staff member to ensure compliance is maintained.</p>
    <hr style="margin: 30px 0; border: none; border-top: 1px solid #dee2e6;">
    <p style="{FOOTER_STYLE}">This is an automated message from TeamCertify.</p>"""
    return ReminderEmail(
        subject=f"Certification Expiry Alert: {staff_name} - {certification_name}",
        text=(
            f'Certification Expiry Alert: {staff_name}\'s qualification "{certification_name}" '
            f"is expiring today. View details: {cert_url}"
        ),
        html=_page("Certification Expiry Alert", "#ffc107", body),
    )
