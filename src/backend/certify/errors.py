"""Error taxonomy shared by integrations, use cases and routers.

Every error carries the HTTP status it maps to at the API boundary. Use-case
code raises these without importing FastAPI; `app.py` renders them as
`{"error": message}`.
"""

from __future__ import annotations


class CertifyError(Exception):
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AuthError(CertifyError):
    """Missing or invalid credentials."""

    status_code = 401


class ValidationError(CertifyError):
    """Malformed request shape, row-count overflow or a bad field value."""

    status_code = 400


class QuotaError(CertifyError):
    """Importing would push the account over its plan's staff limit."""

    status_code = 400

    def __init__(self, *, plan: str, limit: int, current: int, attempted: int) -> None:
        super().__init__(
            f"Staff limit exceeded. Your {plan} plan allows {limit} staff members. "
            f"You currently have {current} and are trying to add {attempted} more."
        )
        self.plan = plan
        self.limit = limit
        self.current = current
        self.attempted = attempted


class StoreError(CertifyError):
    """The record store returned a non-2xx response or an unreadable body."""

    status_code = 500


class BillingError(CertifyError):
    status_code = 400


class EmailDeliveryError(CertifyError):
    status_code = 500
