"""
Request and row models shared by the certify API and use cases.

"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Mass import
# ---------------------------------------------------------------------------

REQUIRED_IMPORT_COLUMNS = (
    "staff_full_name",
    "staff_email",
    "certification_name",
    "certification_expiry_date",
)
OPTIONAL_IMPORT_COLUMNS = (
    "staff_job_title",
    "certification_issue_date",
    "certification_notes",
    "certification_document_url",
    "validity_period_months",
)


class ImportRow(BaseModel):
    """One flat CSV record. Unknown columns are kept so errors can echo them."""

    model_config = ConfigDict(extra="allow")

    staff_full_name: Optional[str] = None
    staff_email: Optional[str] = None
    staff_job_title: Optional[str] = None
    certification_name: Optional[str] = None
    certification_expiry_date: Optional[str] = None
    certification_issue_date: Optional[str] = None
    validity_period_months: Optional[str] = None
    certification_notes: Optional[str] = None
    certification_document_url: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Optional[str]:
        # Spreadsheet exports and JSON clients send numbers for some columns.
        if value is None or isinstance(value, str):
            return value
        return str(value)

    def text(self, name: str) -> str:
        """Trimmed value of a column, empty string when absent."""
        return (getattr(self, name, None) or "").strip()


class MassImportRequest(BaseModel):
    data: List[Any]


# ---------------------------------------------------------------------------
# Billing
# ---------------------------------------------------------------------------


class CheckoutRequest(BaseModel):
    plan_id: str
    billing_cycle: str = Field(default="monthly")


class UrlResponse(BaseModel):
    url: str
