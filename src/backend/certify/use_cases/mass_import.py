"""Batch reconciliation importer for staff certifications.

Takes already-parsed rows (one flat record per CSV line) and reconciles them
against the record store:

- quota: distinct staff emails + existing staff must fit the plan's limit,
  checked before any write
- per row: validate, upsert staff, upsert template, insert the certification
  if no record exists for (staff, template, issue date)
- a failing row is reported in `errors` and never stops the batch

No network calls happen here directly; the store is passed in.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Protocol, Sequence

from src.backend.certify.errors import QuotaError, StoreError, ValidationError
from src.backend.certify.use_cases.plan_limits import PlanLimits
from src.backend.common.models.certify_models import REQUIRED_IMPORT_COLUMNS, ImportRow

logger = logging.getLogger(__name__)

MAX_IMPORT_ROWS = 1000
BATCH_SIZE = 50
DEFAULT_VALIDITY_PERIOD_MONTHS = 12

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MISSING_FIELDS_MESSAGE = "Missing required fields: " + ", ".join(REQUIRED_IMPORT_COLUMNS)


class ImportStore(Protocol):
    def get_subscription_plan(self, account_id: str) -> str | None: ...

    def count_staff(self, account_id: str) -> int: ...

    def upsert_staff(
        self, account_id: str, *, email: str, full_name: str, job_title: str | None
    ) -> tuple[dict[str, Any], bool]: ...

    def upsert_template(
        self, account_id: str, *, name: str, validity_period_months: int
    ) -> tuple[dict[str, Any], bool]: ...

    def find_certification(
        self, account_id: str, *, staff_id: str, template_id: str, issue_date: str | None
    ) -> dict[str, Any] | None: ...

    def insert_certification(
        self,
        account_id: str,
        *,
        staff_id: str,
        template_id: str,
        issue_date: str | None,
        expiry_date: str,
        notes: str | None,
        document_url: str | None,
    ) -> dict[str, Any]: ...


@dataclass(frozen=True, slots=True)
class RowError:
    row: int
    data: Any
    error: str

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "data": self.data, "error": self.error}


@dataclass(slots=True)
class ImportResult:
    success: int = 0
    errors: list[RowError] = field(default_factory=list)
    staff_created: int = 0
    templates_created: int = 0
    certifications_created: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "errors": [e.to_dict() for e in self.errors],
            "staffCreated": self.staff_created,
            "templatesCreated": self.templates_created,
            "certificationsCreated": self.certifications_created,
        }


class RowRejected(Exception):
    """Ends processing of the current row with a reportable message."""


def normalize_email(value: str | None) -> str:
    return (value or "").strip().lower()


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value))


def parse_calendar_date(value: str) -> date | None:
    """Parse `YYYY-MM-DD` or an ISO-8601 timestamp down to its calendar date."""

    s = (value or "").strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def parse_validity_period(value: str) -> int | None:
    """Blank -> default; a positive whole number -> that number; otherwise None."""

    s = (value or "").strip()
    if not s:
        return DEFAULT_VALIDITY_PERIOD_MONTHS
    try:
        months = int(s)
    except ValueError:
        return None
    return months if months > 0 else None


def distinct_staff_emails(rows: Sequence[Any]) -> set[str]:
    emails: set[str] = set()
    for raw in rows:
        if not isinstance(raw, dict):
            continue
        value = raw.get("staff_email")
        if not isinstance(value, str):
            continue
        email = normalize_email(value)
        if email:
            emails.add(email)
    return emails


@dataclass(frozen=True, slots=True)
class _ValidatedRow:
    email: str
    full_name: str
    job_title: str | None
    certification_name: str
    validity_period_months: int
    issue_date: str | None
    expiry_date: str
    notes: str | None
    document_url: str | None


def _optional(text: str) -> str | None:
    return text or None


def validate_row(raw: Any) -> _ValidatedRow:
    """Check one row before any write; raises `RowRejected` with the row's message."""

    if not isinstance(raw, dict):
        raise RowRejected(MISSING_FIELDS_MESSAGE)
    row = ImportRow.model_validate(raw)

    if any(not row.text(col) for col in REQUIRED_IMPORT_COLUMNS):
        raise RowRejected(MISSING_FIELDS_MESSAGE)

    email = normalize_email(row.staff_email)
    if not is_valid_email(email):
        raise RowRejected("Invalid email format")

    expiry = parse_calendar_date(row.text("certification_expiry_date"))
    if expiry is None:
        raise RowRejected("Invalid expiry date format")

    issue: date | None = None
    if row.text("certification_issue_date"):
        issue = parse_calendar_date(row.text("certification_issue_date"))
        if issue is None:
            raise RowRejected("Invalid issue date format")

    validity = parse_validity_period(row.text("validity_period_months"))
    if validity is None:
        raise RowRejected("Invalid validity period: must be a positive whole number of months")

    return _ValidatedRow(
        email=email,
        full_name=row.text("staff_full_name"),
        job_title=_optional(row.text("staff_job_title")),
        certification_name=row.text("certification_name"),
        validity_period_months=validity,
        issue_date=issue.isoformat() if issue else None,
        expiry_date=expiry.isoformat(),
        notes=_optional(row.text("certification_notes")),
        document_url=_optional(row.text("certification_document_url")),
    )


class MassImporter:
    def __init__(
        self,
        store: ImportStore,
        *,
        plan_limits: PlanLimits | None = None,
        max_rows: int = MAX_IMPORT_ROWS,
        batch_size: int = BATCH_SIZE,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._store = store
        self._plan_limits = plan_limits or PlanLimits()
        self._max_rows = max_rows
        self._batch_size = batch_size

    def check_quota(self, account_id: str, rows: Sequence[Any]) -> None:
        plan, limit = self._plan_limits.resolve(self._store.get_subscription_plan(account_id))
        current = self._store.count_staff(account_id)
        attempted = len(distinct_staff_emails(rows))
        if current + attempted > limit:
            logger.info(
                f"Import rejected for account {account_id}: plan={plan} limit={limit} "
                f"current={current} attempted={attempted}"
            )
            raise QuotaError(plan=plan, limit=limit, current=current, attempted=attempted)

    def run(self, account_id: str, rows: Sequence[Any]) -> ImportResult:
        if not isinstance(rows, (list, tuple)):
            raise ValidationError("Invalid CSV data")
        if not rows:
            raise ValidationError("No rows to import")
        if len(rows) > self._max_rows:
            raise ValidationError(f"Too many rows. Maximum {self._max_rows} rows allowed.")

        self.check_quota(account_id, rows)

        result = ImportResult()
        for start in range(0, len(rows), self._batch_size):
            batch = rows[start : start + self._batch_size]
            for offset, raw in enumerate(batch):
                row_number = start + offset + 1
                try:
                    self._import_row(account_id, raw, result)
                except RowRejected as e:
                    result.errors.append(RowError(row=row_number, data=raw, error=str(e)))
                    continue
                except Exception as e:
                    logger.exception(f"Unexpected error importing row {row_number}")
                    result.errors.append(
                        RowError(row=row_number, data=raw, error=f"Unexpected error: {e}")
                    )
                    continue
                result.success += 1

        logger.info(
            f"Import finished for account {account_id}: {result.success}/{len(rows)} rows, "
            f"{len(result.errors)} errors, staff+{result.staff_created}, "
            f"templates+{result.templates_created}, certifications+{result.certifications_created}"
        )
        return result

    def _import_row(self, account_id: str, raw: Any, result: ImportResult) -> None:
        row = validate_row(raw)

        try:
            staff, staff_created = self._store.upsert_staff(
                account_id,
                email=row.email,
                full_name=row.full_name,
                job_title=row.job_title,
            )
        except StoreError as e:
            raise RowRejected(f"Failed to create/update staff: {e.message}") from e
        if staff_created:
            result.staff_created += 1

        try:
            template, template_created = self._store.upsert_template(
                account_id,
                name=row.certification_name,
                validity_period_months=row.validity_period_months,
            )
        except StoreError as e:
            raise RowRejected(f"Failed to create certification template: {e.message}") from e
        if template_created:
            result.templates_created += 1

        try:
            existing = self._store.find_certification(
                account_id,
                staff_id=staff["id"],
                template_id=template["id"],
                issue_date=row.issue_date,
            )
            if existing:
                return
            self._store.insert_certification(
                account_id,
                staff_id=staff["id"],
                template_id=template["id"],
                issue_date=row.issue_date,
                expiry_date=row.expiry_date,
                notes=row.notes,
                document_url=row.document_url,
            )
        except StoreError as e:
            raise RowRejected(f"Failed to create certification: {e.message}") from e
        result.certifications_created += 1
