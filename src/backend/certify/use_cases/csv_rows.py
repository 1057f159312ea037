"""CSV <-> import rows.

Used by the command-line uploader before it posts rows to the import endpoint,
and to write the per-row error report afterwards.
"""

from __future__ import annotations

import csv
import io
from typing import Any, Iterable, Sequence

from src.backend.common.models.certify_models import REQUIRED_IMPORT_COLUMNS

ERROR_REPORT_COLUMNS = ["Row", "Error", "Staff Name", "Staff Email", "Certification"]


def parse_csv_rows(text: str) -> tuple[list[str], list[dict[str, str]]]:
    """Return `(headers, rows)`; header names are trimmed and blank lines skipped."""

    reader = csv.reader(io.StringIO((text or "").lstrip("\ufeff")))
    try:
        header = next(reader)
    except StopIteration:
        return [], []
    headers = [h.strip() for h in header]

    rows: list[dict[str, str]] = []
    for record in reader:
        if not any((cell or "").strip() for cell in record):
            continue
        row = {}
        for i, name in enumerate(headers):
            if not name:
                continue
            row[name] = record[i] if i < len(record) else ""
        rows.append(row)
    return headers, rows


def missing_required_columns(headers: Iterable[str]) -> list[str]:
    present = set(headers)
    return [col for col in REQUIRED_IMPORT_COLUMNS if col not in present]


def render_error_report(errors: Sequence[dict[str, Any]]) -> str:
    """Render import errors (as returned by the API) as a CSV document."""

    out = io.StringIO()
    writer = csv.DictWriter(out, fieldnames=ERROR_REPORT_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for err in errors:
        data = err.get("data") if isinstance(err.get("data"), dict) else {}
        writer.writerow(
            {
                "Row": err.get("row", ""),
                "Error": err.get("error", ""),
                "Staff Name": data.get("staff_full_name") or "",
                "Staff Email": data.get("staff_email") or "",
                "Certification": data.get("certification_name") or "",
            }
        )
    return out.getvalue()
