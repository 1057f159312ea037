from __future__ import annotations

import pytest

from src.backend.certify.errors import QuotaError, ValidationError
from src.backend.certify.use_cases.mass_import import (
    MISSING_FIELDS_MESSAGE,
    MassImporter,
    distinct_staff_emails,
    parse_calendar_date,
    parse_validity_period,
    RowRejected,
    validate_row,
)
from src.backend.certify.use_cases.plan_limits import PlanLimits
from src.backend.tests.fakes import InMemoryStore

ACCOUNT = "acct-1"


def _row(**overrides) -> dict:
    row = {
        "staff_full_name": "Jane Doe",
        "staff_email": "Jane@Co.com",
        "certification_name": "CPR",
        "certification_expiry_date": "2025-01-01",
    }
    row.update(overrides)
    return row


def _rows_for(n: int) -> list[dict]:
    return [_row(staff_email=f"user{i}@co.com", staff_full_name=f"User {i}") for i in range(n)]


def test_single_row_creates_staff_template_and_certification() -> None:
    store = InMemoryStore()
    result = MassImporter(store).run(ACCOUNT, [_row()])

    assert result.to_dict() == {
        "success": 1,
        "errors": [],
        "staffCreated": 1,
        "templatesCreated": 1,
        "certificationsCreated": 1,
    }
    staff = store.staff[(ACCOUNT, "jane@co.com")]
    assert staff["full_name"] == "Jane Doe"
    assert store.templates[(ACCOUNT, "CPR")]["validity_period_months"] == 12
    assert store.certifications[0]["expiry_date"] == "2025-01-01"
    assert store.certifications[0]["issue_date"] is None


def test_reimport_is_idempotent() -> None:
    store = InMemoryStore()
    importer = MassImporter(store)
    rows = [_row(), _row(staff_email="bob@co.com", staff_full_name="Bob", certification_name="First Aid")]

    importer.run(ACCOUNT, rows)
    second = importer.run(ACCOUNT, rows)

    assert second.to_dict() == {
        "success": 2,
        "errors": [],
        "staffCreated": 0,
        "templatesCreated": 0,
        "certificationsCreated": 0,
    }
    assert len(store.certifications) == 2
    assert len(store.staff) == 2


def test_invalid_expiry_date_is_a_row_error() -> None:
    store = InMemoryStore()
    result = MassImporter(store).run(ACCOUNT, [_row(certification_expiry_date="not-a-date")])

    assert result.success == 0
    assert [(e.row, e.error) for e in result.errors] == [(1, "Invalid expiry date format")]
    assert store.staff == {}


def test_too_many_rows_fails_before_any_write() -> None:
    store = InMemoryStore(plan="professional")
    with pytest.raises(ValidationError) as exc:
        MassImporter(store).run(ACCOUNT, _rows_for(1001))
    assert exc.value.message == "Too many rows. Maximum 1000 rows allowed."
    assert store.staff == {}


def test_empty_and_non_list_payloads_are_rejected() -> None:
    importer = MassImporter(InMemoryStore())
    with pytest.raises(ValidationError, match="No rows to import"):
        importer.run(ACCOUNT, [])
    with pytest.raises(ValidationError, match="Invalid CSV data"):
        importer.run(ACCOUNT, {"staff_email": "a@b.co"})


def test_quota_boundary_is_exclusive() -> None:
    store = InMemoryStore(plan="starter")
    for i in range(4):
        store.add_staff(ACCOUNT, f"existing{i}@co.com")

    # 4 existing + 6 new == 10 is allowed
    result = MassImporter(store).run(ACCOUNT, _rows_for(6))
    assert result.success == 6

    store2 = InMemoryStore(plan="starter")
    for i in range(4):
        store2.add_staff(ACCOUNT, f"existing{i}@co.com")
    with pytest.raises(QuotaError) as exc:
        MassImporter(store2).run(ACCOUNT, _rows_for(7))

    err = exc.value
    assert (err.plan, err.limit, err.current, err.attempted) == ("starter", 10, 4, 7)
    assert err.message == (
        "Staff limit exceeded. Your starter plan allows 10 staff members. "
        "You currently have 4 and are trying to add 7 more."
    )
    assert store2.count_staff(ACCOUNT) == 4
    assert store2.templates == {}


def test_unknown_or_unset_plan_gets_lowest_limit() -> None:
    limits = PlanLimits(limits={"starter": 3, "growth": 5}, default_plan="starter")

    with pytest.raises(QuotaError) as exc:
        MassImporter(InMemoryStore(plan="enterprise-legacy"), plan_limits=limits).run(ACCOUNT, _rows_for(4))
    assert exc.value.plan == "enterprise-legacy"
    assert exc.value.limit == 3

    with pytest.raises(QuotaError) as exc2:
        MassImporter(InMemoryStore(plan=None), plan_limits=limits).run(ACCOUNT, _rows_for(4))
    assert exc2.value.plan == "starter"


def test_quota_counts_distinct_normalized_emails() -> None:
    rows = [
        _row(staff_email="Jane@Co.com"),
        _row(staff_email="  jane@co.com "),
        _row(staff_email=""),
        _row(staff_email=None),
        "not a row",
    ]
    assert distinct_staff_emails(rows) == {"jane@co.com"}


def test_missing_required_fields_reports_original_index() -> None:
    store = InMemoryStore()
    rows = [
        _row(staff_email="a@co.com"),
        _row(staff_email="b@co.com", staff_full_name="   "),
        _row(staff_email="c@co.com", certification_name=None),
        _row(staff_email="d@co.com"),
    ]
    result = MassImporter(store, batch_size=2).run(ACCOUNT, rows)

    assert result.success == 2
    assert [e.row for e in result.errors] == [2, 3]
    assert all(e.error == MISSING_FIELDS_MESSAGE for e in result.errors)
    assert result.errors[0].data == rows[1]
    assert (ACCOUNT, "b@co.com") not in store.staff
    assert (ACCOUNT, "c@co.com") not in store.staff


def test_email_casing_and_whitespace_resolve_to_one_staff_member() -> None:
    store = InMemoryStore()
    rows = [
        _row(staff_email="Jane@Co.com", certification_name="CPR"),
        _row(staff_email="  JANE@co.COM ", certification_name="First Aid", staff_job_title="Nurse"),
    ]
    result = MassImporter(store).run(ACCOUNT, rows)

    assert result.staff_created == 1
    assert result.templates_created == 2
    assert result.certifications_created == 2
    assert list(store.staff) == [(ACCOUNT, "jane@co.com")]
    assert store.staff[(ACCOUNT, "jane@co.com")]["job_title"] == "Nurse"


def test_duplicate_rows_get_their_own_indexes() -> None:
    store = InMemoryStore()
    bad = _row(staff_email="not-an-email")
    result = MassImporter(store).run(ACCOUNT, [bad, dict(bad), _row()])

    assert [(e.row, e.error) for e in result.errors] == [
        (1, "Invalid email format"),
        (2, "Invalid email format"),
    ]
    assert result.success == 1


def test_same_certification_different_issue_dates_are_separate_records() -> None:
    store = InMemoryStore()
    rows = [
        _row(certification_issue_date="2023-01-01"),
        _row(certification_issue_date="2024-01-01T09:30:00Z", certification_expiry_date="2026-01-01"),
        _row(certification_issue_date="2023-01-01"),
    ]
    result = MassImporter(store).run(ACCOUNT, rows)

    assert result.success == 3
    assert result.certifications_created == 2
    assert sorted(c["issue_date"] for c in store.certifications) == ["2023-01-01", "2024-01-01"]


def test_store_failure_is_isolated_to_its_row() -> None:
    store = InMemoryStore()
    store.fail_staff_emails.add("bad@co.com")
    store.fail_template_names.add("Forklift")
    rows = [
        _row(staff_email="bad@co.com"),
        _row(staff_email="ok@co.com", certification_name="Forklift"),
        _row(staff_email="fine@co.com"),
    ]
    result = MassImporter(store).run(ACCOUNT, rows)

    assert result.success == 1
    assert result.errors[0].row == 1
    assert result.errors[0].error.startswith("Failed to create/update staff: ")
    assert result.errors[1].row == 2
    assert result.errors[1].error.startswith("Failed to create certification template: ")
    # the staff upsert in row 2 already happened; partial effects are kept
    assert (ACCOUNT, "ok@co.com") in store.staff


def test_unexpected_error_is_reported_and_batch_continues(monkeypatch) -> None:
    store = InMemoryStore()
    calls = {"n": 0}
    real_insert = store.insert_certification

    def flaky_insert(account_id, **fields):
        calls["n"] += 1
        if calls["n"] == 1:
            raise RuntimeError("connection reset")
        return real_insert(account_id, **fields)

    monkeypatch.setattr(store, "insert_certification", flaky_insert)
    rows = [_row(staff_email="a@co.com"), _row(staff_email="b@co.com")]
    result = MassImporter(store).run(ACCOUNT, rows)

    assert [(e.row, e.error) for e in result.errors] == [(1, "Unexpected error: connection reset")]
    assert result.success == 1


def test_validity_period_handling() -> None:
    store = InMemoryStore()
    rows = [
        _row(certification_name="Two Year", validity_period_months="24"),
        _row(certification_name="Numeric", validity_period_months=36),
        _row(certification_name="Bad", validity_period_months="two years"),
        _row(certification_name="Zero", validity_period_months="0"),
    ]
    result = MassImporter(store).run(ACCOUNT, rows)

    assert store.templates[(ACCOUNT, "Two Year")]["validity_period_months"] == 24
    assert store.templates[(ACCOUNT, "Numeric")]["validity_period_months"] == 36
    assert [e.row for e in result.errors] == [3, 4]
    assert result.errors[0].error == "Invalid validity period: must be a positive whole number of months"


def test_validate_row_normalizes_fields() -> None:
    row = validate_row(
        _row(
            staff_email=" Jane@Co.com ",
            staff_job_title="  ",
            certification_name="  CPR  ",
            certification_expiry_date="2025-01-01T00:00:00+00:00",
            certification_notes="renewed",
        )
    )
    assert row.email == "jane@co.com"
    assert row.job_title is None
    assert row.certification_name == "CPR"
    assert row.expiry_date == "2025-01-01"
    assert row.notes == "renewed"

    with pytest.raises(RowRejected, match="Invalid issue date format"):
        validate_row(_row(certification_issue_date="yesterday"))
    with pytest.raises(RowRejected, match="Missing required fields"):
        validate_row(["Jane", "jane@co.com"])


def test_parse_helpers() -> None:
    assert parse_calendar_date("2025-02-28").isoformat() == "2025-02-28"
    assert parse_calendar_date("2025-02-30") is None
    assert parse_calendar_date("") is None
    assert parse_validity_period("") == 12
    assert parse_validity_period(" 6 ") == 6
    assert parse_validity_period("-3") is None
    assert parse_validity_period("1.5") is None
