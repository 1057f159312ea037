"""Table-aware operations over `SupabaseClient`.

Use cases depend on this surface (or a stub with the same methods in tests),
never on raw table or column names.
"""

from __future__ import annotations

from typing import Any

from src.backend.certify.integrations.supabase_client import SupabaseClient, eq

STAFF_TABLE = "staff"
TEMPLATES_TABLE = "certification_templates"
CERTIFICATIONS_TABLE = "staff_certifications"
PROFILES_TABLE = "profiles"
PLANS_TABLE = "subscription_plans"
SUBSCRIPTIONS_TABLE = "subscriptions"
INVOICES_TABLE = "invoices"
SETTINGS_TABLE = "app_settings"


class CertifyStore:
    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    @classmethod
    def from_env(cls) -> "CertifyStore":
        return cls(SupabaseClient.from_env())

    # ---- profiles / quota ------------------------------------------------

    def get_profile(self, account_id: str, *, columns: str = "*") -> dict[str, Any] | None:
        return self._client.select_one(PROFILES_TABLE, columns=columns, filters={"id": eq(account_id)})

    def find_profile_by_customer(self, customer_id: str) -> dict[str, Any] | None:
        return self._client.select_one(
            PROFILES_TABLE, columns="id", filters={"stripe_customer_id": eq(customer_id)}
        )

    def update_profile(self, account_id: str, values: dict[str, Any]) -> None:
        self._client.update(PROFILES_TABLE, values, filters={"id": eq(account_id)})

    def get_subscription_plan(self, account_id: str) -> str | None:
        profile = self.get_profile(account_id, columns="subscription_plan")
        return (profile or {}).get("subscription_plan")

    def count_staff(self, account_id: str) -> int:
        return self._client.count(STAFF_TABLE, filters={"user_id": eq(account_id)})

    # ---- import targets --------------------------------------------------

    def upsert_staff(
        self,
        account_id: str,
        *,
        email: str,
        full_name: str,
        job_title: str | None,
    ) -> tuple[dict[str, Any], bool]:
        row = {
            "user_id": account_id,
            "email": email,
            "full_name": full_name,
            "job_title": job_title,
        }
        return self._client.insert_or_update(
            STAFF_TABLE,
            row,
            conflict_columns=("user_id", "email"),
            update={"full_name": full_name, "job_title": job_title},
        )

    def upsert_template(
        self,
        account_id: str,
        *,
        name: str,
        validity_period_months: int,
    ) -> tuple[dict[str, Any], bool]:
        row = {
            "user_id": account_id,
            "name": name,
            "validity_period_months": validity_period_months,
        }
        return self._client.insert_or_update(
            TEMPLATES_TABLE,
            row,
            conflict_columns=("user_id", "name"),
            update={"validity_period_months": validity_period_months},
        )

    def find_certification(
        self,
        account_id: str,
        *,
        staff_id: str,
        template_id: str,
        issue_date: str | None,
    ) -> dict[str, Any] | None:
        return self._client.select_one(
            CERTIFICATIONS_TABLE,
            columns="id",
            filters={
                "user_id": eq(account_id),
                "staff_id": eq(staff_id),
                "template_id": eq(template_id),
                "issue_date": eq(issue_date),
            },
        )

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
    ) -> dict[str, Any]:
        record = {
            "user_id": account_id,
            "staff_id": staff_id,
            "template_id": template_id,
            "issue_date": issue_date,
            "expiry_date": expiry_date,
            "notes": notes,
            "document_url": document_url,
        }
        rows = self._client.insert(CERTIFICATIONS_TABLE, [record])
        return rows[0] if rows else record

    # ---- billing ---------------------------------------------------------

    def get_plan(self, plan_id: str) -> dict[str, Any] | None:
        return self._client.select_one(PLANS_TABLE, filters={"id": eq(plan_id)})

    def find_plan_by_price(self, price_id: str) -> dict[str, Any] | None:
        return self._client.select_one(
            PLANS_TABLE,
            columns="id,name",
            filters={
                "or": f"(stripe_monthly_price_id.eq.{price_id},stripe_yearly_price_id.eq.{price_id})"
            },
        )

    def upsert_subscription(self, row: dict[str, Any]) -> None:
        self._client.upsert(SUBSCRIPTIONS_TABLE, [row], on_conflict=("stripe_subscription_id",))

    def find_subscription(self, stripe_subscription_id: str) -> dict[str, Any] | None:
        return self._client.select_one(
            SUBSCRIPTIONS_TABLE,
            columns="id",
            filters={"stripe_subscription_id": eq(stripe_subscription_id)},
        )

    def update_subscription(self, stripe_subscription_id: str, values: dict[str, Any]) -> None:
        self._client.update(
            SUBSCRIPTIONS_TABLE,
            values,
            filters={"stripe_subscription_id": eq(stripe_subscription_id)},
        )

    def upsert_invoice(self, row: dict[str, Any]) -> None:
        self._client.upsert(INVOICES_TABLE, [row], on_conflict=("stripe_invoice_id",))

    # ---- reminders -------------------------------------------------------

    def get_app_settings(self, keys: list[str]) -> dict[str, str]:
        quoted = ",".join(keys)
        rows = self._client.select(SETTINGS_TABLE, columns="key,value", filters={"key": f"in.({quoted})"})
        return {r["key"]: r.get("value") for r in rows if r.get("key")}

    def get_expiring_certifications(self) -> list[dict[str, Any]]:
        result = self._client.rpc("get_expiring_certifications")
        if result is None:
            return []
        if isinstance(result, list):
            return result
        return [result]
