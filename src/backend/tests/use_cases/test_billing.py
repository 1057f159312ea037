from __future__ import annotations

import pytest

from src.backend.certify.errors import BillingError
from src.backend.certify.integrations.supabase_client import AuthUser
from src.backend.certify.use_cases.billing import open_portal, start_checkout
from src.backend.tests.fakes import InMemoryStore, StubBilling

USER = AuthUser(id="user-1", email="owner@co.com")


def _store_with_plan() -> InMemoryStore:
    store = InMemoryStore()
    store.profiles[USER.id] = {"id": USER.id, "first_name": "Ada", "last_name": "Lovelace", "company_name": "Acme"}
    store.plans["growth"] = {
        "id": "growth",
        "stripe_monthly_price_id": "price_m",
        "stripe_yearly_price_id": "price_y",
    }
    return store


def test_checkout_creates_customer_once_and_picks_cycle_price() -> None:
    store = _store_with_plan()
    billing = StubBilling()

    url = start_checkout(
        store, billing, user=USER, plan_id="growth", billing_cycle="yearly", origin="https://app.test"
    )

    assert url == "https://checkout.stripe.test/session"
    assert billing.customers == [
        {
            "email": "owner@co.com",
            "name": "Ada Lovelace",
            "metadata": {"user_id": "user-1", "company_name": "Acme"},
        }
    ]
    assert store.profiles[USER.id]["stripe_customer_id"] == "cus_1"

    checkout = billing.checkouts[0]
    assert checkout["customer_id"] == "cus_1"
    assert checkout["price_id"] == "price_y"
    assert checkout["success_url"] == "https://app.test/?session_id={CHECKOUT_SESSION_ID}&success=true"
    assert checkout["cancel_url"] == "https://app.test/?cancelled=true"
    assert checkout["metadata"] == {"user_id": "user-1", "plan_id": "growth", "billing_cycle": "yearly"}

    start_checkout(store, billing, user=USER, plan_id="growth", billing_cycle="monthly", origin="https://app.test")
    assert len(billing.customers) == 1
    assert billing.checkouts[1]["price_id"] == "price_m"


def test_checkout_errors() -> None:
    billing = StubBilling()
    with pytest.raises(BillingError, match="Profile not found"):
        start_checkout(InMemoryStore(), billing, user=USER, plan_id="growth", billing_cycle="monthly", origin="o")

    store = _store_with_plan()
    with pytest.raises(BillingError, match="Plan not found"):
        start_checkout(store, billing, user=USER, plan_id="gold", billing_cycle="monthly", origin="o")

    store.plans["growth"]["stripe_yearly_price_id"] = None
    with pytest.raises(BillingError, match="Price ID not configured"):
        start_checkout(store, billing, user=USER, plan_id="growth", billing_cycle="yearly", origin="o")


def test_portal_requires_existing_customer() -> None:
    store = _store_with_plan()
    billing = StubBilling()
    with pytest.raises(BillingError, match="please subscribe first"):
        open_portal(store, billing, user=USER, origin="https://app.test")

    store.profiles[USER.id]["stripe_customer_id"] = "cus_9"
    assert open_portal(store, billing, user=USER, origin="https://app.test") == "https://billing.stripe.test/portal"
    assert billing.portals == [{"customer_id": "cus_9", "return_url": "https://app.test"}]
