from __future__ import annotations

from src.backend.certify.use_cases.billing_events import handle_webhook_event
from src.backend.tests.fakes import InMemoryStore


def _store() -> InMemoryStore:
    store = InMemoryStore()
    store.profiles["user-1"] = {"id": "user-1", "stripe_customer_id": "cus_1"}
    store.plans["growth"] = {"id": "growth", "stripe_monthly_price_id": "price_m", "stripe_yearly_price_id": "price_y"}
    return store


def _event(event_type: str, obj: dict) -> dict:
    return {"id": "evt_1", "type": event_type, "data": {"object": obj}}


def _subscription(**overrides) -> dict:
    sub = {
        "id": "sub_1",
        "customer": "cus_1",
        "status": "active",
        "current_period_start": 1704067200,
        "current_period_end": 1735689600,
        "cancel_at_period_end": False,
        "canceled_at": None,
        "items": {"data": [{"price": {"id": "price_y", "recurring": {"interval": "year"}}}]},
    }
    sub.update(overrides)
    return sub


def test_subscription_created_updates_subscription_and_profile() -> None:
    store = _store()
    assert handle_webhook_event(store, _event("customer.subscription.created", _subscription())) is True

    sub = store.subscriptions["sub_1"]
    assert sub["user_id"] == "user-1"
    assert sub["plan_id"] == "growth"
    assert sub["billing_cycle"] == "yearly"
    assert sub["current_period_start"] == "2024-01-01T00:00:00+00:00"
    assert sub["canceled_at"] is None

    profile = store.profiles["user-1"]
    assert profile["subscription_status"] == "active"
    assert profile["subscription_plan"] == "growth"
    assert profile["billing_cycle"] == "yearly"


def test_unknown_price_falls_back_to_starter_monthly() -> None:
    store = _store()
    sub = _subscription(items={"data": [{"price": {"id": "price_other", "recurring": {"interval": "month"}}}]})
    handle_webhook_event(store, _event("customer.subscription.updated", sub))

    assert store.subscriptions["sub_1"]["plan_id"] == "starter"
    assert store.profiles["user-1"]["billing_cycle"] == "monthly"


def test_unknown_customer_is_ignored() -> None:
    store = _store()
    handle_webhook_event(store, _event("customer.subscription.updated", _subscription(customer="cus_x")))
    assert store.subscriptions == {}


def test_subscription_deleted_marks_canceled() -> None:
    store = _store()
    handle_webhook_event(store, _event("customer.subscription.created", _subscription()))
    handle_webhook_event(store, _event("customer.subscription.deleted", {"id": "sub_1", "canceled_at": 1704067200}))

    assert store.subscriptions["sub_1"]["status"] == "canceled"
    assert store.subscriptions["sub_1"]["canceled_at"] == "2024-01-01T00:00:00+00:00"


def test_invoice_paid_and_failed() -> None:
    store = _store()
    handle_webhook_event(store, _event("customer.subscription.created", _subscription()))

    invoice = {
        "id": "in_1",
        "customer": "cus_1",
        "subscription": "sub_1",
        "amount_paid": 4900,
        "amount_due": 4900,
        "currency": "gbp",
        "status": "paid",
        "number": "INV-001",
        "status_transitions": {"paid_at": 1704067200},
    }
    handle_webhook_event(store, _event("invoice.payment_succeeded", invoice))
    saved = store.invoices["in_1"]
    assert saved["user_id"] == "user-1"
    assert saved["subscription_id"] == store.subscriptions["sub_1"]["id"]
    assert saved["invoice_number"] == "INV-001"
    assert saved["paid_at"] == "2024-01-01T00:00:00+00:00"

    handle_webhook_event(store, _event("invoice.payment_failed", invoice))
    assert store.subscriptions["sub_1"]["status"] == "past_due"


def test_unhandled_and_informational_events() -> None:
    store = _store()
    assert handle_webhook_event(store, _event("customer.created", {"id": "cus_2"})) is False
    assert (
        handle_webhook_event(
            store, _event("checkout.session.completed", {"id": "cs_1", "metadata": {"user_id": "user-1"}})
        )
        is True
    )
    assert store.subscriptions == {}
