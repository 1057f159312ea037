"""Stripe webhook event ingestion.

Maps already-verified Stripe events onto the `profiles`, `subscriptions` and
`invoices` tables. Signature verification happens in the router; this module
only sees the parsed event (a dict or a dict-like `StripeObject`).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

logger = logging.getLogger(__name__)

DEFAULT_PLAN_ID = "starter"


def _ts(value: Any) -> str | None:
    """Stripe epoch seconds -> ISO-8601 UTC."""
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc).isoformat()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _first_price(subscription: dict[str, Any]) -> dict[str, Any]:
    items = ((subscription.get("items") or {}).get("data")) or []
    if not items:
        return {}
    return items[0].get("price") or {}


def _profile_id_for_customer(store: Any, customer_id: str | None) -> str | None:
    if not customer_id:
        return None
    profile = store.find_profile_by_customer(customer_id)
    if not profile:
        logger.error(f"No profile found for customer {customer_id}")
        return None
    return profile["id"]


def handle_subscription_update(store: Any, subscription: dict[str, Any]) -> None:
    customer_id = subscription.get("customer")
    profile_id = _profile_id_for_customer(store, customer_id)
    if profile_id is None:
        return

    price = _first_price(subscription)
    price_id = price.get("id")
    plan = store.find_plan_by_price(price_id) if price_id else None
    plan_id = (plan or {}).get("id") or DEFAULT_PLAN_ID
    interval = (price.get("recurring") or {}).get("interval")
    billing_cycle = "yearly" if interval == "year" else "monthly"

    store.upsert_subscription(
        {
            "user_id": profile_id,
            "stripe_subscription_id": subscription.get("id"),
            "stripe_customer_id": customer_id,
            "status": subscription.get("status"),
            "plan_id": plan_id,
            "billing_cycle": billing_cycle,
            "current_period_start": _ts(subscription.get("current_period_start")),
            "current_period_end": _ts(subscription.get("current_period_end")),
            "cancel_at_period_end": bool(subscription.get("cancel_at_period_end")),
            "canceled_at": _ts(subscription.get("canceled_at")),
            "trial_start": _ts(subscription.get("trial_start")),
            "trial_end": _ts(subscription.get("trial_end")),
        }
    )
    store.update_profile(
        profile_id,
        {
            "subscription_status": subscription.get("status"),
            "subscription_plan": plan_id,
            "billing_cycle": billing_cycle,
        },
    )
    logger.info(f"Updated subscription for user {profile_id}: {subscription.get('status')}")


def handle_subscription_deleted(store: Any, subscription: dict[str, Any]) -> None:
    store.update_subscription(
        subscription.get("id"),
        {
            "status": "canceled",
            "canceled_at": _ts(subscription.get("canceled_at")) or _now(),
        },
    )
    logger.info(f"Marked subscription {subscription.get('id')} as canceled")


def handle_invoice_paid(store: Any, invoice: dict[str, Any]) -> None:
    customer_id = invoice.get("customer")
    profile_id = _profile_id_for_customer(store, customer_id)
    if profile_id is None:
        return

    subscription_id = None
    if invoice.get("subscription"):
        sub = store.find_subscription(invoice["subscription"])
        subscription_id = (sub or {}).get("id")

    transitions = invoice.get("status_transitions") or {}
    store.upsert_invoice(
        {
            "user_id": profile_id,
            "stripe_invoice_id": invoice.get("id"),
            "stripe_customer_id": customer_id,
            "subscription_id": subscription_id,
            "amount_paid": invoice.get("amount_paid"),
            "amount_due": invoice.get("amount_due"),
            "currency": invoice.get("currency"),
            "status": invoice.get("status") or "unknown",
            "invoice_pdf": invoice.get("invoice_pdf"),
            "hosted_invoice_url": invoice.get("hosted_invoice_url"),
            "invoice_number": invoice.get("number"),
            "period_start": _ts(invoice.get("period_start")),
            "period_end": _ts(invoice.get("period_end")),
            "due_date": _ts(invoice.get("due_date")),
            "paid_at": _ts(transitions.get("paid_at")) or _now(),
        }
    )
    logger.info(f"Saved invoice {invoice.get('id')} for user {profile_id}")


def handle_invoice_payment_failed(store: Any, invoice: dict[str, Any]) -> None:
    logger.info(f"Payment failed for invoice: {invoice.get('id')}")
    profile_id = _profile_id_for_customer(store, invoice.get("customer"))
    if profile_id is None:
        return
    if invoice.get("subscription"):
        store.update_subscription(invoice["subscription"], {"status": "past_due"})
    logger.info(f"Payment failed for user {profile_id}")


def handle_checkout_completed(store: Any, session: dict[str, Any]) -> None:
    # Subscription rows are written by the customer.subscription.* events.
    metadata = session.get("metadata") or {}
    logger.info(f"Checkout completed for session: {session.get('id')}")
    if metadata.get("user_id"):
        logger.info(
            f"User {metadata.get('user_id')} completed checkout for plan {metadata.get('plan_id')}"
        )


EVENT_HANDLERS: dict[str, Callable[[Any, dict[str, Any]], None]] = {
    "customer.subscription.created": handle_subscription_update,
    "customer.subscription.updated": handle_subscription_update,
    "customer.subscription.deleted": handle_subscription_deleted,
    "invoice.payment_succeeded": handle_invoice_paid,
    "invoice.payment_failed": handle_invoice_payment_failed,
    "checkout.session.completed": handle_checkout_completed,
}


def handle_webhook_event(store: Any, event: Any) -> bool:
    """Dispatch a verified event; returns False for event types we ignore."""

    event_type = event["type"]
    handler = EVENT_HANDLERS.get(event_type)
    logger.info(f"Processing webhook event: {event_type} (id={event.get('id')})")
    if handler is None:
        logger.info(f"Unhandled event type: {event_type}")
        return False
    handler(store, event["data"]["object"])
    return True
