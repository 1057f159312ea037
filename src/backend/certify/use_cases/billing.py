"""Checkout and customer-portal session creation."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from src.backend.certify.errors import BillingError
from src.backend.certify.integrations.supabase_client import AuthUser

logger = logging.getLogger(__name__)


class BillingGateway(Protocol):
    def create_customer(self, *, email: str | None, name: str, metadata: dict[str, str]) -> str: ...

    def create_checkout_session(
        self,
        *,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        metadata: dict[str, str],
    ) -> str: ...

    def create_portal_session(self, *, customer_id: str, return_url: str) -> str: ...


def _customer_name(profile: dict[str, Any], user: AuthUser) -> str:
    name = f"{profile.get('first_name') or ''} {profile.get('last_name') or ''}".strip()
    return name or (user.email or "")


def _ensure_customer(store: Any, billing: BillingGateway, user: AuthUser, profile: dict[str, Any]) -> str:
    customer_id = profile.get("stripe_customer_id")
    if customer_id:
        return customer_id

    customer_id = billing.create_customer(
        email=user.email,
        name=_customer_name(profile, user),
        metadata={
            "user_id": user.id,
            "company_name": profile.get("company_name") or "",
        },
    )
    store.update_profile(user.id, {"stripe_customer_id": customer_id})
    logger.info(f"Created Stripe customer for user {user.id}")
    return customer_id


def start_checkout(
    store: Any,
    billing: BillingGateway,
    *,
    user: AuthUser,
    plan_id: str,
    billing_cycle: str,
    origin: str,
) -> str:
    """Create a subscription checkout session and return its URL."""

    profile = store.get_profile(
        user.id, columns="stripe_customer_id,first_name,last_name,company_name"
    )
    if not profile:
        raise BillingError("Profile not found")

    customer_id = _ensure_customer(store, billing, user, profile)

    plan = store.get_plan(plan_id)
    if not plan:
        raise BillingError("Plan not found")

    price_id = (
        plan.get("stripe_yearly_price_id")
        if billing_cycle == "yearly"
        else plan.get("stripe_monthly_price_id")
    )
    if not price_id:
        raise BillingError("Price ID not configured for this plan")

    metadata = {"user_id": user.id, "plan_id": plan_id, "billing_cycle": billing_cycle}
    return billing.create_checkout_session(
        customer_id=customer_id,
        price_id=price_id,
        success_url=f"{origin}/?session_id={{CHECKOUT_SESSION_ID}}&success=true",
        cancel_url=f"{origin}/?cancelled=true",
        metadata=metadata,
    )


def open_portal(store: Any, billing: BillingGateway, *, user: AuthUser, origin: str) -> str:
    profile = store.get_profile(user.id, columns="stripe_customer_id")
    customer_id = (profile or {}).get("stripe_customer_id")
    if not customer_id:
        raise BillingError("No Stripe customer found - please subscribe first")
    return billing.create_portal_session(customer_id=customer_id, return_url=origin)
