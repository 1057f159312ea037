"""Stripe connector.

Thin wrapper so use cases never touch the `stripe` module directly and tests
can hand in a stub with the same methods. The API key is passed per call
instead of being assigned to `stripe.api_key`.
"""

from __future__ import annotations

import json
import os
from typing import Any

import stripe
from dotenv import load_dotenv

load_dotenv(override=False)


class StripeBilling:
    def __init__(self, *, api_key: str, webhook_secret: str | None = None) -> None:
        self._api_key = api_key
        self._webhook_secret = webhook_secret

    @classmethod
    def from_env(cls) -> "StripeBilling":
        load_dotenv(override=False)
        api_key = os.environ.get("STRIPE_SECRET_KEY")
        if not api_key:
            raise ValueError("Missing STRIPE_SECRET_KEY")
        return cls(api_key=api_key, webhook_secret=os.environ.get("STRIPE_WEBHOOK_SECRET") or None)

    @property
    def webhook_secret(self) -> str | None:
        return self._webhook_secret

    def create_customer(self, *, email: str | None, name: str, metadata: dict[str, str]) -> str:
        customer = stripe.Customer.create(
            email=email,
            name=name,
            metadata=metadata,
            api_key=self._api_key,
        )
        return customer["id"]

    def create_checkout_session(
        self,
        *,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        metadata: dict[str, str],
    ) -> str:
        session = stripe.checkout.Session.create(
            customer=customer_id,
            payment_method_types=["card"],
            billing_address_collection="required",
            line_items=[{"price": price_id, "quantity": 1}],
            mode="subscription",
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=metadata,
            subscription_data={"metadata": metadata},
            api_key=self._api_key,
        )
        return session["url"]

    def create_portal_session(self, *, customer_id: str, return_url: str) -> str:
        session = stripe.billing_portal.Session.create(
            customer=customer_id,
            return_url=return_url,
            api_key=self._api_key,
        )
        return session["url"]

    def construct_event(self, payload: bytes | str, signature: str) -> dict[str, Any]:
        """Verify the `Stripe-Signature` header and return the event as plain dicts.

        `stripe.Event` is not a dict in current stripe-python, so the handlers
        get the verified payload parsed with `json` instead.

        Raises `stripe.SignatureVerificationError` on a bad signature or
        timestamp and `ValueError` on an unparsable payload.
        """

        if not self._webhook_secret:
            raise ValueError("Webhook secret not configured")
        stripe.Webhook.construct_event(payload, signature, self._webhook_secret)
        event = json.loads(payload)
        if not isinstance(event, dict):
            raise ValueError("Webhook payload is not a JSON object")
        return event
