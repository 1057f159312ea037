"""Subscription billing API router (Stripe checkout, portal and webhook)."""

import logging

import stripe
from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from src.backend.certify.api.dependencies import get_billing, get_current_user, get_store
from src.backend.certify.errors import BillingError, CertifyError
from src.backend.certify.integrations.stripe_billing import StripeBilling
from src.backend.certify.integrations.supabase_client import AuthUser
from src.backend.certify.use_cases.billing import open_portal, start_checkout
from src.backend.certify.use_cases.billing_events import handle_webhook_event
from src.backend.common.config.app_config import config
from src.backend.common.models.certify_models import CheckoutRequest, UrlResponse

logger = logging.getLogger(__name__)

billing_router = APIRouter(tags=["Billing"])


def _origin(request: Request) -> str:
    return (request.headers.get("origin") or config.DEFAULT_APP_BASE_URL).rstrip("/")


@billing_router.post("/stripe/checkout", response_model=UrlResponse)
async def stripe_checkout(
    body: CheckoutRequest,
    request: Request,
    user: AuthUser = Depends(get_current_user),
    store=Depends(get_store),
    billing: StripeBilling = Depends(get_billing),
):
    try:
        url = await run_in_threadpool(
            start_checkout,
            store,
            billing,
            user=user,
            plan_id=body.plan_id,
            billing_cycle=body.billing_cycle,
            origin=_origin(request),
        )
    except stripe.StripeError as e:
        logger.error(f"Stripe checkout error: {e}")
        raise BillingError(e.user_message or str(e))
    return UrlResponse(url=url)


@billing_router.post("/stripe/portal", response_model=UrlResponse)
async def stripe_portal(
    request: Request,
    user: AuthUser = Depends(get_current_user),
    store=Depends(get_store),
    billing: StripeBilling = Depends(get_billing),
):
    try:
        url = await run_in_threadpool(
            open_portal, store, billing, user=user, origin=_origin(request)
        )
    except stripe.StripeError as e:
        logger.error(f"Stripe portal error: {e}")
        raise BillingError(e.user_message or str(e))
    return UrlResponse(url=url)


@billing_router.post("/stripe/webhook")
async def stripe_webhook(
    request: Request,
    store=Depends(get_store),
    billing: StripeBilling = Depends(get_billing),
):
    """Verify and ingest a Stripe webhook event.

    Returns 401 only for signature/timestamp failures so they stand out in the
    Stripe dashboard; other processing failures return 400.
    """

    signature = request.headers.get("stripe-signature")
    if not signature:
        logger.error("Missing Stripe signature")
        return JSONResponse(status_code=400, content={"error": "Missing Stripe signature"})

    if not billing.webhook_secret:
        logger.error("Missing webhook secret")
        return JSONResponse(status_code=500, content={"error": "Webhook secret not configured"})

    payload = await request.body()
    try:
        event = billing.construct_event(payload, signature)
    except stripe.SignatureVerificationError as e:
        logger.warning(f"Signature verification failed: {e}")
        return JSONResponse(status_code=401, content={"error": "Signature verification failed"})
    except ValueError as e:
        logger.warning(f"Invalid webhook payload: {e}")
        return JSONResponse(status_code=400, content={"error": "Invalid webhook payload"})

    try:
        handled = await run_in_threadpool(handle_webhook_event, store, event)
    except CertifyError as e:
        logger.error(f"Webhook error for {event.get('type')}: {e.message}")
        return JSONResponse(status_code=400, content={"error": e.message})
    except (KeyError, TypeError, ValueError) as e:
        logger.error(f"Invalid event data for {event.get('type')}: {e}")
        return JSONResponse(status_code=400, content={"error": "Invalid event data"})

    return {"received": True, "handled": handled}
