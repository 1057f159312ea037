"""FastAPI dependency providers.

Clients are built per request from the environment; tests replace any of these
through `app.dependency_overrides`.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Header

from src.backend.certify.errors import AuthError
from src.backend.certify.integrations.certify_store import CertifyStore
from src.backend.certify.integrations.sendgrid_client import SendGridClient
from src.backend.certify.integrations.stripe_billing import StripeBilling
from src.backend.certify.integrations.supabase_client import AuthUser, SupabaseClient
from src.backend.certify.use_cases.plan_limits import PlanLimits, load_plan_limits
from src.backend.common.config.app_config import config


def get_identity() -> SupabaseClient:
    return SupabaseClient.from_env()


def get_store() -> CertifyStore:
    return CertifyStore.from_env()


@lru_cache(maxsize=1)
def get_plan_limits() -> PlanLimits:
    return load_plan_limits(config.PLAN_LIMITS_PATH)


def get_billing() -> StripeBilling:
    return StripeBilling.from_env()


def get_mailer() -> SendGridClient | None:
    """None when SendGrid is not configured; the reminders endpoint reports it."""
    try:
        return SendGridClient.from_env()
    except ValueError:
        return None


def bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise AuthError("Missing authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("Invalid token")
    return token.strip()


def get_current_user(
    authorization: str | None = Header(default=None),
    identity: SupabaseClient = Depends(get_identity),
) -> AuthUser:
    return identity.get_user(bearer_token(authorization))
