"""Expiry reminder API router.

Called once a day by a scheduler. Besides the origin allow-list the caller must
send the shared secret in `X-Function-Auth-Token`.
"""

import logging
import secrets

from fastapi import APIRouter, Depends, Header
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response

from src.backend.certify.api.dependencies import get_mailer, get_store
from src.backend.certify.errors import CertifyError
from src.backend.certify.integrations.sendgrid_client import SendGridClient
from src.backend.certify.use_cases.expiry_reminders import send_expiry_reminders
from src.backend.common.config.app_config import config

logger = logging.getLogger(__name__)

reminders_router = APIRouter(tags=["Reminders"])

EXPIRY_REMINDERS_PATH = "/reminders/expiry"


def _is_allowed_origin(origin: str | None) -> bool:
    return not origin or origin in config.REMINDER_ALLOWED_ORIGINS


def _token_matches(token: str | None) -> bool:
    expected = config.FUNCTION_AUTH_TOKEN
    return bool(token) and bool(expected) and secrets.compare_digest(token, expected)


@reminders_router.options(EXPIRY_REMINDERS_PATH)
async def expiry_reminders_preflight(origin: str | None = Header(default=None)):
    allowed = origin if origin and _is_allowed_origin(origin) else "null"
    return Response(
        content="ok",
        headers={
            "Access-Control-Allow-Origin": allowed,
            "Access-Control-Allow-Methods": "POST",
            "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Function-Auth-Token",
            "Access-Control-Max-Age": "86400",
        },
    )


@reminders_router.post(EXPIRY_REMINDERS_PATH)
async def send_expiry_reminder_emails(
    origin: str | None = Header(default=None),
    x_function_auth_token: str | None = Header(default=None),
    store=Depends(get_store),
    mailer: SendGridClient | None = Depends(get_mailer),
):
    cors = {"Access-Control-Allow-Origin": origin or "null"}

    if not _is_allowed_origin(origin):
        logger.error(f"Unauthorized origin: {origin}")
        return JSONResponse(status_code=403, content={"error": "Unauthorized origin"})

    if not _token_matches(x_function_auth_token):
        logger.warning("Unauthorized access attempt to expiry reminders - custom token invalid")
        return JSONResponse(
            status_code=401,
            content={"error": "Unauthorized: Invalid or missing custom token"},
        )

    if mailer is None:
        logger.error("SENDGRID_API_KEY environment variable is not set")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "success": False},
            headers=cors,
        )

    logger.info("Starting certification expiry reminder process")
    try:
        summary = await run_in_threadpool(
            send_expiry_reminders,
            store,
            mailer,
            default_admin_email=config.DEFAULT_ADMIN_EMAIL,
            default_base_url=config.DEFAULT_APP_BASE_URL,
            delay_seconds=config.REMINDER_SEND_DELAY_SECONDS,
        )
    except CertifyError as e:
        logger.error(f"Error in expiry reminders: {e.message}")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "success": False},
            headers=cors,
        )

    return JSONResponse(content=summary.to_dict(), headers=cors)
