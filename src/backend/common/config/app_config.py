"""Application configuration.

All settings come from environment variables. `.env` is loaded first (without
overriding real environment values) so local runs only need a filled `.env`.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv(override=False)

DEFAULT_ALLOWED_ORIGINS = (
    "https://teamcertify.com",
    "https://www.teamcertify.com",
    "https://teamcertify.vercel.app",
)


def _env_list(name: str, default: tuple[str, ...] = ()) -> list[str]:
    raw = os.environ.get(name)
    if raw is None:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class AppConfig:
    """Environment-backed settings for the certify backend."""

    def __init__(self) -> None:
        # Logging
        self.BASIC_LOGGING_LEVEL = os.environ.get("BASIC_LOGGING_LEVEL", "INFO")
        self.PACKAGE_LOGGING_LEVEL = os.environ.get("PACKAGE_LOGGING_LEVEL", "WARNING")
        self.LOGGING_PACKAGES = os.environ.get("LOGGING_PACKAGES", "urllib3,httpx,stripe")

        # Record store / identity
        self.SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
        self.SUPABASE_SERVICE_ROLE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")
        self.HTTP_TIMEOUT_SECONDS = int(os.environ.get("HTTP_TIMEOUT_SECONDS", "30"))

        # Mass import
        self.IMPORT_MAX_ROWS = int(os.environ.get("IMPORT_MAX_ROWS", "1000"))
        self.IMPORT_BATCH_SIZE = int(os.environ.get("IMPORT_BATCH_SIZE", "50"))
        self.PLAN_LIMITS_PATH = os.environ.get("PLAN_LIMITS_PATH")

        # Billing
        self.STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY", "")
        self.STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET", "")

        # Expiry reminders
        self.FUNCTION_AUTH_TOKEN = os.environ.get("FUNCTION_AUTH_TOKEN", "")
        self.DEFAULT_ADMIN_EMAIL = os.environ.get("DEFAULT_ADMIN_EMAIL", "admin@teamcertify.com")
        self.DEFAULT_APP_BASE_URL = os.environ.get("DEFAULT_APP_BASE_URL", "https://teamcertify.com")
        self.REMINDER_SEND_DELAY_SECONDS = float(
            os.environ.get("REMINDER_SEND_DELAY_SECONDS", "0.1")
        )
        self.REMINDER_ALLOWED_ORIGINS = _env_list(
            "REMINDER_ALLOWED_ORIGINS", DEFAULT_ALLOWED_ORIGINS
        )

        # CORS for browser-facing endpoints
        self.CORS_ALLOW_ORIGINS = _env_list("CORS_ALLOW_ORIGINS", ("*",))


config = AppConfig()
