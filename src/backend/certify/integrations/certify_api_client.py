"""Client for the certify backend's own HTTP API.

This module is intentionally dependency-light so it can be used by:
- the command-line CSV uploader (`scripts/mass_import_csv.py`)
- local scripts/tests that want to call the same backend endpoint

It does NOT import FastAPI.
"""

from __future__ import annotations

import os
from typing import Any

import httpx


async def call_mass_import_backend(
    *,
    rows: list[dict[str, Any]],
    access_token: str,
    backend_base_url: str | None = None,
) -> dict[str, Any]:
    base = (
        backend_base_url
        or os.environ.get("CERTIFY_BACKEND_BASE_URL")
        or "http://127.0.0.1:8000/api/v1"
    ).rstrip("/")

    url = f"{base}/mass-import"
    timeout = float(os.environ.get("CERTIFY_HTTP_TIMEOUT_SECONDS", "120"))
    headers = {"Authorization": f"Bearer {access_token}"}

    async with httpx.AsyncClient(timeout=timeout) as client:
        resp = await client.post(url, json={"data": rows}, headers=headers)

    if resp.status_code >= 400:
        return {
            "ok": False,
            "status_code": resp.status_code,
            "error": resp.text,
            "request": {"url": url, "rows": len(rows)},
        }

    return {
        "ok": True,
        "status_code": resp.status_code,
        "request": {"url": url, "rows": len(rows)},
        "response": resp.json(),
    }
