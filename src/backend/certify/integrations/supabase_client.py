"""Supabase (PostgREST + GoTrue) connector.

Purpose
- Provide a small, testable wrapper for the REST calls the backend makes
  against the hosted database and its identity endpoint.
- Keep HTTP details (headers, Prefer hints, Content-Range parsing) in one place.

This module is intentionally independent of FastAPI and of table names; see
`certify_store.py` for the domain-level operations.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Sequence

import requests
from dotenv import load_dotenv

from src.backend.certify.errors import AuthError, StoreError

load_dotenv(override=False)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AuthUser:
    id: str
    email: str | None = None


def eq(value: Any) -> str:
    """PostgREST equality filter (`col=eq.value`); `None` becomes `is.null`."""

    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    return f"eq.{value}"


class SupabaseClient:
    def __init__(
        self,
        *,
        base_url: str,
        service_role_key: str,
        timeout_seconds: int = 30,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._service_role_key = service_role_key
        self._timeout_seconds = timeout_seconds

    @classmethod
    def from_env(cls) -> "SupabaseClient":
        load_dotenv(override=False)
        base_url = os.environ.get("SUPABASE_URL")
        service_role_key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
        if not base_url or not service_role_key:
            raise ValueError("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY")

        timeout_seconds = int(os.environ.get("HTTP_TIMEOUT_SECONDS", "30"))
        return cls(
            base_url=base_url,
            service_role_key=service_role_key,
            timeout_seconds=timeout_seconds,
        )

    def _headers(self, *, bearer_token: str | None = None, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self._service_role_key,
            "Authorization": f"Bearer {bearer_token or self._service_role_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json_body: Any = None,
        prefer: str | None = None,
    ) -> requests.Response:
        url = f"{self._base_url}{path}"
        try:
            resp = requests.request(
                method,
                url,
                headers=self._headers(prefer=prefer),
                params=params,
                json=json_body,
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as e:
            raise StoreError(f"{method} {url} failed: {e}") from e

        logger.debug(f"{method} {url} -> {resp.status_code}")

        if resp.status_code >= 400:
            raise StoreError(f"{method} {url} failed with status {resp.status_code}: {resp.text}")
        return resp

    @staticmethod
    def _rows(resp: requests.Response) -> list[dict[str, Any]]:
        if not resp.content:
            return []
        try:
            payload = resp.json()
        except ValueError as e:
            raise StoreError(f"Failed to decode JSON response from {resp.url}") from e
        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict):
            return [payload]
        return []

    # ---- PostgREST -----------------------------------------------------

    def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: dict[str, str] | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        params = {"select": columns, **(filters or {})}
        if limit is not None:
            params["limit"] = str(int(limit))
        resp = self._request("GET", f"/rest/v1/{table}", params=params)
        return self._rows(resp)

    def select_one(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: dict[str, str] | None = None,
    ) -> dict[str, Any] | None:
        rows = self.select(table, columns=columns, filters=filters, limit=1)
        return rows[0] if rows else None

    def count(self, table: str, *, filters: dict[str, str] | None = None) -> int:
        """Exact row count, read from the `Content-Range` header (e.g. `0-9/42`, `*/0`)."""

        params = {"select": "id", **(filters or {})}
        resp = self._request("HEAD", f"/rest/v1/{table}", params=params, prefer="count=exact")
        content_range = resp.headers.get("Content-Range", "")
        _, _, total = content_range.partition("/")
        if not total or total == "*":
            raise StoreError(f"Missing exact count in Content-Range for {table}: {content_range!r}")
        return int(total)

    def insert(
        self,
        table: str,
        rows: Sequence[dict[str, Any]],
        *,
        on_conflict: Sequence[str] | None = None,
        ignore_duplicates: bool = False,
    ) -> list[dict[str, Any]]:
        """Insert rows and return the rows the database actually wrote.

        With `ignore_duplicates`, conflicting rows are skipped (ON CONFLICT DO
        NOTHING) and are absent from the returned list.
        """

        if not rows:
            return []
        params = {"on_conflict": ",".join(on_conflict)} if on_conflict else None
        prefer = "return=representation"
        if ignore_duplicates:
            prefer = f"resolution=ignore-duplicates,{prefer}"
        resp = self._request("POST", f"/rest/v1/{table}", params=params, json_body=list(rows), prefer=prefer)
        return self._rows(resp)

    def upsert(
        self,
        table: str,
        rows: Sequence[dict[str, Any]],
        *,
        on_conflict: Sequence[str],
    ) -> list[dict[str, Any]]:
        if not rows:
            return []
        resp = self._request(
            "POST",
            f"/rest/v1/{table}",
            params={"on_conflict": ",".join(on_conflict)},
            json_body=list(rows),
            prefer="resolution=merge-duplicates,return=representation",
        )
        return self._rows(resp)

    def update(
        self,
        table: str,
        values: dict[str, Any],
        *,
        filters: dict[str, str],
    ) -> list[dict[str, Any]]:
        if not filters:
            raise ValueError("update() requires at least one filter")
        resp = self._request(
            "PATCH",
            f"/rest/v1/{table}",
            params=dict(filters),
            json_body=values,
            prefer="return=representation",
        )
        return self._rows(resp)

    def insert_or_update(
        self,
        table: str,
        row: dict[str, Any],
        *,
        conflict_columns: Sequence[str],
        update: dict[str, Any],
    ) -> tuple[dict[str, Any], bool]:
        """Write `row`, reporting whether it was created.

        The insert itself decides: it skips on a unique-key conflict and only
        returns the row when it was written. On conflict the existing row is
        updated with `update` and returned with `created=False`.
        """

        inserted = self.insert(table, [row], on_conflict=conflict_columns, ignore_duplicates=True)
        if inserted:
            return inserted[0], True

        key_filters = {col: eq(row.get(col)) for col in conflict_columns}
        if update:
            updated = self.update(table, update, filters=key_filters)
        else:
            updated = self.select(table, filters=key_filters, limit=1)
        if not updated:
            raise StoreError(f"{table}: row vanished between insert and update for {key_filters}")
        return updated[0], False

    def rpc(self, function: str, params: dict[str, Any] | None = None) -> Any:
        resp = self._request("POST", f"/rest/v1/rpc/{function}", json_body=params or {})
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise StoreError(f"Failed to decode JSON response from rpc {function}") from e

    # ---- GoTrue ---------------------------------------------------------

    def get_user(self, access_token: str) -> AuthUser:
        """Resolve an end-user access token to the account it belongs to."""

        if not access_token:
            raise AuthError("Missing authorization header")
        url = f"{self._base_url}/auth/v1/user"
        try:
            resp = requests.request(
                "GET",
                url,
                headers=self._headers(bearer_token=access_token),
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as e:
            raise StoreError(f"GET {url} failed: {e}") from e

        if resp.status_code in (401, 403):
            raise AuthError("Invalid token")
        if resp.status_code >= 400:
            raise StoreError(f"GET {url} failed with status {resp.status_code}: {resp.text}")

        payload = resp.json() or {}
        user_id = payload.get("id")
        if not user_id:
            raise AuthError("Invalid token")
        return AuthUser(id=user_id, email=payload.get("email"))
