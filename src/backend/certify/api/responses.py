"""Error bodies shared by the app-wide handlers and routes that render their own errors."""

from __future__ import annotations

from fastapi.responses import JSONResponse

from src.backend.certify.errors import CertifyError


def error_response(exc: Exception, *, headers: dict[str, str] | None = None) -> JSONResponse:
    """`{"error": message}` for client errors, `{"error": "Internal server error", "details": ...}` for 5xx."""
    if isinstance(exc, CertifyError) and exc.status_code < 500:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message}, headers=headers)
    details = exc.message if isinstance(exc, CertifyError) else str(exc)
    status_code = exc.status_code if isinstance(exc, CertifyError) else 500
    return JSONResponse(
        status_code=status_code,
        content={"error": "Internal server error", "details": details},
        headers=headers,
    )
