"""Mass import API router.

`POST /mass-import` takes `{"data": [row, ...]}` (rows already parsed from a
CSV by the caller) and reconciles them into staff, certification templates
and staff certifications for the authenticated account.

Every response from this path, errors included, carries `CORS_HEADERS`; the
app-wide CORS middleware skips it.
"""

import logging

import pydantic
from fastapi import APIRouter, Depends, Header, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from src.backend.certify.api.dependencies import bearer_token, get_identity, get_plan_limits, get_store
from src.backend.certify.api.responses import error_response
from src.backend.certify.errors import CertifyError, ValidationError
from src.backend.certify.integrations.supabase_client import SupabaseClient
from src.backend.certify.use_cases.mass_import import MassImporter
from src.backend.certify.use_cases.plan_limits import PlanLimits
from src.backend.common.config.app_config import config
from src.backend.common.models.certify_models import MassImportRequest

logger = logging.getLogger(__name__)

import_router = APIRouter(tags=["Mass Import"])

MASS_IMPORT_PATH = "/mass-import"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


@import_router.options(MASS_IMPORT_PATH)
async def mass_import_preflight():
    return Response(status_code=200, headers=CORS_HEADERS)


@import_router.api_route(MASS_IMPORT_PATH, methods=["GET", "PUT", "PATCH", "DELETE"])
async def mass_import_method_not_allowed():
    return JSONResponse(
        status_code=405,
        content={"error": "Method not allowed"},
        headers={**CORS_HEADERS, "Allow": "POST, OPTIONS"},
    )


@import_router.post(MASS_IMPORT_PATH)
async def mass_import(
    request: Request,
    authorization: str | None = Header(default=None),
    identity: SupabaseClient = Depends(get_identity),
    store=Depends(get_store),
    plan_limits: PlanLimits = Depends(get_plan_limits),
):
    """Import staff certification rows for the caller's account.

    Whole-call failures (bad payload, too many rows, plan limit) return 400
    before anything is written. Once rows are being processed the call always
    returns 200; per-row problems are listed in `results.errors`.
    """

    try:
        user = await run_in_threadpool(identity.get_user, bearer_token(authorization))

        try:
            payload = await request.json()
        except ValueError:
            raise ValidationError("Invalid CSV data")

        try:
            body = MassImportRequest.model_validate(payload)
        except pydantic.ValidationError:
            raise ValidationError("Invalid CSV data")

        importer = MassImporter(
            store,
            plan_limits=plan_limits,
            max_rows=config.IMPORT_MAX_ROWS,
            batch_size=config.IMPORT_BATCH_SIZE,
        )
        logger.info(f"Mass import requested by {user.id}: {len(body.data)} rows")
        result = await run_in_threadpool(importer.run, user.id, body.data)
    except CertifyError as e:
        if e.status_code >= 500:
            logger.error(f"Mass import failed: {e.message}")
        return error_response(e, headers=CORS_HEADERS)
    except Exception as e:
        logger.exception("Mass import failed unexpectedly")
        return error_response(e, headers=CORS_HEADERS)

    return JSONResponse(
        content={"success": True, "results": result.to_dict()},
        headers=CORS_HEADERS,
    )
