from fastapi import APIRouter

from src.backend.certify.api.billing_router import billing_router
from src.backend.certify.api.import_router import MASS_IMPORT_PATH, import_router
from src.backend.certify.api.reminders_router import EXPIRY_REMINDERS_PATH, reminders_router

app_v1 = APIRouter(
    prefix="/api/v1",
    responses={404: {"description": "Not found"}},
)

app_v1.include_router(import_router)
app_v1.include_router(billing_router)
app_v1.include_router(reminders_router)


@app_v1.get("/health")
async def health():
    return {"status": "ok"}


# Routes that answer their own preflights and set their own CORS headers
ROUTE_CORS_PATHS = (
    app_v1.prefix + MASS_IMPORT_PATH,
    app_v1.prefix + EXPIRY_REMINDERS_PATH,
)
