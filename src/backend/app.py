import logging
from contextlib import asynccontextmanager

# FastAPI imports
from fastapi import FastAPI, Request

# Local imports
from src.backend.certify.api.cors import RouteCORSMiddleware
from src.backend.certify.api.responses import error_response
from src.backend.certify.api.router import ROUTE_CORS_PATHS, app_v1
from src.backend.certify.errors import CertifyError
from src.backend.common.config.app_config import config


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage FastAPI application lifecycle - startup and shutdown."""
    logger = logging.getLogger(__name__)

    # Startup
    logger.info("🚀 Starting TeamCertify backend...")
    if not config.SUPABASE_URL or not config.SUPABASE_SERVICE_ROLE_KEY:
        logger.warning("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not set; store calls will fail")
    yield

    # Shutdown
    logger.info("👋 TeamCertify backend shutdown complete")


# Configure logging levels from environment variables
logging.basicConfig(level=getattr(logging, config.BASIC_LOGGING_LEVEL.upper(), logging.INFO))

# Configure third-party package logging levels
package_level = getattr(logging, config.PACKAGE_LOGGING_LEVEL.upper(), logging.WARNING)
# Parse comma-separated logging packages
if config.LOGGING_PACKAGES:
    packages = [pkg.strip() for pkg in config.LOGGING_PACKAGES.split(",") if pkg.strip()]
    for logger_name in packages:
        logging.getLogger(logger_name).setLevel(package_level)

# Initialize the FastAPI app
app = FastAPI(lifespan=lifespan)

app.add_middleware(
    RouteCORSMiddleware,
    skip_paths=ROUTE_CORS_PATHS,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CertifyError)
async def certify_error_handler(request: Request, exc: CertifyError):
    if exc.status_code >= 500:
        logging.getLogger(__name__).error(f"{request.method} {request.url.path} failed: {exc.message}")
    return error_response(exc)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logging.getLogger(__name__).exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(exc)


# v1 endpoints
app.include_router(app_v1)


# Run the app
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.backend.app:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
        log_level="info",
        access_log=False,
    )
