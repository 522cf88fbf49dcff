from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import uvicorn
import logging
import sys

from insights.core.config import settings
from insights.core.database_utils import create_tables, get_db_session
from insights.crud.webhook import WebhookCRUD
from insights.services.profile_store import ProfileStore


def _log_handlers() -> list:
    handlers = [logging.StreamHandler(sys.stdout)]
    if settings.LOG_FILE:
        handlers.append(logging.FileHandler(settings.LOG_FILE))
    return handlers


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=_log_handlers(),
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    logger.info(f"[Startup] Starting {settings.PROJECT_NAME} v{settings.VERSION} ({settings.ENVIRONMENT.value})")
    create_tables()
    with get_db_session() as db:
        logger.info(f"[Startup] {WebhookCRUD.count_profiles(db)} webhook profiles in store")
    if settings.has_sahha_credentials:
        logger.info(f"[Startup] Sahha credentials configured, live data from {settings.SAHHA_API_BASE_URL}")
    else:
        logger.info("[Startup] No Sahha credentials, profiles will be synthesized")
    if not settings.SAHHA_WEBHOOK_SECRET:
        logger.warning("[Startup] SAHHA_WEBHOOK_SECRET not set, webhook signatures will not be verified")

    yield

    # Shutdown
    logger.info("[Shutdown] Stopping")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Sahha Insights - workplace wellbeing analytics over Sahha profiles",
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        docs_url=f"{settings.API_PREFIX}/docs",
        lifespan=lifespan,
    )

    # One profile store per application; endpoints reach it through deps.get_profile_store
    app.state.profile_store = ProfileStore()
    app.state.sahha_client_factory = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    logger.info(f"CORS configured for {settings.ENVIRONMENT.value} environment with origins: {settings.allowed_cors_origins}")

    # GZip Middleware for response compression
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    from insights.api.v1.api import api_router
    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get("/health", tags=["Health Check"])
    async def health_check():
        return {
            "status": "healthy",
            "service": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT.value,
            "liveData": settings.has_sahha_credentials,
        }

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Global exception handler for unhandled exceptions"""
        logger.error(f"Unhandled exception: {exc} - {request.url}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Internal server error"},
        )

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "insights.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower(),
    )
