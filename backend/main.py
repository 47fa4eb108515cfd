"""
CallScreen - Backend Entrypoint

FastAPI application factory and server configuration.
Run with: uvicorn main:app --reload  (from the backend/ directory)
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from callscreen import __version__
from callscreen.config import settings
from callscreen.api import health
from callscreen.core.exceptions import CallScreenError
from callscreen.core.logging import setup_structured_logging
from callscreen.core.pipeline import create_pipeline
from callscreen.telephony import router as telephony

setup_structured_logging(
    level=settings.app_log_level,
    json_format=settings.log_json_format,
    anonymize=settings.anonymize_logs,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
        - Create the screening pipeline from settings
        - Log the effective policy

    Shutdown:
        - Shut down the pipeline
    """
    # === Startup ===
    logger.info("CallScreen starting in %s mode", settings.app_env)

    pipeline = create_pipeline(settings)

    # Store pipeline in app state for dependency injection
    app.state.pipeline = pipeline
    app.state.settings = settings

    await pipeline.startup()

    logger.info("Pipeline initialized and ready")
    logger.info(
        "   Notifications: discord=%s, generic=%s",
        bool(settings.discord_webhook_url),
        bool(settings.generic_webhook_url),
    )

    yield

    # === Shutdown ===
    logger.info("CallScreen shutting down")
    await pipeline.shutdown()
    logger.info("Shutdown complete")


async def callscreen_error_handler(request: Request, exc: CallScreenError) -> JSONResponse:
    """Render CallScreenError subclasses with their error code and status."""
    logger.warning("%s: %s", exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    """Application factory."""

    # Interactive docs only for debug builds outside production
    docs_enabled = settings.app_debug and not settings.is_production

    app = FastAPI(
        title="CallScreen",
        description="Inbound call screening against the phoneblock.net reputation service",
        version=__version__,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        lifespan=lifespan,
    )

    app.add_exception_handler(CallScreenError, callscreen_error_handler)

    # --- Routes ---
    app.include_router(health.router)
    app.include_router(telephony.router)

    @app.get("/")
    async def root():
        """Root health check."""
        return {
            "service": "CallScreen",
            "status": "operational",
            "version": __version__,
        }

    return app


# Create app instance
app = create_app()
