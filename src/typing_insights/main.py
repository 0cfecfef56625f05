import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_settings
from .logging_setup import setup_logging_from_settings
from .routers.cron import cron_router
from .routers.keystrokes import keystrokes_router
from .routers.weakness import weakness_router

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application with logging, CORS and all routers."""
    settings = settings or get_settings()
    setup_logging_from_settings(settings)

    app = FastAPI(
        title="Typing Insights API",
        description="Keystroke telemetry ingestion, weakness profiles and adaptive practice content.",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.get("/", summary="Health Check")
    def health_check():
        """Simple health endpoint to verify the service is up."""
        return {"message": "Healthy"}

    @app.get("/ready", summary="Readiness Check")
    def readiness_check():
        """Readiness endpoint to signal the service is ready to accept traffic."""
        return {"status": "ready"}

    app.include_router(keystrokes_router, prefix="/api")
    app.include_router(cron_router, prefix="/api")
    app.include_router(weakness_router, prefix="/api")

    logger.info("Typing Insights API configured")
    return app


app = create_app()
