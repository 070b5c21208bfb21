"""
Fitness to Slack API

FastAPI application that posts Strava runs and Peloton workouts to Slack.
"""

from contextlib import asynccontextmanager
import logging
import sys
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fitslack import __version__
from fitslack.api.pages import error_page, home_page
from fitslack.api.router import api_router
from fitslack.config import Settings
from fitslack.db.session import create_engine, create_session_factory, init_db
from fitslack.services import Services, build_services
from fitslack.shared.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
    VendorError,
)

logger = logging.getLogger(__name__)


# === Logging Setup ===
def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


# === Error Responses ===
def _error_response(request: Request, status_code: int, message: str, heading: str):
    """JSON for admin routes, a small HTML page for everything else."""
    if getattr(request.state, "json_errors", False):
        return JSONResponse(status_code=status_code, content={"ok": False, "error": message})
    return error_page(message, status_code=status_code, heading=heading)


def register_exception_handlers(app: FastAPI, debug: bool) -> None:

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return _error_response(request, 400, str(exc), "Invalid request")

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(request: Request, exc: AuthenticationError):
        return _error_response(request, 401, str(exc), "Unauthorized")

    @app.exception_handler(AuthorizationError)
    async def authorization_error_handler(request: Request, exc: AuthorizationError):
        return _error_response(request, 403, str(exc), "Not allowed")

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error_response(request, 404, str(exc), "Not found")

    @app.exception_handler(VendorError)
    async def vendor_error_handler(request: Request, exc: VendorError):
        logger.error(f"Vendor error on {request.url.path}: {exc}")
        return _error_response(request, 500, str(exc), "Something went wrong")

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.url.path}")
        message = f"Internal server error: {exc}" if debug else "Internal server error"
        return _error_response(request, 500, message, "Something went wrong")


# === App Creation ===
def create_app(
    services: Optional[Services] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        services: Prebuilt container (tests). Built from settings when omitted,
            in which case tables are created at startup.
        settings: Settings to use; read from the environment when omitted
    """
    if services is not None:
        settings = services.settings
    elif settings is None:
        settings = Settings()

    configure_logging(settings.log_level)

    engine = None
    if services is None:
        engine = create_engine(settings.database_url)
        services = build_services(settings, create_session_factory(engine))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        logger.info("Starting Fitness to Slack...")
        if engine is not None:
            await init_db(engine)
            logger.info("Database initialized")

        if settings.peloton_poller_enabled:
            await services.poller.start()

        yield

        if services.poller.running:
            await services.poller.stop()
        if engine is not None:
            await engine.dispose()
        logger.info("Shutting down...")

    app = FastAPI(
        title="Fitness to Slack",
        description="Auto-post Strava and Peloton workouts to Slack",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.services = services

    register_exception_handlers(app, settings.debug)

    # === Routes ===
    app.include_router(api_router)

    @app.get("/", include_in_schema=False)
    async def home():
        return home_page()

    # === Health Check ===
    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    return app


def run() -> None:
    """Console entry point."""
    import uvicorn

    settings = Settings()
    uvicorn.run(
        "fitslack.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
