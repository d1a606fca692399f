"""FastAPI application factory."""
from __future__ import annotations
from contextlib import asynccontextmanager
import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from ..config import Settings
from ..exceptions import ConfigurationError, ExtractionError, RetryValidationError
from ..pipeline import BillRoutingPipeline
from ..storage.database import init_db, close_db
from .middleware import RequestLoggingMiddleware
from .routes import endpoints, health, parse, retry

logger = structlog.get_logger(__name__)


def create_app(settings: Settings | None = None, pipeline: BillRoutingPipeline | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    A *pipeline* passed in is used as-is and never closed by the app.
    """
    if settings is None:
        settings = Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        database_url = settings.database_url.get_secret_value()
        if database_url:
            init_db(database_url)
        owns_pipeline = app.state.pipeline is None
        if owns_pipeline:
            app.state.pipeline = BillRoutingPipeline(settings)
        yield
        # Shutdown
        if owns_pipeline:
            await app.state.pipeline.aclose()
        if database_url:
            await close_db()

    app = FastAPI(
        title="Bill Router API",
        description="Irish utility bill parsing and billing API routing",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.pipeline = pipeline

    @app.exception_handler(ExtractionError)
    async def extraction_error_handler(request: Request, exc: ExtractionError):
        logger.error("extraction_failed", error=str(exc), status=exc.status)
        return JSONResponse(status_code=502, content={"error": str(exc), "details": exc.details})

    @app.exception_handler(RetryValidationError)
    async def retry_validation_handler(request: Request, exc: RetryValidationError):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        logger.error("configuration_error", error=str(exc))
        return JSONResponse(status_code=500, content={"error": str(exc)})

    app.include_router(health.router, tags=["health"])
    app.include_router(parse.router, tags=["routing"])
    app.include_router(retry.router, tags=["routing"])
    app.include_router(endpoints.router, prefix="/endpoints", tags=["endpoints"])

    return app
