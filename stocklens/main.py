"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stocklens.core.config import get_settings
from stocklens.core.database import dispose_app_engine
from stocklens.core.exceptions import register_exception_handlers
from stocklens.core.health import router as health_router
from stocklens.core.logging import configure_logging, get_logger
from stocklens.core.middleware import REQUEST_ID_HEADER, RESPONSE_TIME_HEADER, RequestIdMiddleware
from stocklens.features.analytics.routes import router as analytics_router
from stocklens.features.ingest.routes import router as ingest_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure logging on startup and release the database pool on shutdown."""
    settings = get_settings()
    configure_logging()

    csv_path = settings.analytics_csv_path
    logger.info(
        "app.startup_completed",
        app_name=settings.app_name,
        app_env=settings.app_env,
        data_source="csv" if csv_path else "database",
    )
    if csv_path and not Path(csv_path).is_file():
        # Reports will fail with a 422 until the file appears
        logger.warning("app.csv_source_missing", path=csv_path)

    yield

    await dispose_app_engine()
    logger.info("app.shutdown_completed")


def create_app() -> FastAPI:
    """Build the StockLens API: health, analytics reports and ingestion."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Retail inventory analytics: stock classification, forecast "
        "accuracy and stock recommendations",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # Middleware (first added = outermost)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER, RESPONSE_TIME_HEADER],
    )
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(analytics_router)
    app.include_router(ingest_router)

    return app


app = create_app()
