import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from viewtrack.config import settings
from viewtrack.database import Base, engine
from viewtrack.exception_handlers import register_exception_handlers
from viewtrack.middleware.logging import StructuredLoggingMiddleware, setup_structured_logging
from viewtrack.middleware.rate_limit import configure_rate_limiting
from viewtrack.routes import views

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Tasks to run at application startup and shutdown."""
    logger.info(f"Starting {settings.app_name} in {settings.environment} mode")
    if settings.debug:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created (if not existing).")

    yield

    logger.info("Shutting down the application...")
    await engine.dispose()


def create_app(configure_logging: bool = True) -> FastAPI:
    """Create the FastAPI application."""
    if configure_logging:
        setup_structured_logging(settings.log_level, json_format=settings.log_json)

    app = FastAPI(
        title=settings.app_name,
        description="Rate-limited view counting for articles and forum posts",
        debug=settings.debug,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_middleware(StructuredLoggingMiddleware)

    configure_rate_limiting(app)
    register_exception_handlers(app)

    app.include_router(views.router)

    @app.get("/health", tags=["Root"])
    async def health():
        return {"status": "ok"}

    return app
