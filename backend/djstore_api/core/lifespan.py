"""
Application lifespan handler.
Manages startup and shutdown events for the FastAPI application.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from djstore_api.models import Base
from djstore_api.services.crud.model_builder import build_store_model
from djstore_shared.config.logging import rest_api_logger as logger, setup_logging
from djstore_shared.config.settings import settings
from djstore_shared.infrastructure.db import engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Runs on startup and shutdown.
    """
    # Initialize logging
    setup_logging()

    # Validate configuration before startup
    config_errors = settings.validate_production_settings()
    if config_errors:
        for error in config_errors:
            logger.error("Configuration error: %s", error)
        if settings.environment == "production":
            raise RuntimeError(
                f"Production configuration errors: {'; '.join(config_errors)}. "
                "Server will not start with this configuration."
            )
        else:
            logger.warning("Running with development defaults")

    # Startup
    logger.info("Starting REST API", port=settings.rest_api_port, env=settings.environment)

    # Bindings, global filters and trimming must be in place before the schema
    build_store_model()

    if settings.create_schema_on_startup:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created/verified")

    yield

    # Shutdown
    logger.info("Shutting down REST API")

    await engine.dispose()
    logger.info("Database connection pool closed")
