"""
REST API main application.
Entry point for the FastAPI REST server.

Run with:
    uvicorn djstore_api.main:app --port 8000
"""

from fastapi import FastAPI

from djstore_api.core.cors import configure_cors
from djstore_api.core.exception_handlers import register_exception_handlers
from djstore_api.core.lifespan import lifespan
from djstore_api.routers.products import router as products_router
from djstore_api.routers.public.health import router as health_router
from djstore_shared.infrastructure.correlation import CorrelationIdMiddleware


# Create FastAPI application
app = FastAPI(
    title="DJ Store API",
    description="Catalog and wishlist API of the DJ store",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware for frontend access
configure_cors(app)

# Request correlation (X-Request-ID)
app.add_middleware(CorrelationIdMiddleware)

# Problem details for store errors
register_exception_handlers(app)


# =============================================================================
# Routers
# =============================================================================

app.include_router(health_router)
app.include_router(products_router)
