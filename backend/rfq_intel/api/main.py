"""Entry point for the FastAPI application.

This module constructs the FastAPI app, includes all routers and
sets up startup and shutdown events. Configuration is loaded from
``rfq_intel.core.config``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.exception_handlers import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from rfq_intel.api.endpoints.health import router as health_router
from rfq_intel.api.error_handlers import (
    catalog_exception_handler,
    extraction_exception_handler,
    generic_exception_handler,
    validation_exception_handler,
)
from rfq_intel.api.routes.pricing import router as pricing_router
from rfq_intel.api.routes.rfq import router as rfq_router
from rfq_intel.core.config import settings
from rfq_intel.core.exceptions import CatalogError, ExtractionError
from rfq_intel.core.observability import init_sentry

# Configure logging
logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    # Startup
    logger.info("Starting up...")
    # Centralised Sentry init (idempotent)
    if init_sentry("api"):
        logger.info("Sentry SDK initialized (api)")
    logger.info("Cost API: %s | Extraction API: %s", settings.COST_API_BASE_URL, settings.EXTRACTION_API_BASE_URL)
    yield
    # Shutdown
    logger.info("Shutting down...")


# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    lifespan=lifespan,
)


# Middleware to enrich Sentry scope with lightweight request info
@app.middleware("http")
async def sentry_context_middleware(request: Request, call_next):  # type: ignore
    if settings.SENTRY_DSN:
        scope = sentry_sdk.get_current_scope()
        scope.set_tag("path", request.url.path)
        scope.set_tag("method", request.method)
    response = await call_next(request)
    return response

"""CORS configuration.

Logic:
1. In development => allow all ( * ) for simplest DX.
2. Otherwise use BACKEND_CORS_ORIGINS.
3. Deduplicate while preserving order.
"""
allow_origins = ["*"] if settings.is_development else list(settings.BACKEND_CORS_ORIGINS or [])

# Deduplicate preserving order
seen = set()
allow_origins = [o for o in allow_origins if not (o in seen or seen.add(o))]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register custom exception handlers
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(CatalogError, catalog_exception_handler)
app.add_exception_handler(ExtractionError, extraction_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Include routers
app.include_router(health_router)
app.include_router(rfq_router)
app.include_router(pricing_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": f"Welcome to the {settings.PROJECT_NAME} API"}
