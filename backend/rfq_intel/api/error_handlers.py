"""
Custom exception handlers for FastAPI.
Provides clear, actionable error messages for validation, upstream and server errors.
"""

import logging

import sentry_sdk
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exception_handlers import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
)

from rfq_intel.core.config import settings
from rfq_intel.core.exceptions import CatalogError, ExtractionError


logger = logging.getLogger(__name__)


def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation error",
            "details": jsonable_encoder(exc.errors()),
        },
    )


def catalog_exception_handler(request: Request, exc: CatalogError):
    return JSONResponse(
        status_code=HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": str(exc),
            "details": jsonable_encoder(exc.details),
        },
    )


def extraction_exception_handler(request: Request, exc: ExtractionError):
    return JSONResponse(
        status_code=HTTP_502_BAD_GATEWAY,
        content={
            "error": "Extraction failed",
            "details": str(exc),
            "upstream_status": exc.status_code,
        },
    )


def generic_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    if settings.SENTRY_DSN:
        sentry_sdk.capture_exception(exc)
    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "details": str(exc),
        },
    )
