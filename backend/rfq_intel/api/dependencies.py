"""Common dependencies for FastAPI routes.

Each service is built per request from ``settings``; tests replace them
through ``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Depends

from rfq_intel.services.catalog_store import CatalogStore
from rfq_intel.services.cost_service import CostService
from rfq_intel.services.extraction_service import ExtractionService
from rfq_intel.services.pipeline import RFQPipeline


def get_cost_service() -> CostService:
    return CostService()


def get_extraction_service() -> ExtractionService:
    return ExtractionService()


def get_catalog_store() -> CatalogStore:
    return CatalogStore()


def get_pipeline(
    cost_service: CostService = Depends(get_cost_service),
    extraction_service: ExtractionService = Depends(get_extraction_service),
    catalog_store: CatalogStore = Depends(get_catalog_store),
) -> RFQPipeline:
    """Pipeline wired from the request-scoped services above."""
    return RFQPipeline(
        cost_service=cost_service,
        extraction_service=extraction_service,
        catalog_store=catalog_store,
    )
