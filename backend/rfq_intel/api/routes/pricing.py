"""API routes for local estimates and the pricing catalog."""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, status
from pydantic import ValidationError

from rfq_intel.api.dependencies import get_catalog_store
from rfq_intel.core.exceptions import CatalogError
from rfq_intel.models.schemas import CalculationResult, EstimateRequest, PricingCatalog
from rfq_intel.services.catalog_store import CatalogStore
from rfq_intel.services.estimator import estimate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pricing"])


@router.post("/estimate", response_model=CalculationResult)
async def local_estimate(
    payload: EstimateRequest,
    store: CatalogStore = Depends(get_catalog_store),
) -> CalculationResult:
    """Instant material cost estimate from the stored pricing catalog."""
    catalog = await store.load()
    return estimate(payload.material, payload.dimensions, payload.quantity, catalog)


@router.get("/settings/pricing", response_model=PricingCatalog)
async def get_pricing(store: CatalogStore = Depends(get_catalog_store)) -> PricingCatalog:
    return await store.load()


@router.put("/settings/pricing", response_model=PricingCatalog)
async def update_pricing(
    payload: Dict[str, Any] = Body(...),
    store: CatalogStore = Depends(get_catalog_store),
) -> PricingCatalog:
    """Replace the pricing catalog.

    A malformed catalog (negative density or cost, non-numeric values) is
    rejected with 422 and the stored catalog is left unchanged.
    """
    try:
        catalog = PricingCatalog.model_validate(payload)
    except ValidationError as exc:
        raise CatalogError("Invalid pricing catalog", details=exc.errors(include_url=False)) from exc
    if not await store.save(catalog):
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Pricing catalog could not be saved")
    return catalog
