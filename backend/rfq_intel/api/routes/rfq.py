"""API routes for processing RFQ documents and pricing their line items."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import ValidationError

from rfq_intel.api.dependencies import get_catalog_store, get_pipeline
from rfq_intel.models.schemas import (
    CalculateRequest,
    CalculationOutcome,
    LineItem,
    ProcessResult,
    RFQHeader,
)
from rfq_intel.services.catalog_store import CatalogStore
from rfq_intel.services.pipeline import RFQPipeline, new_manual_item

router = APIRouter(prefix="/rfq", tags=["rfq"])


@router.post("/process", response_model=ProcessResult)
async def process_rfq(
    file: UploadFile = File(...),
    header: Optional[str] = Form(None),
    pipeline: RFQPipeline = Depends(get_pipeline),
) -> ProcessResult:
    """Upload an RFQ document, extract its line items and price them.

    ``header`` optionally carries the current draft header as JSON; its
    values are kept wherever the document does not provide one.
    """
    draft_header = None
    if header:
        try:
            draft_header = RFQHeader.model_validate_json(header)
        except ValidationError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=exc.errors(include_url=False),
            ) from exc

    contents = await file.read()
    if not contents:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")
    return await pipeline.process_document(
        contents,
        file.filename or "upload",
        file.content_type,
        draft_header,
    )


@router.post("/calculate", response_model=CalculationOutcome)
async def calculate_rfq(
    payload: CalculateRequest,
    pipeline: RFQPipeline = Depends(get_pipeline),
) -> CalculationOutcome:
    """Recalculate costs for the given line items with the pricing service."""
    return await pipeline.calculate_costs(payload.line_items)


@router.post("/items/manual", response_model=LineItem, status_code=status.HTTP_201_CREATED)
async def create_manual_item(store: CatalogStore = Depends(get_catalog_store)) -> LineItem:
    """Create a blank, locally estimated line item."""
    catalog = await store.load()
    return new_manual_item(catalog)
