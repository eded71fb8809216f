"""RFQ processing pipeline.

Orchestrates the whole chain from an uploaded document to priced line
items::

    ingest -> (store) -> extract -> normalize -> [local estimate]
           -> sanitize -> price (per item, concurrent) -> reconcile

Every stage writes an audit line and an ``ActivityLog`` entry so the
caller can show what happened, including per-item pricing failures and
items that were never sent to the pricing service.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Iterable, List, Optional

from rfq_intel.core.config import settings
from rfq_intel.core.exceptions import ExtractionError
from rfq_intel.core.observability import log_processing_status, sentry_set_tags
from rfq_intel.models.enums import ActivityStatus, MaterialType
from rfq_intel.models.schemas import (
    ActivityLog,
    CalculationOutcome,
    Dimensions,
    LineItem,
    PricingCatalog,
    ProcessResult,
    RFQHeader,
)
from rfq_intel.services.catalog_store import CatalogStore
from rfq_intel.services.cost_service import CostService
from rfq_intel.services.estimator import estimate, estimate_items, rfq_total
from rfq_intel.services.extraction_service import ExtractionService
from rfq_intel.services.normalizer import normalize_extraction
from rfq_intel.services.reconciler import apply_cost_results
from rfq_intel.services.storage_service import StorageService


logger = logging.getLogger(__name__)


def _activity(
    title: str,
    description: str,
    system: str,
    status: ActivityStatus,
    raw_content: Optional[str] = None,
) -> ActivityLog:
    return ActivityLog(
        id=uuid.uuid4().hex[:12],
        title=title,
        description=description,
        system=system,
        status=status,
        raw_content=raw_content,
    )


def _input_preview(items: List[LineItem]) -> str:
    """Request payload as the user sees it, before sanitization."""
    preview = {
        "requested_items": [
            {
                "pos": item.id,
                "article_name": item.description,
                "quantity": item.quantity,
                "config": item.config.model_dump(mode="json", exclude_none=True)
                if item.config
                else {"dimensions": item.dimensions.model_dump(), "material": item.material},
            }
            for item in items
        ]
    }
    return json.dumps(preview, indent=2)


def new_manual_item(catalog: PricingCatalog, now_ms: Optional[int] = None) -> LineItem:
    """Blank steel item added by hand, priced locally."""
    dimensions = Dimensions()
    material = MaterialType.STEEL_C45.value
    return LineItem(
        id=f"manual-{now_ms if now_ms is not None else int(time.time() * 1000)}",
        description="New Manual Item",
        material=material,
        quantity=1,
        unit="ST",
        dimensions=dimensions,
        calculation=estimate(material, dimensions, 1, catalog),
    )


class RFQPipeline:
    """Composition of the extraction, estimation and pricing services."""

    def __init__(
        self,
        cost_service: Optional[CostService] = None,
        extraction_service: Optional[ExtractionService] = None,
        catalog_store: Optional[CatalogStore] = None,
        storage: Optional[StorageService] = None,
        local_estimate: Optional[bool] = None,
        store_uploads: Optional[bool] = None,
    ) -> None:
        self.cost_service = cost_service or CostService()
        self.extraction_service = extraction_service or ExtractionService()
        self.catalog_store = catalog_store or CatalogStore()
        self._storage = storage
        self.local_estimate = settings.LOCAL_ESTIMATE_ON_IMPORT if local_estimate is None else local_estimate
        self.store_uploads = settings.STORE_UPLOADS if store_uploads is None else store_uploads

    @property
    def storage(self) -> StorageService:
        if self._storage is None:
            self._storage = StorageService()
        return self._storage

    async def calculate_costs(
        self,
        items: Iterable[LineItem],
        activity: Optional[List[ActivityLog]] = None,
    ) -> CalculationOutcome:
        """Price ``items`` remotely and merge the results.

        Items are never mutated; the returned outcome carries new copies.
        Safe to repeat: recalculating with the same answers gives the same
        items.
        """
        items = list(items)
        activity = activity if activity is not None else []
        activity.append(
            _activity(
                "COST API INPUT",
                "Sending items to external Cost Engine...",
                "Cost Service",
                ActivityStatus.PENDING,
                _input_preview(items),
            )
        )

        response_set = await self.cost_service.price_all(items)
        updated = apply_cost_results(items, response_set)

        if response_set.rejected:
            activity.append(
                _activity(
                    "ITEMS SKIPPED",
                    f"{len(response_set.rejected)} items not sent to the Cost API",
                    "Cost Service",
                    ActivityStatus.PENDING,
                    json.dumps([r.model_dump() for r in response_set.rejected], indent=2),
                )
            )
        failed = response_set.errors()
        for response in failed:
            activity.append(
                _activity(
                    "COST API ITEM FAILED",
                    f"Item {response.custom_id} could not be priced",
                    "Cost Service",
                    ActivityStatus.ERROR,
                    response.explanation,
                )
            )
        activity.append(
            _activity(
                "COST API OUTPUT",
                f"Processed {len(response_set.responses)} items ({len(failed)} failed)",
                "Cost Service",
                ActivityStatus.SUCCESS,
                response_set.model_dump_json(indent=2),
            )
        )
        log_processing_status(
            "COST_CALCULATION",
            "SUCCESS" if not failed else "FAILURE",
            f"{len(response_set.responses) - len(failed)}/{len(response_set.responses)} priced",
        )
        return CalculationOutcome(
            line_items=updated,
            responses=response_set.responses,
            rejected=response_set.rejected,
            activity=activity,
            total_cost=rfq_total(updated),
        )

    async def process_document(
        self,
        file_data: bytes,
        filename: str,
        content_type: Optional[str] = None,
        draft_header: Optional[RFQHeader] = None,
    ) -> ProcessResult:
        """Run the full pipeline for one uploaded document.

        :raises ExtractionError: when the extraction backend fails; nothing
            is priced in that case
        """
        run_id = "doc_" + uuid.uuid4().hex[:12]
        sentry_set_tags({"rfq_run": run_id})
        activity: List[ActivityLog] = []
        log_processing_status("INGESTION", "SUCCESS", run_id)

        document_key = None
        if self.store_uploads:
            try:
                document_key = await self.storage.save_document(file_data, filename, content_type)
                log_processing_status("STORAGE", "SUCCESS", run_id)
            except Exception as exc:
                # storing the original is optional; extraction still runs
                logger.warning("Storing uploaded document failed: %s", exc)
                log_processing_status("STORAGE", "FAILURE", str(exc))

        try:
            payload = await self.extraction_service.process(file_data, filename, content_type)
        except ExtractionError as exc:
            log_processing_status("PIPELINE", "FAILURE", str(exc))
            logger.error("Pipeline failed: %s", exc)
            raise
        log_processing_status("EXTRACTION", "SUCCESS", run_id)
        activity.append(
            _activity(
                "OCR API OUTPUT",
                "Raw extraction results from server",
                "Extraction Service",
                ActivityStatus.SUCCESS,
                json.dumps(payload, indent=2, default=str),
            )
        )

        normalized = normalize_extraction(payload, draft_header)
        log_processing_status("NORMALIZATION", "SUCCESS", run_id)
        activity.append(
            _activity(
                "NORMALIZATION OUTPUT",
                "Data mapped to canonical RFQ structure",
                "Normalization Engine",
                ActivityStatus.SUCCESS,
                normalized.model_dump_json(indent=2),
            )
        )
        activity.append(
            _activity(
                "FILE UPLOADED",
                f"Source: {normalized.source or 'unknown'}",
                "Ingestion Service",
                ActivityStatus.SUCCESS,
            )
        )

        items = normalized.line_items
        if self.local_estimate:
            catalog = await self.catalog_store.load()
            items = estimate_items(items, catalog)

        try:
            outcome = await self.calculate_costs(items, activity)
        except Exception as exc:
            # Keep the normalized items; the caller can retry the calculation.
            logger.exception("Auto-calculation failed")
            activity.append(
                _activity(
                    "AUTO-CALC FAILED",
                    "Could not calculate initial costs",
                    "Cost Service",
                    ActivityStatus.ERROR,
                    str(exc),
                )
            )
            outcome = CalculationOutcome(line_items=items, activity=activity, total_cost=rfq_total(items))

        return ProcessResult(
            header=normalized.header,
            source=normalized.source,
            document_key=document_key,
            **outcome.model_dump(),
        )
