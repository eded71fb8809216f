from __future__ import annotations

import json

import httpx
import pytest

from rfq_intel.core.exceptions import ExtractionError
from rfq_intel.services.catalog_store import CatalogStore
from rfq_intel.services.cost_service import CostService
from rfq_intel.services.extraction_service import ExtractionService
from rfq_intel.services.pipeline import RFQPipeline, new_manual_item


EXTRACTION_PAYLOAD = {
    "status": "success",
    "metadata": {"source": "native"},
    "header": {"customer_name": "ACME AG", "rfq_number": "R-1"},
    "data": {
        "requested_items": [
            {"pos": "1", "article_name": "Flange", "quantity": 10,
             "config": {"material": "C45", "dimensions": {"length": 100, "width": 50, "height": 20}}},
            {"pos": "2", "article_name": "Shaft", "quantity": 10,
             "config": {"dimensions": {"length": 100, "width": 50, "height": 20}}},
            {"pos": "3", "article_name": "Drawing only", "quantity": 1},
        ]
    },
}


def _cost_handler(request: httpx.Request) -> httpx.Response:
    entry = json.loads(request.content)["requested_items"][0]
    if entry["pos"] == "2":
        return httpx.Response(500, text="no base key for Shaft")
    return httpx.Response(
        200,
        json=[{
            "status": "success",
            "custom_id": entry["pos"],
            "breakdown": {"total_unit_cost": 4.2, "total_cost": 420.0, "total_order_cost": 42.0},
        }],
    )


def _pipeline(fake_redis, extraction_handler=None, cost_handler=_cost_handler, local_estimate=True):
    extraction_handler = extraction_handler or (lambda request: httpx.Response(200, json=EXTRACTION_PAYLOAD))
    return RFQPipeline(
        cost_service=CostService(
            client=httpx.AsyncClient(transport=httpx.MockTransport(cost_handler)),
            base_url="http://cost.test",
        ),
        extraction_service=ExtractionService(
            client=httpx.AsyncClient(transport=httpx.MockTransport(extraction_handler)),
            base_url="http://extract.test",
        ),
        catalog_store=CatalogStore(client=fake_redis, key="k"),
        local_estimate=local_estimate,
        store_uploads=False,
    )


@pytest.mark.asyncio
async def test_process_document_runs_full_pipeline(fake_redis):
    result = await _pipeline(fake_redis).process_document(b"%PDF", "rfq.pdf", "application/pdf")

    assert result.header.customer_name == "ACME AG"
    assert result.source == "native"
    by_id = {item.id: item for item in result.line_items}
    assert list(by_id) == ["1", "2", "3"]

    # priced remotely
    assert by_id["1"].calculation.total_line_cost == pytest.approx(42.0)
    assert by_id["1"].calculation.weight_grams == pytest.approx(785.0)
    # remote failure keeps the local estimate
    assert by_id["2"].calculation.total_line_cost == pytest.approx(11.775)
    # never sent
    assert by_id["3"].calculation.total_line_cost == 0
    assert [r.item_id for r in result.rejected] == ["3"]

    assert result.total_cost == pytest.approx(42.0 + 11.775)
    titles = [entry.title for entry in result.activity]
    assert titles[:3] == ["OCR API OUTPUT", "NORMALIZATION OUTPUT", "FILE UPLOADED"]
    assert "COST API INPUT" in titles
    assert "ITEMS SKIPPED" in titles
    assert titles[-1] == "COST API OUTPUT"
    failures = [entry for entry in result.activity if entry.title == "COST API ITEM FAILED"]
    assert len(failures) == 1
    assert failures[0].raw_content == "no base key for Shaft"


@pytest.mark.asyncio
async def test_without_local_estimate_items_start_at_zero(fake_redis):
    result = await _pipeline(fake_redis, local_estimate=False).process_document(b"%PDF", "rfq.pdf")
    by_id = {item.id: item for item in result.line_items}
    assert by_id["2"].calculation.total_line_cost == 0
    assert by_id["1"].calculation.weight_grams == 0


@pytest.mark.asyncio
async def test_extraction_failure_is_raised(fake_redis):
    pipeline = _pipeline(fake_redis, extraction_handler=lambda request: httpx.Response(500, text="bad pdf"))
    with pytest.raises(ExtractionError):
        await pipeline.process_document(b"%PDF", "rfq.pdf")


@pytest.mark.asyncio
async def test_auto_calc_failure_keeps_normalized_items(fake_redis, monkeypatch):
    pipeline = _pipeline(fake_redis)

    async def broken(items):
        raise RuntimeError("pricing offline")

    monkeypatch.setattr(pipeline.cost_service, "price_all", broken)
    result = await pipeline.process_document(b"%PDF", "rfq.pdf")

    assert [item.id for item in result.line_items] == ["1", "2", "3"]
    assert result.activity[-1].title == "AUTO-CALC FAILED"
    assert result.activity[-1].status.value == "error"
    assert result.activity[-1].raw_content == "pricing offline"


@pytest.mark.asyncio
async def test_calculate_costs_does_not_mutate_input(fake_redis, make_item, estimated_calculation):
    items = [make_item("1", calculation=estimated_calculation), make_item("2", calculation=estimated_calculation)]
    snapshot = [item.model_copy(deep=True) for item in items]

    outcome = await _pipeline(fake_redis).calculate_costs(items)

    assert items == snapshot
    assert outcome.line_items[0].calculation.total_line_cost == pytest.approx(42.0)
    assert outcome.line_items[1].calculation == estimated_calculation
    assert outcome.activity[0].title == "COST API INPUT"
    assert outcome.activity[0].status.value == "pending"
    assert outcome.activity[-1].status.value == "success"


def test_new_manual_item(catalog):
    item = new_manual_item(catalog, now_ms=1700000000000)
    assert item.id == "manual-1700000000000"
    assert item.description == "New Manual Item"
    assert item.material == "C45"
    assert item.quantity == 1
    assert item.unit == "ST"
    assert item.dimensions.is_zero
    assert item.calculation.total_line_cost == 0


class _ObjectStoreDown(Exception):
    pass


class _UnreachableStorage:
    async def save_document(self, contents, filename, content_type=None):
        raise _ObjectStoreDown("retries exhausted")


@pytest.mark.asyncio
async def test_storage_failure_does_not_stop_processing(fake_redis):
    pipeline = _pipeline(fake_redis)
    pipeline.store_uploads = True
    pipeline._storage = _UnreachableStorage()

    result = await pipeline.process_document(b"%PDF", "rfq.pdf")

    assert result.document_key is None
    assert [item.id for item in result.line_items] == ["1", "2", "3"]


@pytest.mark.asyncio
async def test_storage_construction_failure_does_not_stop_processing(fake_redis, monkeypatch):
    import rfq_intel.services.pipeline as pipeline_module

    def _broken_storage():
        raise _ObjectStoreDown("max retries exceeded")

    monkeypatch.setattr(pipeline_module, "StorageService", _broken_storage)
    pipeline = _pipeline(fake_redis)
    pipeline.store_uploads = True

    result = await pipeline.process_document(b"%PDF", "rfq.pdf")

    assert result.document_key is None
    assert result.header.customer_name == "ACME AG"
