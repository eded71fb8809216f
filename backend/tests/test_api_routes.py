from __future__ import annotations

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from rfq_intel.api.dependencies import get_catalog_store, get_pipeline
from rfq_intel.api.main import app
from rfq_intel.core.exceptions import ExtractionError
from rfq_intel.services.catalog_store import CatalogStore
from rfq_intel.services.cost_service import CostService
from rfq_intel.services.extraction_service import ExtractionService
from rfq_intel.services.pipeline import RFQPipeline


def _cost_handler(request: httpx.Request) -> httpx.Response:
    entry = json.loads(request.content)["requested_items"][0]
    return httpx.Response(
        200,
        json=[{
            "status": "success",
            "custom_id": entry["pos"],
            "breakdown": {"total_unit_cost": 2.0, "total_cost": 200.0, "total_order_cost": 20.0},
        }],
    )


def _extraction_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "header": {"customer_name": "ACME AG"},
            "data": {"requested_items": [
                {"pos": "1", "article_name": "Flange", "quantity": 10,
                 "config": {"dimensions": {"length": 100, "width": 50, "height": 20}}},
            ]},
        },
    )


@pytest.fixture
def client(fake_redis):
    store = CatalogStore(client=fake_redis, key="k")

    def _pipeline():
        return RFQPipeline(
            cost_service=CostService(
                client=httpx.AsyncClient(transport=httpx.MockTransport(_cost_handler)),
                base_url="http://cost.test",
            ),
            extraction_service=ExtractionService(
                client=httpx.AsyncClient(transport=httpx.MockTransport(_extraction_handler)),
                base_url="http://extract.test",
            ),
            catalog_store=store,
            store_uploads=False,
        )

    app.dependency_overrides[get_catalog_store] = lambda: store
    app.dependency_overrides[get_pipeline] = _pipeline
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_process_upload(client):
    resp = client.post(
        "/rfq/process",
        files={"file": ("rfq.pdf", b"%PDF-1.4", "application/pdf")},
        data={"header": json.dumps({"location": "Plant 9"})},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["header"]["customer_name"] == "ACME AG"
    assert body["header"]["location"] == "Plant 9"
    assert body["line_items"][0]["calculation"]["total_line_cost"] == pytest.approx(20.0)
    assert body["total_cost"] == pytest.approx(20.0)


def test_process_rejects_empty_upload(client):
    resp = client.post("/rfq/process", files={"file": ("rfq.pdf", b"", "application/pdf")})
    assert resp.status_code == 400


def test_process_extraction_failure_maps_to_502(client):
    class Broken:
        async def process_document(self, *args, **kwargs):
            raise ExtractionError("Backend Error (500): down", status_code=500)

    app.dependency_overrides[get_pipeline] = lambda: Broken()
    resp = client.post("/rfq/process", files={"file": ("rfq.pdf", b"%PDF", "application/pdf")})
    assert resp.status_code == 502
    assert resp.json()["upstream_status"] == 500


def test_calculate_route(client):
    payload = {
        "line_items": [
            {"id": "a", "description": "Plate", "quantity": 10,
             "dimensions": {"length": 100, "width": 50, "height": 20}},
            {"id": "b", "description": "Blank"},
        ]
    }
    resp = client.post("/rfq/calculate", json=payload)
    assert resp.status_code == 200
    body = resp.json()
    assert [item["id"] for item in body["line_items"]] == ["a", "b"]
    assert body["line_items"][0]["calculation"]["total_line_cost"] == pytest.approx(20.0)
    assert body["rejected"][0]["item_id"] == "b"


def test_calculate_validation_error_shape(client):
    resp = client.post("/rfq/calculate", json={"line_items": [{"description": "no id"}]})
    assert resp.status_code == 422
    body = resp.json()
    assert body["error"] == "Validation error"
    assert body["details"]


def test_manual_item(client):
    resp = client.post("/rfq/items/manual")
    assert resp.status_code == 201
    body = resp.json()
    assert body["id"].startswith("manual-")
    assert body["unit"] == "ST"


def test_estimate_route(client):
    resp = client.post(
        "/estimate",
        json={"material": "C45", "dimensions": {"length": 100, "width": 50, "height": 20}, "quantity": 10},
    )
    assert resp.status_code == 200
    assert resp.json()["total_line_cost"] == pytest.approx(11.775)


def test_pricing_settings_roundtrip(client):
    catalog = client.get("/settings/pricing").json()
    assert "C45" in catalog["materials"]

    catalog["global_markup"] = 10
    resp = client.put("/settings/pricing", json=catalog)
    assert resp.status_code == 200

    resp = client.post(
        "/estimate",
        json={"material": "C45", "dimensions": {"length": 100, "width": 50, "height": 20}, "quantity": 10},
    )
    assert resp.json()["total_line_cost"] == pytest.approx(12.9525)


def test_malformed_catalog_is_rejected(client):
    bad = {"materials": {"X": {"id": "X", "name": "X", "density": -1, "cost_per_kg": 1}}}
    resp = client.put("/settings/pricing", json=bad)
    assert resp.status_code == 422
    assert resp.json()["error"] == "Invalid pricing catalog"
    assert "X" not in client.get("/settings/pricing").json()["materials"]


def test_calculate_rejects_duplicate_ids(client):
    payload = {
        "line_items": [
            {"id": "1", "description": "A", "dimensions": {"length": 10, "width": 10, "height": 10}},
            {"id": "1", "description": "B", "dimensions": {"length": 20, "width": 20, "height": 20}},
        ]
    }
    resp = client.post("/rfq/calculate", json=payload)
    assert resp.status_code == 422
    body = resp.json()
    assert body["error"] == "Validation error"
    assert "Duplicate line item ids: 1" in json.dumps(body["details"])


def test_detailed_health_reports_redis(client):
    resp = client.get("/health/detailed")
    assert resp.status_code == 200
    assert resp.json()["services"]["redis"] == "healthy"
