from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Add backend folder to sys.path so `import rfq_intel...` works in tests when running from backend root
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from rfq_intel.models.schemas import CalculationResult, Dimensions, LineItem  # noqa: E402
from rfq_intel.services.catalog_store import default_catalog  # noqa: E402


class FakeRedis:
    """In-memory stand-in for the async Redis client (get/set/ping only)."""

    def __init__(self, fail: bool = False):
        self.data = {}
        self.fail = fail

    async def get(self, key):
        if self.fail:
            raise ConnectionError("redis down")
        return self.data.get(key)

    async def set(self, key, value):
        if self.fail:
            raise ConnectionError("redis down")
        self.data[key] = value
        return True

    async def ping(self):
        if self.fail:
            raise ConnectionError("redis down")
        return True


@pytest.fixture
def catalog():
    return default_catalog()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def make_item():
    def _make(item_id="1", description="Flange", length=100, width=50, height=20, quantity=10, **extra):
        return LineItem(
            id=item_id,
            description=description,
            dimensions=Dimensions(length=length, width=width, height=height),
            quantity=quantity,
            **extra,
        )

    return _make


@pytest.fixture
def estimated_calculation():
    return CalculationResult(
        volume_mm3=100000.0,
        density=7.85,
        weight_grams=785.0,
        material_cost=1.1775,
        unit_price=1.1775,
        total_line_cost=11.775,
    )


@pytest.fixture
def failing_redis():
    return FakeRedis(fail=True)
