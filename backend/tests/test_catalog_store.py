import pytest

from rfq_intel.models.schemas import MaterialDef, PricingCatalog
from rfq_intel.services.catalog_store import CatalogStore, default_catalog


def test_default_catalog_contents():
    catalog = default_catalog()
    assert set(catalog.materials) == {"C45", "Alu 6061", "SS 304", "Brass", "ABS"}
    assert catalog.materials["C45"].density == 7.85
    assert catalog.materials["ABS"].cost_per_kg == 0.80
    assert catalog.global_markup == 0
    assert catalog.currency == "EUR"


@pytest.mark.asyncio
async def test_load_without_stored_value_returns_default(fake_redis):
    catalog = await CatalogStore(client=fake_redis, key="k").load()
    assert set(catalog.materials) == set(default_catalog().materials)


@pytest.mark.asyncio
async def test_save_then_load(fake_redis):
    store = CatalogStore(client=fake_redis, key="k")
    custom = PricingCatalog(
        materials={"Ti": MaterialDef(id="Ti", name="Titanium", density=4.5, cost_per_kg=30.0)},
        global_markup=15,
    )
    assert await store.save(custom) is True
    loaded = await store.load()
    assert loaded.global_markup == 15
    assert loaded.materials["Ti"].density == 4.5


@pytest.mark.asyncio
async def test_invalid_stored_value_falls_back(fake_redis):
    fake_redis.data["k"] = '{"materials": {"X": {"id": "X", "name": "X", "density": -1, "cost_per_kg": 1}}}'
    catalog = await CatalogStore(client=fake_redis, key="k").load()
    assert "X" not in catalog.materials
    assert "C45" in catalog.materials


@pytest.mark.asyncio
async def test_unreachable_redis(failing_redis):
    store = CatalogStore(client=failing_redis, key="k")
    assert "C45" in (await store.load()).materials
    assert await store.save(default_catalog()) is False


@pytest.mark.asyncio
async def test_ping(fake_redis, failing_redis):
    assert await CatalogStore(client=fake_redis).ping() is True
    with pytest.raises(ConnectionError):
        await CatalogStore(client=failing_redis).ping()
