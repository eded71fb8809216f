"""Redis-backed persistence of the pricing catalog.

The catalog is stored as a single JSON document under
``settings.PRICING_CATALOG_KEY``. Loading never fails: if nothing is
stored, the stored value does not validate or Redis is unreachable, the
built-in default catalog is returned so that local estimates keep
working.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError
from redis import asyncio as aioredis
from redis.exceptions import RedisError

from rfq_intel.core.config import settings
from rfq_intel.models.enums import MaterialType
from rfq_intel.models.schemas import MaterialDef, PricingCatalog


logger = logging.getLogger(__name__)

_redis_client = None
_lock = asyncio.Lock()


def default_catalog() -> PricingCatalog:
    """Built-in catalog of the five standard materials, no markup, EUR."""
    now = datetime.now(timezone.utc)
    rows = [
        (MaterialType.STEEL_C45, "Steel C45 (1.0503)", 7.85, 1.50),
        (MaterialType.ALUMINIUM_6061, "Aluminium 6061", 2.70, 2.80),
        (MaterialType.STAINLESS_304, "Stainless Steel 304", 8.00, 4.50),
        (MaterialType.BRASS, "Brass (CuZn39Pb3)", 8.73, 6.00),
        (MaterialType.PLASTIC_ABS, "Plastic ABS", 1.04, 0.80),
    ]
    return PricingCatalog(
        currency="EUR",
        global_markup=0.0,
        materials={
            m.value: MaterialDef(id=m.value, name=name, density=density, cost_per_kg=cost, last_updated=now)
            for m, name, density, cost in rows
        },
    )


async def get_redis():
    """Return a singleton async Redis client."""
    global _redis_client
    if _redis_client is not None:
        return _redis_client
    async with _lock:
        if _redis_client is None:
            _redis_client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis_client


class CatalogStore:
    """Load/save the pricing catalog from a key-value store."""

    def __init__(self, client=None, key: Optional[str] = None) -> None:
        self._client = client
        self.key = key or settings.PRICING_CATALOG_KEY

    async def _get_client(self):
        if self._client is None:
            self._client = await get_redis()
        return self._client

    async def load(self) -> PricingCatalog:
        try:
            client = await self._get_client()
            raw = await client.get(self.key)
        except (RedisError, OSError) as exc:
            logger.error("Failed to load pricing config: %s", exc)
            return default_catalog()
        if raw is None:
            return default_catalog()
        try:
            return PricingCatalog.model_validate_json(raw)
        except ValidationError as exc:
            logger.error("Stored pricing config is invalid, using defaults: %s", exc)
            return default_catalog()

    async def save(self, catalog: PricingCatalog) -> bool:
        try:
            client = await self._get_client()
            await client.set(self.key, catalog.model_dump_json())
        except (RedisError, OSError) as exc:
            logger.error("Failed to save pricing config: %s", exc)
            return False
        logger.info("Saved pricing config (%d materials, markup %.2f%%)", len(catalog.materials), catalog.global_markup)
        return True

    async def ping(self) -> bool:
        """Raise if the backing store is unreachable."""
        client = await self._get_client()
        return bool(await client.ping())
