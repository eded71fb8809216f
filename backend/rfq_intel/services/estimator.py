"""Local physics-based cost estimator.

Computes volume, weight and material cost of a line item from its
bounding dimensions and the pricing catalog. The estimator is used for
instant placeholder costs before the remote pricing service has
answered, and as the fallback when it cannot price an item. It does no
I/O and is fully deterministic: identical inputs always produce
identical results.
"""

from __future__ import annotations

import logging
from typing import Iterable, List

from rfq_intel.models.schemas import CalculationResult, Dimensions, LineItem, PricingCatalog


logger = logging.getLogger(__name__)

# Used when a material is missing from the catalog (plain carbon steel)
DEFAULT_DENSITY = 7.85  # g/cm³
DEFAULT_COST_PER_KG = 1.50


def estimate(
    material: str,
    dimensions: Dimensions,
    quantity: int,
    catalog: PricingCatalog,
) -> CalculationResult:
    """Estimate weight and material cost for ``quantity`` parts.

    :param material: Catalog material id (falls back to steel defaults when unknown)
    :param dimensions: Bounding box in millimetres
    :param quantity: Number of parts on the line
    :param catalog: Pricing catalog supplying density, cost/kg and markup
    :returns: ``CalculationResult`` with per-unit and line totals
    """
    material_def = catalog.lookup(material)
    if material_def is None:
        logger.warning(
            "Material %r not in pricing catalog; using default density %.2f and cost %.2f/kg",
            material,
            DEFAULT_DENSITY,
            DEFAULT_COST_PER_KG,
        )
        density = DEFAULT_DENSITY
        cost_per_kg = DEFAULT_COST_PER_KG
    else:
        density = material_def.density
        cost_per_kg = material_def.cost_per_kg
    markup = catalog.global_markup or 0.0

    volume_mm3 = dimensions.length * dimensions.width * dimensions.height
    volume_cm3 = volume_mm3 / 1000
    weight_grams = volume_cm3 * density

    raw_cost_per_unit = weight_grams * (cost_per_kg / 1000)
    cost_per_unit = raw_cost_per_unit * (1 + markup / 100)

    return CalculationResult(
        volume_mm3=volume_mm3,
        density=density,
        weight_grams=weight_grams,
        material_cost=cost_per_unit,
        unit_price=cost_per_unit,
        total_line_cost=cost_per_unit * quantity,
    )


def estimate_item(item: LineItem, catalog: PricingCatalog) -> LineItem:
    """Return a copy of ``item`` carrying a fresh local estimate."""
    calculation = estimate(item.material, item.dimensions, item.quantity, catalog)
    return item.model_copy(update={"calculation": calculation})


def estimate_items(items: Iterable[LineItem], catalog: PricingCatalog) -> List[LineItem]:
    return [estimate_item(item, catalog) for item in items]


def rfq_total(items: Iterable[LineItem]) -> float:
    """Sum of all line totals."""
    return sum(item.calculation.total_line_cost for item in items)
