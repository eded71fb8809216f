"""Merge remote pricing results back onto line items.

The pricing service is authoritative for prices only. Geometry
(volume, density, weight) always comes from the item's existing
calculation, so a partial remote result can never erase a known-good
local estimate. Items without a response, or whose response carries no
breakdown (errors), are returned untouched.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Union

from rfq_intel.models.schemas import CalculationResult, CostResponseItem, LineItem, ResponseSet


logger = logging.getLogger(__name__)

# Order total and unit total × quantity may disagree by server rounding
_TOTAL_TOLERANCE = 0.01


def _index(responses: Union[ResponseSet, Iterable[CostResponseItem]]) -> Dict[str, CostResponseItem]:
    items = responses.responses if isinstance(responses, ResponseSet) else responses
    index: Dict[str, CostResponseItem] = {}
    for response in items:
        # first response wins for a given id
        index.setdefault(response.custom_id, response)
    return index


def merge_result(item: LineItem, result: CostResponseItem) -> LineItem:
    """Apply one response to one item (no-op when there is no breakdown)."""
    breakdown = result.breakdown
    if breakdown is None:
        return item

    total_line_cost = breakdown.total_order_cost or breakdown.total_cost
    if breakdown.total_order_cost and breakdown.total_unit_cost:
        per_unit_total = breakdown.total_unit_cost * item.quantity
        if abs(per_unit_total - breakdown.total_order_cost) > _TOTAL_TOLERANCE:
            logger.warning(
                "Item %s: order total %.4f differs from unit total x quantity %.4f; keeping order total",
                item.id,
                breakdown.total_order_cost,
                per_unit_total,
            )

    previous = item.calculation
    calculation = CalculationResult(
        # physical estimate is local only
        volume_mm3=previous.volume_mm3,
        density=previous.density,
        weight_grams=previous.weight_grams,
        material_cost=breakdown.base_unit_cost or 0.0,
        unit_price=breakdown.total_unit_cost,
        total_line_cost=total_line_cost,
        rate_per_100=breakdown.total_cost,
        base_material_id=(result.base_key.id if result.base_key else None) or breakdown.base_key_id,
        base_key_description=result.base_key.description if result.base_key else None,
        base_unit_cost=breakdown.base_unit_cost,
        modules_cost=breakdown.modules_cost,
        setup_cost=breakdown.setup_cost,
        applied_modules=list(result.applied_modules or []),
        explanation=result.explanation,
    )
    return item.model_copy(update={"calculation": calculation})


def apply_cost_results(
    items: Iterable[LineItem],
    responses: Union[ResponseSet, Iterable[CostResponseItem]],
) -> List[LineItem]:
    """Return a new item list with every matching response merged in.

    Length, order and ids of ``items`` are preserved. Applying the same
    responses twice yields the same list as applying them once.
    """
    index = _index(responses)
    merged: List[LineItem] = []
    for item in items:
        result = index.get(item.id)
        merged.append(merge_result(item, result) if result is not None else item)
    return merged
