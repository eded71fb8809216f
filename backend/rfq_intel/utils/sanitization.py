"""
Cost request sanitization.

Validates a line item before it is sent to the remote pricing service and
coerces its configuration into the exact ``RemoteConfig`` shape the
service requires. Items that cannot be priced (no geometry, unresolved
template placeholders) are rejected here and never leave the process.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from rfq_intel.models.enums import FeatureType, MaterialType
from rfq_intel.models.schemas import (
    CostRequest,
    CostRequestItem,
    Dimensions,
    Feature,
    LineItem,
    Rejected,
    RemoteConfig,
)
from rfq_intel.utils.helpers import coerce_number


logger = logging.getLogger(__name__)

VALID_FEATURE_TYPES = {f.value for f in FeatureType}
PLACEHOLDER_MARKERS = ("{{", "}}")


def clean_text(value: Optional[str]) -> str:
    if value is None:
        return ""
    # Remove leading/trailing whitespace and control characters
    value = str(value).strip()
    return re.sub(r'[\x00-\x1F\x7F]', '', value)


def _axis(raw: Mapping[str, Any], name: str) -> float:
    number = coerce_number(raw.get(name))
    if number is None:
        if raw.get(name) not in (None, ""):
            logger.warning("Non-numeric dimension %s=%r treated as 0", name, raw.get(name))
        return 0.0
    return max(number, 0.0)


def effective_dimensions(item: LineItem) -> Dimensions:
    """Dimensions the pricing service sees: config dimensions win over the item's."""
    raw = item.config.dimensions if item.config and item.config.dimensions else None
    if raw is None:
        return item.dimensions
    return Dimensions(length=_axis(raw, "length"), width=_axis(raw, "width"), height=_axis(raw, "height"))


def rejection_reason(item: LineItem) -> Optional[str]:
    """Return why ``item`` cannot be priced remotely, or ``None``."""
    if effective_dimensions(item).is_zero:
        return "zero dimensions"
    if any(marker in item.description for marker in PLACEHOLDER_MARKERS):
        return "placeholder name"
    return None


def is_valid_for_cost_calc(item: LineItem) -> bool:
    reason = rejection_reason(item)
    if reason:
        logger.warning('Skipping item "%s" - %s', item.description, reason)
        return False
    return True


def sanitize_config(item: LineItem) -> RemoteConfig:
    """Build the remote configuration for ``item``.

    Unknown feature types are remapped to ``other`` rather than rejected.
    """
    config = item.config
    features: List[Feature] = []
    for raw in (config.features if config else []):
        feature_type = raw.get("feature_type")
        if not isinstance(feature_type, str) or feature_type not in VALID_FEATURE_TYPES:
            feature_type = FeatureType.OTHER.value
        features.append(Feature(feature_type=feature_type, spec=clean_text(raw.get("spec"))))

    return RemoteConfig(
        material_id=(config.material_id if config else None) or "",
        standard=(config.standard if config else None) or "",
        form=(config.form if config else None) or "A",
        material=(config.material if config else None) or item.material or MaterialType.STEEL_C45.value,
        dimensions=effective_dimensions(item),
        features=features,
        weight_per_unit=(config.weight_per_unit if config else None) or 0.0,
    )


def sanitize(item: LineItem) -> Union[RemoteConfig, Rejected]:
    """Sanitize one item, or explain why it is excluded from remote pricing."""
    reason = rejection_reason(item)
    if reason:
        logger.warning('Skipping item "%s" - %s', item.description, reason)
        return Rejected(item_id=item.id, description=item.description, reason=reason)
    return sanitize_config(item)


def build_cost_request(item: LineItem, config: Optional[RemoteConfig] = None) -> CostRequest:
    """Wrap one item into the single-element ``/calculate-batch`` body."""
    return CostRequest(
        requested_items=[
            CostRequestItem(
                pos=item.id,
                article_name=item.description,
                quantity=item.quantity,
                config=config or sanitize_config(item),
            )
        ]
    )


def sanitize_all(items: Iterable[LineItem]) -> Tuple[List[Tuple[LineItem, CostRequest]], List[Rejected]]:
    """Partition ``items`` into ready-to-send requests and rejections."""
    accepted: List[Tuple[LineItem, CostRequest]] = []
    rejected: List[Rejected] = []
    for item in items:
        result = sanitize(item)
        if isinstance(result, Rejected):
            rejected.append(result)
        else:
            accepted.append((item, build_cost_request(item, result)))
    return accepted, rejected
