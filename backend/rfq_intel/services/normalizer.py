"""Line item normalizer.

Adapts the loosely typed responses of the extraction backend into the
canonical ``LineItem`` / ``RFQHeader`` models. Over time the backend
(and the legacy in-browser mapper before it) used several field names
for the same concept; every such alias is absorbed here so that nothing
downstream has to know about them.

The fallback policy is written down as ordered rule tables: for every
canonical field, the source keys are tried in order and the first
non-empty value wins, otherwise the default applies. Cost data is never
invented here: every normalized item starts with an all-zero
calculation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from rfq_intel.core.observability import log_sensitive
from rfq_intel.models.enums import MaterialType
from rfq_intel.models.schemas import (
    CalculationResult,
    Dimensions,
    ItemConfig,
    LineItem,
    NormalizedRFQ,
    RFQHeader,
    default_header,
)
from rfq_intel.utils.helpers import MISSING, coerce_number, first_present, normalize_date


logger = logging.getLogger(__name__)


def _text(value: Any) -> str:
    return str(value).strip()


def _quantity(value: Any) -> int:
    number = coerce_number(value)
    if number is None or number < 1:
        return 1
    return int(round(number))


def _optional_text(value: Any) -> Optional[str]:
    return _text(value) or None


def _bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "ja"}
    return bool(value)


@dataclass(frozen=True)
class FieldRule:
    """Canonical field, ordered source keys, default and coercion."""

    field: str
    sources: Tuple[str, ...]
    default: Any = None
    coerce: Callable[[Any], Any] = _text

    def resolve(self, raw: Mapping[str, Any]) -> Any:
        value = first_present(raw, self.sources)
        if value is MISSING:
            return self.default
        return self.coerce(value)


ITEM_RULES: Sequence[FieldRule] = (
    FieldRule("description", ("description", "article_name", "name"), "Unnamed Item"),
    FieldRule("material", ("config.material", "material"), MaterialType.STEEL_C45.value),
    FieldRule("quantity", ("quantity",), 1, _quantity),
    FieldRule("unit", ("unit",), "pcs"),
    FieldRule("delivery_date", ("delivery_date", "deliveryDate"), None, normalize_date),
    FieldRule("tolerance", ("tolerance",), None, _optional_text),
)

ID_SOURCES = ("id", "pos")
DIMENSION_SOURCES = ("config.dimensions", "dimensions")
ITEM_LIST_SOURCES = ("data.requested_items", "requested_items", "lineItems", "line_items")

# Header aliases: current backend names first, then legacy ones.  The
# ``_metadata`` prefix reads from the response's metadata block.
HEADER_RULES: Sequence[FieldRule] = (
    FieldRule("customer_name", ("customer_name", "customerName")),
    FieldRule("rfq_number", ("rfq_number", "rfqNumber")),
    FieldRule("rfq_name", ("rfq_name", "rfqName")),
    FieldRule("rfq_description", ("rfq_description", "rfqDescription", "document_type")),
    FieldRule("part_number", ("part_number", "partNumber", "customer_number")),
    FieldRule("document_date", ("document_date", "documentDate"), coerce=normalize_date),
    FieldRule("vendor_name", ("supplier_name", "vendor_name", "vendorName", "supplierName")),
    FieldRule("responsible_person", ("responsible_person", "responsiblePerson")),
    FieldRule("bid_close_date", ("bid_close_date", "bidCloseDate"), coerce=normalize_date),
    FieldRule("location", ("location",)),
    FieldRule("is_auction", ("is_auction", "isAuction"), coerce=_bool),
    FieldRule("customer_number", ("customer_number", "customerNumber")),
    FieldRule("document_type", ("document_type", "documentType", "_metadata.document_type")),
)


def _dimensions(raw: Mapping[str, Any]) -> Dimensions:
    source = first_present(raw, DIMENSION_SOURCES)
    if not isinstance(source, Mapping):
        # flat length/width/height on the item itself
        source = raw
    return Dimensions(
        length=source.get("length"),
        width=source.get("width"),
        height=source.get("height"),
    )


def _unique_id(raw: Mapping[str, Any], index: int, seen: Set[str]) -> str:
    value = first_present(raw, ID_SOURCES)
    item_id = str(index) if value is MISSING else _text(value)
    if item_id in seen:
        candidate = f"{item_id}-{index}"
        suffix = 1
        while candidate in seen:
            candidate = f"{item_id}-{index}-{suffix}"
            suffix += 1
        logger.warning("Duplicate item id %r at position %d renamed to %r", item_id, index, candidate)
        item_id = candidate
    seen.add(item_id)
    return item_id


def normalize_item(raw: Mapping[str, Any], index: int, seen: Optional[Set[str]] = None) -> LineItem:
    """Map one raw extraction item to a ``LineItem`` with zeroed costs."""
    fields: Dict[str, Any] = {rule.field: rule.resolve(raw) for rule in ITEM_RULES}
    raw_config = raw.get("config")
    return LineItem(
        id=_unique_id(raw, index, seen if seen is not None else set()),
        dimensions=_dimensions(raw),
        config=ItemConfig.model_validate(raw_config) if isinstance(raw_config, Mapping) else None,
        calculation=CalculationResult(),
        **fields,
    )


def normalize_items(raw_items: Any) -> List[LineItem]:
    if not isinstance(raw_items, list):
        return []
    seen: Set[str] = set()
    items: List[LineItem] = []
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, Mapping):
            logger.warning("Ignoring non-object line item at position %d: %r", index, raw)
            continue
        items.append(normalize_item(raw, index, seen))
    return items


def normalize_header(raw_header: Mapping[str, Any], draft: RFQHeader) -> RFQHeader:
    """Fill each header field from the payload, else keep the draft value."""
    values = draft.model_dump()
    for rule in HEADER_RULES:
        value = rule.resolve(raw_header)
        if value is not None and value != "":
            values[rule.field] = value
    return RFQHeader(**values)


def normalize_extraction(payload: Mapping[str, Any], draft_header: Optional[RFQHeader] = None) -> NormalizedRFQ:
    """Normalize a full extraction backend response.

    :param payload: Backend response (``{header, data: {requested_items}}``),
        a flat ``{header, requested_items}`` document or a legacy mapped shape
    :param draft_header: Header values to keep when the payload omits them
    :returns: ``NormalizedRFQ`` with canonical header and items
    """
    draft = draft_header or default_header()
    header_block = payload.get("header")
    raw_header: Dict[str, Any] = dict(header_block) if isinstance(header_block, Mapping) else dict(payload)
    metadata = payload.get("metadata")
    raw_header["_metadata"] = metadata if isinstance(metadata, Mapping) else {}

    raw_items = first_present(payload, ITEM_LIST_SOURCES)
    items = normalize_items(raw_items if raw_items is not MISSING else [])
    source = first_present(payload, ("metadata.source", "source"))

    result = NormalizedRFQ(
        header=normalize_header(raw_header, draft),
        line_items=items,
        source=None if source is MISSING else _text(source),
    )
    logger.info("Normalized extraction payload: %d line items", len(items))
    log_sensitive("normalized rfq", result.model_dump(mode="json"))
    return result
