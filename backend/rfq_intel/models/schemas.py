"""Pydantic schemas for line items, pricing and the remote wire formats.

Pydantic models are used for validating and serialising data that
crosses the boundary of the service. They provide type hints and
validation rules that ensure only well‑formed data enters the
business logic. This module defines the domain schemas (``LineItem``,
``CalculationResult``, ``PricingCatalog``), the wire-level schemas of
the remote pricing service (``CostRequest``, ``CostResponseItem``) and
the API facing request/response schemas.

Line items are treated as value data: services return updated copies
(``model_copy``) rather than mutating instances in place, so a failed
calculation always leaves the previous state intact.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from rfq_intel.core.config import settings
from rfq_intel.utils.helpers import coerce_dimension, coerce_number

from .enums import ActivityStatus, FeatureType, MaterialType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Pricing catalog


class MaterialDef(BaseModel):
    """Physical and commercial properties of one material."""

    id: str
    name: str
    density: float = Field(ge=0, description="Density in g/cm³")
    cost_per_kg: float = Field(ge=0, description="Raw material cost per kilogram")
    last_updated: datetime = Field(default_factory=_utcnow)


class PricingCatalog(BaseModel):
    """Material table plus global markup used by the local estimator."""

    materials: Dict[str, MaterialDef] = Field(default_factory=dict)
    global_markup: float = Field(default=0.0, ge=-100, description="Markup in percent")
    currency: str = "EUR"

    def lookup(self, material: str) -> Optional[MaterialDef]:
        return self.materials.get(material)


# ---------------------------------------------------------------------------
# Line items


class Dimensions(BaseModel):
    """Bounding dimensions of a part in millimetres."""

    length: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @field_validator("length", "width", "height", mode="before")
    @classmethod
    def _coerce_axis(cls, value: Any, info: ValidationInfo) -> float:
        return coerce_dimension(value, info.field_name)

    @property
    def volume_mm3(self) -> float:
        return self.length * self.width * self.height

    @property
    def is_zero(self) -> bool:
        return self.length == 0 and self.width == 0 and self.height == 0


class ItemConfig(BaseModel):
    """Rich part configuration as delivered by the extraction backend.

    The backend is loosely typed, so every field is optional and unknown
    keys are kept. The cost request sanitizer turns this into the strict
    ``RemoteConfig`` the pricing service expects.
    """

    model_config = ConfigDict(extra="allow")

    material_id: Optional[str] = None
    standard: Optional[str] = None
    form: Optional[str] = None
    material: Optional[str] = None
    dimensions: Optional[Dict[str, Any]] = None
    features: List[Dict[str, Any]] = Field(default_factory=list)
    weight_per_unit: Optional[float] = None

    @field_validator("material_id", "standard", "form", "material", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("dimensions", mode="before")
    @classmethod
    def _dimensions_mapping(cls, value: Any) -> Optional[Dict[str, Any]]:
        return value if isinstance(value, dict) else None

    @field_validator("features", mode="before")
    @classmethod
    def _feature_list(cls, value: Any) -> List[Dict[str, Any]]:
        if not isinstance(value, list):
            return []
        return [f for f in value if isinstance(f, dict)]

    @field_validator("weight_per_unit", mode="before")
    @classmethod
    def _weight(cls, value: Any) -> Optional[float]:
        return coerce_number(value)


class CalculationResult(BaseModel):
    """Cost and physics result attached to a line item.

    Two logical groups live here: the physical estimate (volume, density,
    weight) which only the local estimator computes, and the pricing group
    which the remote pricing service may overwrite.
    """

    volume_mm3: float = 0.0
    density: float = 0.0
    weight_grams: float = 0.0
    material_cost: float = 0.0
    unit_price: float = 0.0
    total_line_cost: float = 0.0
    # Remote breakdown
    rate_per_100: Optional[float] = None
    base_material_id: Optional[str] = None
    base_key_description: Optional[str] = None
    base_unit_cost: Optional[float] = None
    modules_cost: Optional[float] = None
    setup_cost: Optional[float] = None
    applied_modules: Optional[List[str]] = None
    explanation: Optional[str] = None


class LineItem(BaseModel):
    """One priceable entry of an RFQ.

    ``id`` is assigned once at normalization time and is the only key used
    to correlate asynchronous pricing results, so it is frozen.
    """

    id: str = Field(frozen=True)
    description: str = "Unnamed Item"
    material: str = MaterialType.STEEL_C45.value
    dimensions: Dimensions = Field(default_factory=Dimensions)
    quantity: int = Field(default=1, ge=1)
    unit: str = "pcs"
    tolerance: Optional[str] = None
    delivery_date: Optional[str] = None
    config: Optional[ItemConfig] = None
    calculation: CalculationResult = Field(default_factory=CalculationResult)


class RFQHeader(BaseModel):
    """Document-level data of an RFQ."""

    customer_name: str = ""
    rfq_number: str = ""
    rfq_name: str = ""
    rfq_description: str = ""
    part_number: str = ""
    document_date: str = ""
    vendor_name: str = ""
    responsible_person: str = ""
    bid_close_date: str = ""
    location: str = ""
    is_auction: bool = False
    customer_number: str = ""
    document_type: str = ""


def default_header(today: Optional[date] = None) -> RFQHeader:
    """Draft header used before any document has been processed."""
    return RFQHeader(
        document_date=(today or date.today()).isoformat(),
        vendor_name=settings.DEFAULT_VENDOR_NAME,
        location=settings.DEFAULT_LOCATION,
        document_type=settings.DEFAULT_DOCUMENT_TYPE,
    )


class NormalizedRFQ(BaseModel):
    """Output of the normalizer: header plus canonical line items."""

    header: RFQHeader
    line_items: List[LineItem] = Field(default_factory=list)
    source: Optional[str] = None


# ---------------------------------------------------------------------------
# Remote pricing service wire format


class Feature(BaseModel):
    feature_type: FeatureType = FeatureType.OTHER
    spec: str = ""


class RemoteConfig(BaseModel):
    """Exact configuration shape accepted by ``/calculate-batch``."""

    material_id: str = ""
    standard: str = ""
    form: str = "A"
    material: str = MaterialType.STEEL_C45.value
    dimensions: Dimensions = Field(default_factory=Dimensions)
    features: List[Feature] = Field(default_factory=list)
    weight_per_unit: float = 0.0


class CostRequestItem(BaseModel):
    pos: str
    article_name: str
    quantity: int
    config: RemoteConfig


class CostRequest(BaseModel):
    """Request body; this service always sends exactly one item."""

    requested_items: List[CostRequestItem]


class BaseKey(BaseModel):
    id: Optional[str] = None
    description: Optional[str] = None
    specs: List[str] = Field(default_factory=list)

    @field_validator("specs", mode="before")
    @classmethod
    def _specs(cls, value: Any) -> List[str]:
        return [str(s) for s in value] if isinstance(value, list) else []


class CostBreakdown(BaseModel):
    model_config = ConfigDict(extra="allow")

    base_key_id: Optional[str] = None
    base_unit_cost: Optional[float] = None
    modules_cost: Optional[float] = None
    setup_cost: Optional[float] = None
    total_unit_cost: float = 0.0
    total_cost: float = 0.0
    total_order_cost: Optional[float] = None
    currency: str = "EUR"


class CostResponseItem(BaseModel):
    """One element of the pricing service response list."""

    model_config = ConfigDict(extra="allow")

    status: str
    custom_id: str = ""
    match_type: Optional[str] = None
    base_key: Optional[BaseKey] = None
    breakdown: Optional[CostBreakdown] = None
    applied_modules: Optional[List[str]] = None
    explanation: Optional[str] = None

    @field_validator("custom_id", mode="before")
    @classmethod
    def _custom_id(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @property
    def is_error(self) -> bool:
        return self.status == "error" or self.breakdown is None


class Rejected(BaseModel):
    """A line item excluded from remote pricing before any request."""

    item_id: str
    description: str
    reason: str


class ResponseSet(BaseModel):
    """Result of one pricing run.

    ``responses`` holds exactly one entry per item that passed
    sanitization; ``rejected`` lists the items that never left the
    process. Entries are correlated by ``custom_id``, never by position.
    """

    responses: List[CostResponseItem] = Field(default_factory=list)
    rejected: List[Rejected] = Field(default_factory=list)

    def get(self, item_id: str) -> Optional[CostResponseItem]:
        for response in self.responses:
            if response.custom_id == item_id:
                return response
        return None

    def errors(self) -> List[CostResponseItem]:
        return [r for r in self.responses if r.is_error]

    @property
    def is_empty(self) -> bool:
        return not self.responses


# ---------------------------------------------------------------------------
# Processing log and API schemas


class ActivityLog(BaseModel):
    """One processing-log entry surfaced to the caller."""

    id: str
    title: str
    description: str
    system: str
    timestamp: datetime = Field(default_factory=_utcnow)
    status: ActivityStatus
    raw_content: Optional[str] = None


class EstimateRequest(BaseModel):
    material: str = MaterialType.STEEL_C45.value
    dimensions: Dimensions = Field(default_factory=Dimensions)
    quantity: int = Field(default=1, ge=1)


class CalculateRequest(BaseModel):
    line_items: List[LineItem]

    @model_validator(mode="after")
    def _unique_ids(self) -> "CalculateRequest":
        # results are merged back by id only
        seen = set()
        duplicates = []
        for item in self.line_items:
            if item.id in seen and item.id not in duplicates:
                duplicates.append(item.id)
            seen.add(item.id)
        if duplicates:
            raise ValueError(f"Duplicate line item ids: {', '.join(duplicates)}")
        return self


class CalculationOutcome(BaseModel):
    """Line items after a pricing run plus everything needed to display it."""

    line_items: List[LineItem]
    responses: List[CostResponseItem] = Field(default_factory=list)
    rejected: List[Rejected] = Field(default_factory=list)
    activity: List[ActivityLog] = Field(default_factory=list)
    total_cost: float = 0.0


class ProcessResult(CalculationOutcome):
    """Full result of processing an uploaded RFQ document."""

    header: RFQHeader
    source: Optional[str] = None
    document_key: Optional[str] = None
