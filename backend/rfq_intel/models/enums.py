"""Enumeration types used throughout the RFQ cost service.

Enumerations make it easier to constrain the values that are passed
through the API and exchanged with the remote services. When modifying
these enums you should update the default pricing catalog and any
Pydantic validators so that new values are accepted where appropriate.
"""

from enum import Enum


class MaterialType(str, Enum):
    """Materials known to the built-in pricing catalog."""

    STEEL_C45 = "C45"
    ALUMINIUM_6061 = "Alu 6061"
    STAINLESS_304 = "SS 304"
    BRASS = "Brass"
    PLASTIC_ABS = "ABS"


class FeatureType(str, Enum):
    """Machining / finishing features accepted by the pricing service."""

    HOLE = "hole"
    THREAD = "thread"
    BORE = "bore"
    COATING = "coating"
    MARKING = "marking"
    HEAT_TREATMENT = "heat_treatment"
    OTHER = "other"


class CostStatus(str, Enum):
    """Status values carried by a cost response item."""

    SUCCESS = "success"
    ERROR = "error"


class ActivityStatus(str, Enum):
    """Status of an entry in the processing log."""

    SUCCESS = "success"
    PENDING = "pending"
    ERROR = "error"
