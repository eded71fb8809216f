"""Miscellaneous helper functions for loosely typed backend payloads."""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Iterable, Mapping, Optional


logger = logging.getLogger(__name__)

_GERMAN_DATE = re.compile(r"^(\d{2})\.(\d{2})\.(\d{4})$")

MISSING = object()


def normalize_date(value: Optional[str]) -> Optional[str]:
    """Convert a German ``DD.MM.YYYY`` date into ISO ``YYYY-MM-DD``.

    Any other non-empty value is returned unchanged; empty values become
    ``None``.
    """
    if not value:
        return None
    value = str(value).strip()
    match = _GERMAN_DATE.match(value)
    if match:
        day, month, year = match.groups()
        return f"{year}-{month}-{day}"
    return value or None


def coerce_number(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or ``None`` if it is not numeric.

    Booleans are not numbers here. Strings may use a decimal comma.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(",", ".")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def coerce_dimension(value: Any, axis: str = "") -> float:
    """Coerce one axis of a dimension triple to a non-negative float.

    Missing values silently become 0. Non-numeric and negative values also
    become 0 but are logged, since they usually point at an extraction issue.
    """
    if value is None or value == "":
        return 0.0
    number = coerce_number(value)
    if number is None:
        logger.warning("Non-numeric dimension %s=%r treated as 0", axis or "value", value)
        return 0.0
    if number < 0:
        logger.warning("Negative dimension %s=%r treated as 0", axis or "value", value)
        return 0.0
    return number


def first_present(source: Mapping[str, Any] | None, keys: Iterable[str]) -> Any:
    """Return the first value in ``source`` under ``keys`` that is not empty.

    ``None`` and the empty string count as absent; ``0`` and ``False`` do
    not. Dotted keys (``config.material``) descend into nested mappings.
    Returns :data:`MISSING` if nothing matched.
    """
    if not source:
        return MISSING
    for key in keys:
        value: Any = source
        for part in key.split("."):
            if not isinstance(value, Mapping):
                value = None
                break
            value = value.get(part)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return MISSING
