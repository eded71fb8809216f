"""Domain exceptions raised by the RFQ services.

Per-item pricing failures are never raised; they are converted into
error-tagged responses by the cost service. The exceptions below cover
the remaining failure modes that callers must handle explicitly.
"""


class RFQIntelError(Exception):
    """Base class for all errors raised by this package."""


class ExtractionError(RFQIntelError):
    """The extraction backend rejected the document or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CatalogError(RFQIntelError):
    """A pricing catalog could not be validated."""

    def __init__(self, message: str, details: list | None = None) -> None:
        super().__init__(message)
        self.details = details or []
