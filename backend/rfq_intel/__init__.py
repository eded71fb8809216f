"""Top-level package for the RFQ cost estimation service.

This package contains everything required to turn an uploaded RFQ
(request for quote) document into priced line items: pydantic
schemas for line items and the pricing catalog, a deterministic local
cost estimator, the normalizer that adapts extraction backend payloads,
the sanitizer and orchestrator that talk to the remote pricing service,
and the reconciler that merges remote results back onto the items. A
thin FastAPI application exposes the pipeline over HTTP.

To run the API locally you can execute:

```bash
uvicorn rfq_intel.api.main:app --reload --app-dir backend
```

Configuration values are read from environment variables or a ``.env``
file at the project root (see ``rfq_intel.core.config``).
"""

__all__: list[str] = []
