"""RFQ document extraction client.

The extraction backend receives the uploaded document (PDF, image or
office file), runs OCR / parsing and masking, and returns a document
response with a header block and a ``requested_items`` array. This
client only transports the document and hands back the raw JSON; the
normalizer is the sole adapter of that shape.

Set ``EXTRACTION_DEBUG=1`` to log request diagnostics.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import httpx

from rfq_intel.core.config import settings
from rfq_intel.core.exceptions import ExtractionError


logger = logging.getLogger(__name__)


class ExtractionService:
    """Upload a document to the extraction backend and return its response."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._client = client
        self.base_url = (base_url or settings.EXTRACTION_API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.EXTRACTION_TIMEOUT
        self.debug: bool = os.getenv("EXTRACTION_DEBUG", "0").lower() in {"1", "true", "yes"}

    async def _post(self, client: httpx.AsyncClient, files: Dict[str, Any]) -> httpx.Response:
        return await client.post(f"{self.base_url}/process", files=files)

    async def process(self, file_data: bytes, filename: str, content_type: Optional[str] = None) -> Dict[str, Any]:
        """Send one document for extraction.

        :raises ExtractionError: on a non-2xx answer, a transport failure or
            a response that is not a JSON object
        """
        files = {"file": (filename, file_data, content_type or "application/octet-stream")}
        if self.debug:
            logger.info("[extraction] POST %s/process size=%d", self.base_url, len(file_data))
        try:
            if self._client is not None:
                response = await self._post(self._client, files)
            else:
                async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout)) as client:
                    response = await self._post(client, files)
        except httpx.HTTPError as exc:
            raise ExtractionError(f"Extraction backend unreachable: {exc}") from exc

        if not response.is_success:
            raise ExtractionError(
                f"Backend Error ({response.status_code}): {response.text}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise ExtractionError(f"Extraction backend returned invalid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise ExtractionError("Extraction backend returned an unexpected payload")
        if self.debug:
            logger.info("[extraction] status=%s keys=%s", payload.get("status"), sorted(payload))
        return payload
