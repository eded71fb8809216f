"""Remote cost orchestration service.

This service prices line items with the external pricing service. Each
item that passes sanitization is sent in its own ``/calculate-batch``
request (a batch of one) so that a single malformed or failing item
cannot block or corrupt the others. All requests run concurrently and
the service waits for every one of them to settle before returning.

Every outcome is recorded under the item's identifier:

* 2xx – the first element of the returned list is used as is;
* non-2xx – an error response carrying the raw response text;
* transport or decoding failure – an error response carrying the
  stringified exception.

The only "batch failure" is having nothing to price, which is reported
as an empty ``ResponseSet`` rather than raised.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, Optional

import httpx

from rfq_intel.core.config import settings
from rfq_intel.core.observability import log_sensitive, sentry_breadcrumb
from rfq_intel.models.enums import CostStatus
from rfq_intel.models.schemas import CostRequest, CostResponseItem, LineItem, ResponseSet
from rfq_intel.utils.sanitization import sanitize_all


logger = logging.getLogger(__name__)


def error_response(item_id: str, explanation: str) -> CostResponseItem:
    return CostResponseItem(status=CostStatus.ERROR.value, custom_id=item_id, explanation=explanation)


class CostService:
    """Issue isolated per-item pricing requests and collect the outcomes.

    An ``httpx.AsyncClient`` may be injected (tests, connection reuse); it
    is then left open. Otherwise a client is created per pricing run.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._client = client
        self.base_url = (base_url or settings.COST_API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.COST_API_TIMEOUT

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/calculate-batch"

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout)) as client:
            yield client

    async def _price_one(self, client: httpx.AsyncClient, item: LineItem, request: CostRequest) -> CostResponseItem:
        logger.info("Processing item %s: %s", item.id, item.description)
        response = await client.post(self.endpoint, json=request.model_dump(mode="json"))
        if not response.is_success:
            error_text = response.text
            logger.warning("Item %s failed (%s): %s", item.id, response.status_code, error_text)
            return error_response(item.id, error_text)

        data = response.json()
        if not isinstance(data, list) or not data:
            raise ValueError(f"Unexpected cost API response for item {item.id}: {data!r}")
        result = CostResponseItem.model_validate(data[0])
        if result.custom_id != item.id:
            if result.custom_id:
                logger.warning("Cost API echoed custom_id %r for item %s", result.custom_id, item.id)
            result = result.model_copy(update={"custom_id": item.id})
        logger.info("Item %s priced: status=%s", item.id, result.status)
        return result

    async def price_all(self, items: Iterable[LineItem]) -> ResponseSet:
        """Price every valid item independently and wait for all of them.

        :param items: Line items to price; invalid ones are reported in
            ``ResponseSet.rejected`` and never sent
        :returns: ``ResponseSet`` with exactly one response per sent item
        """
        accepted, rejected = sanitize_all(items)
        if not accepted:
            logger.warning("No valid items to send to Cost API")
            return ResponseSet(rejected=rejected)

        logger.info("Cost API: processing %d items individually (%d skipped)", len(accepted), len(rejected))
        sentry_breadcrumb("cost_api", "price_all", data={"items": len(accepted), "rejected": len(rejected)})
        async with self._session() as client:
            results = await asyncio.gather(
                *(self._price_one(client, item, request) for item, request in accepted),
                return_exceptions=True,
            )

        responses = []
        for (item, _), result in zip(accepted, results):
            if isinstance(result, Exception):
                logger.warning("Item %s request failed: %s", item.id, result)
                responses.append(error_response(item.id, str(result) or type(result).__name__))
            elif isinstance(result, BaseException):
                raise result
            else:
                responses.append(result)

        response_set = ResponseSet(responses=responses, rejected=rejected)
        failed = len(response_set.errors())
        logger.info("Cost API finished: %d priced, %d failed", len(responses) - failed, failed)
        log_sensitive("cost api results", response_set.model_dump(mode="json"))
        return response_set
