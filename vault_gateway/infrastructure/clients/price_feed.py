"""Price feed HTTP client for fetching oracle rounds"""

import httpx
from typing import Any, Dict
from vault_gateway.domain.models import RoundData
from vault_gateway.domain.exceptions import FeedUnavailableError
from vault_gateway.infrastructure.observability.metrics import feed_fetch_failures_counter
from vault_gateway.config import settings


class PriceFeedClient:
    """Client for an external price feed provider"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.price_feed_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def _get(self, path: str) -> Dict[str, Any]:
        """
        GET a feed resource and return the decoded JSON body.

        Raises:
            FeedUnavailableError: On timeout, HTTP errors, or a non-JSON body
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(f"{self.base_url}{path}")
                response.raise_for_status()
                return response.json()

            except httpx.TimeoutException as e:
                feed_fetch_failures_counter.inc()
                raise FeedUnavailableError(f"Price feed timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                feed_fetch_failures_counter.inc()
                raise FeedUnavailableError(f"Price feed error: {e.response.status_code}") from e
            except (httpx.RequestError, ValueError) as e:
                feed_fetch_failures_counter.inc()
                raise FeedUnavailableError(f"Price feed unreachable: {e}") from e

    @staticmethod
    def _parse_round(data: Dict[str, Any]) -> RoundData:
        try:
            return RoundData(
                round_id=int(data["round_id"]),
                answer=int(data["answer"]),
                started_at=int(data["started_at"]),
                updated_at=int(data["updated_at"]),
                answered_in_round=int(data["answered_in_round"]),
            )
        except (KeyError, ValueError, TypeError) as e:
            feed_fetch_failures_counter.inc()
            raise FeedUnavailableError(f"Invalid round data from feed: {e}") from e

    async def latest_round_data(self, source_ref: str) -> RoundData:
        return self._parse_round(await self._get(f"/feeds/{source_ref}/latest"))

    async def get_round_data(self, source_ref: str, round_id: int) -> RoundData:
        return self._parse_round(await self._get(f"/feeds/{source_ref}/rounds/{round_id}"))

    async def description(self, source_ref: str) -> str:
        data = await self._get(f"/feeds/{source_ref}")
        return str(data.get("description", ""))

    async def decimals(self, source_ref: str) -> int:
        data = await self._get(f"/feeds/{source_ref}")
        try:
            return int(data["decimals"])
        except (KeyError, ValueError, TypeError) as e:
            raise FeedUnavailableError(f"Invalid feed metadata: {e}") from e
