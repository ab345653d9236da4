"""Transfer sink client with exponential backoff retry logic"""

import httpx
import asyncio
from vault_gateway.config import settings
from vault_gateway.domain.exceptions import TransferFailedError
from vault_gateway.infrastructure.observability.metrics import transfer_latency_histogram, transfer_failure_counter


class TransferClient:
    """Client that moves native asset out of custody via the transfer sink"""

    def __init__(
        self,
        sink_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.sink_url = sink_url or settings.transfer_sink_url
        self.max_retries = settings.transfer_max_retries
        self.backoff_base = settings.transfer_backoff_base
        self.timeout = settings.http_timeout_seconds
        self.transport = transport

    async def transfer(self, to: str, amount: int, reference: str) -> None:
        """
        Send a transfer instruction and wait for acknowledgment.

        Retry strategy:
        - Exponential backoff: base, 2*base, 4*base, ... (base * 2^attempt)
        - Retries on 5xx errors and network failures; a 4xx is a rejection
        - The reference doubles as Idempotency-Key so retries never pay twice

        Raises:
            TransferFailedError: Sink rejected the transfer or never acknowledged it
        """
        payload = {"to": to, "amount": amount, "reference": reference}
        headers = {"Idempotency-Key": reference}
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            while attempt < self.max_retries:
                try:
                    with transfer_latency_histogram.time():
                        response = await client.post(self.sink_url, json=payload, headers=headers)
                        response.raise_for_status()
                        return  # Acknowledged

                except httpx.HTTPStatusError as e:
                    transfer_failure_counter.inc()
                    if e.response.status_code < 500:
                        raise TransferFailedError(
                            f"Transfer {reference} rejected: {e.response.status_code}"
                        ) from e
                    attempt += 1
                    if attempt >= self.max_retries:
                        raise TransferFailedError(
                            f"Transfer {reference} failed after {attempt} attempts"
                        ) from e

                except httpx.RequestError as e:
                    transfer_failure_counter.inc()
                    attempt += 1
                    if attempt >= self.max_retries:
                        raise TransferFailedError(
                            f"Transfer {reference} failed after {attempt} attempts"
                        ) from e

                backoff = self.backoff_base * (2 ** (attempt - 1))
                await asyncio.sleep(backoff)

        raise TransferFailedError(f"Transfer {reference} was not attempted")
