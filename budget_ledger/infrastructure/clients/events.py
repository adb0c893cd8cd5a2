"""Ledger event webhook client with exponential backoff retry logic"""

import asyncio
import logging
import httpx
from typing import Any, Dict
from budget_ledger.config import settings
from budget_ledger.infrastructure.observability.metrics import webhook_latency_histogram, webhook_failure_counter

logger = logging.getLogger(__name__)


class LedgerEventClient:
    """Client for publishing committed ledger events to a subscriber URL"""

    def __init__(
        self,
        webhook_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.webhook_url = webhook_url or settings.event_webhook_url
        self.timeout = settings.http_timeout_seconds
        self.max_retries = settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    async def send_event(self, payload: Dict[str, Any]) -> None:
        """
        POST one ledger event with retry logic.

        Retry strategy:
        - Exponential backoff: base * 2^(attempt - 1)
        - Retries on 5xx errors and network failures
        - Tracks latency histogram and failure counter

        Events are sent after the ledger transaction committed; a delivery
        failure is logged and never rolls anything back.
        """
        if not self.enabled:
            return

        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            while attempt < self.max_retries:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=payload)
                        response.raise_for_status()
                        return  # Success

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    webhook_failure_counter.inc()

                    if attempt >= self.max_retries:
                        logger.error(
                            "Ledger event delivery failed",
                            extra={"event": payload.get("event"), "attempts": attempt, "error": str(e)},
                        )
                        return

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
