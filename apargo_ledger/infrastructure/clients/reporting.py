"""Reporting webhook client with exponential backoff retry logic"""

import asyncio
from typing import Any, Dict

import httpx

from apargo_ledger.config import settings
from apargo_ledger.domain.exceptions import ReportingWebhookError
from apargo_ledger.domain.models import SchedulerRun
from apargo_ledger.infrastructure.observability.metrics import webhook_failure_counter, webhook_latency_histogram


def scheduler_run_payload(run: SchedulerRun) -> Dict[str, Any]:
    """Webhook body summarising a scheduler run"""
    return {
        "event": "PAYMENT_EVENTS_GENERATED",
        "month_year": run.month_year,
        "events_created": run.events_created,
        "results": [
            {
                "category_id": result.category_id,
                "category_name": result.category_name,
                "events_created": result.events_created,
                "error": result.error,
            }
            for result in run.results
        ],
    }


class ReportingClient:
    """Client for sending ledger events to an external reporting service"""

    def __init__(self, webhook_url: str | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.webhook_url = webhook_url or settings.reporting_webhook_url
        self.timeout = settings.http_timeout_seconds
        self.max_retries = settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    async def send_event(self, payload: Dict[str, Any]) -> None:
        """
        Send a ledger event with retry logic.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s (base * 2^attempt)
        - Retries on 5xx/4xx responses and network failures
        - Tracks latency histogram and failure counter

        Raises:
            ReportingWebhookError: When every attempt failed
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
                        return

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    webhook_failure_counter.inc()

                    if attempt >= self.max_retries:
                        raise ReportingWebhookError(
                            f"Reporting webhook failed after {attempt} attempts: {e}"
                        ) from e

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)

    async def send_scheduler_run(self, run: SchedulerRun) -> None:
        await self.send_event(scheduler_run_payload(run))
