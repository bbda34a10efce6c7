"""Async HTTP client for remote metadata documents with a hard timeout."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import httpx

from asset_ingester.config import DEFAULT_FETCH_TIMEOUT_SECONDS, DEFAULT_USER_AGENT
from asset_ingester.metrics import (
    DECODE_ERROR_METRIC,
    FETCH_ERROR_METRIC,
    HTTP_ERROR_METRIC,
    MetricsSink,
    NullMetricsSink,
    safe_increment,
)
from asset_ingester.tasks.errors import HttpStatusError, MetadataDecodeError, TransportFetchError

logger = logging.getLogger(__name__)


class MetadataFetcher:
    """Single-GET JSON fetcher.

    The timeout applies to each phase of the request on the client and to the
    request as a whole, so a slow-dripping server cannot stretch one attempt
    past ``timeout_seconds``.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        follow_redirects: bool = True,
        metrics: MetricsSink | None = None,
        metric_tag: str = "",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.metrics = metrics or NullMetricsSink()
        self.metric_tag = metric_tag
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            headers={"User-Agent": user_agent, "Accept": "application/json"},
            transport=transport,
            follow_redirects=follow_redirects,
        )

    async def fetch(self, url: str) -> Any:
        """Fetch ``url`` and return the parsed JSON body.

        Raises ``TransportFetchError``, ``HttpStatusError`` or
        ``MetadataDecodeError``; all three are retryable.
        """

        try:
            response = await asyncio.wait_for(self._client.get(url), timeout=self.timeout_seconds)
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            logger.warning("Timeout fetching %s", url)
            self._count(FETCH_ERROR_METRIC)
            raise TransportFetchError(f"timeout fetching {url}") from exc
        except httpx.HTTPError as exc:
            logger.warning("HTTP error fetching %s: %s", url, exc)
            self._count(FETCH_ERROR_METRIC)
            raise TransportFetchError(f"error fetching {url}: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            logger.warning("Unexpected status %s fetching %s", response.status_code, url)
            self._count(HTTP_ERROR_METRIC, status=str(response.status_code))
            raise HttpStatusError(response.status_code, url)

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("Invalid JSON body from %s: %s", url, exc)
            self._count(DECODE_ERROR_METRIC)
            raise MetadataDecodeError(f"invalid JSON body from {url}: {exc}") from exc

    def _count(self, metric: str, **extra_tags: str) -> None:
        safe_increment(self.metrics, metric, tags={"type": self.metric_tag, **extra_tags})

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> MetadataFetcher:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()
