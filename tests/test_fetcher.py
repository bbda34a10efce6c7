from __future__ import annotations

import asyncio
import time

import allure
import httpx
import pytest

from asset_ingester.http.fetcher import MetadataFetcher
from asset_ingester.metrics import (
    DECODE_ERROR_METRIC,
    FETCH_ERROR_METRIC,
    HTTP_ERROR_METRIC,
    RecordingMetricsSink,
)
from asset_ingester.tasks.errors import HttpStatusError, MetadataDecodeError, TransportFetchError

pytestmark = [
    allure.epic("Metadata Download"),
    allure.feature("Bounded Fetch"),
]


class _ExplodingSink:
    def increment(self, name: str, value: int = 1, *, tags: object) -> None:
        raise RuntimeError("statsd is down")


@pytest.mark.asyncio
async def test_fetch_returns_parsed_json_on_200(make_fetcher) -> None:
    seen: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"name": "x"})

    async with make_fetcher(_handler) as fetcher:
        document = await fetcher.fetch("https://example.com/meta.json")

    assert document == {"name": "x"}
    assert len(seen) == 1
    assert seen[0].method == "GET"


@pytest.mark.asyncio
async def test_non_200_status_is_retryable_and_counted(
    make_fetcher,
    metrics: RecordingMetricsSink,
) -> None:
    async with make_fetcher(lambda request: httpx.Response(500, text="boom")) as fetcher:
        with pytest.raises(HttpStatusError) as caught:
            await fetcher.fetch("https://example.com/meta.json")

    assert caught.value.status_code == 500
    assert caught.value.retryable
    assert metrics.tagged(HTTP_ERROR_METRIC, type="DownloadMetadata", status="500") == 1


@pytest.mark.asyncio
async def test_other_2xx_statuses_are_not_success(make_fetcher) -> None:
    async with make_fetcher(lambda request: httpx.Response(204)) as fetcher:
        with pytest.raises(HttpStatusError) as caught:
            await fetcher.fetch("https://example.com/meta.json")

    assert caught.value.status_code == 204


@pytest.mark.asyncio
async def test_connection_failure_is_retryable_transport_error(
    make_fetcher,
    metrics: RecordingMetricsSink,
) -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with make_fetcher(_handler) as fetcher:
        with pytest.raises(TransportFetchError) as caught:
            await fetcher.fetch("https://example.com/meta.json")

    assert caught.value.retryable
    assert metrics.tagged(FETCH_ERROR_METRIC, type="DownloadMetadata") == 1
    assert metrics.total(HTTP_ERROR_METRIC) == 0


@pytest.mark.asyncio
async def test_invalid_json_body_is_retryable_decode_error(
    make_fetcher,
    metrics: RecordingMetricsSink,
) -> None:
    async with make_fetcher(lambda request: httpx.Response(200, text="<html>")) as fetcher:
        with pytest.raises(MetadataDecodeError) as caught:
            await fetcher.fetch("https://example.com/meta.json")

    assert caught.value.retryable
    assert metrics.tagged(DECODE_ERROR_METRIC, type="DownloadMetadata") == 1


@pytest.mark.asyncio
async def test_hanging_endpoint_resolves_at_timeout_bound(make_fetcher) -> None:
    async def _never_answers(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(30)
        return httpx.Response(200, json={})

    async with make_fetcher(_never_answers, timeout_seconds=0.2) as fetcher:
        started = time.monotonic()
        with pytest.raises(TransportFetchError, match="timeout"):
            await fetcher.fetch("https://example.com/meta.json")
        elapsed = time.monotonic() - started

    assert elapsed < 2.0


@pytest.mark.asyncio
async def test_default_timeout_is_three_seconds(make_fetcher) -> None:
    async def _never_answers(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(30)
        return httpx.Response(200, json={})

    async with make_fetcher(_never_answers) as fetcher:
        started = time.monotonic()
        with pytest.raises(TransportFetchError):
            await fetcher.fetch("https://example.com/meta.json")
        elapsed = time.monotonic() - started

    assert 2.5 <= elapsed < 5.0


def test_client_timeout_defaults_to_three_seconds() -> None:
    fetcher = MetadataFetcher()
    assert fetcher.timeout_seconds == 3.0
    assert fetcher._client.timeout == httpx.Timeout(3.0)


@pytest.mark.asyncio
async def test_broken_metrics_sink_never_masks_fetch_error() -> None:
    fetcher = MetadataFetcher(
        metrics=_ExplodingSink(),
        metric_tag="DownloadMetadata",
        transport=httpx.MockTransport(lambda request: httpx.Response(502)),
    )
    async with fetcher:
        with pytest.raises(HttpStatusError):
            await fetcher.fetch("https://example.com/meta.json")
