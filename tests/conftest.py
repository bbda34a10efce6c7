"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from asset_ingester.http.fetcher import MetadataFetcher
from asset_ingester.metrics import RecordingMetricsSink
from asset_ingester.storage.alembic_runner import upgrade_head
from asset_ingester.storage.common import build_async_engine, session_factory
from asset_ingester.storage.repository import AssetMetadataRepository
from asset_ingester.tasks.payload import DOWNLOAD_METADATA_TASK_NAME

Handler = Callable[[httpx.Request], object]


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / "assets.db"
    upgrade_head(path)
    return path


@pytest_asyncio.fixture()
async def session(db_path: Path) -> AsyncIterator[AsyncSession]:
    engine = build_async_engine(db_path=db_path, busy_timeout_ms=5000)
    async with session_factory(engine)() as db_session:
        yield db_session
    await engine.dispose()


@pytest.fixture()
def repository() -> AssetMetadataRepository:
    return AssetMetadataRepository()


@pytest.fixture()
def metrics() -> RecordingMetricsSink:
    return RecordingMetricsSink()


@pytest.fixture()
def make_fetcher(metrics: RecordingMetricsSink) -> Callable[..., MetadataFetcher]:
    """Build fetchers served by an in-process handler instead of the network."""

    def _make(handler: Handler, *, timeout_seconds: float = 3.0) -> MetadataFetcher:
        return MetadataFetcher(
            timeout_seconds=timeout_seconds,
            metrics=metrics,
            metric_tag=DOWNLOAD_METADATA_TASK_NAME,
            transport=httpx.MockTransport(handler),
        )

    return _make
