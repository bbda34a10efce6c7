"""Background task that downloads an asset's off-chain metadata document."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from asset_ingester.config import FetchSettings
from asset_ingester.http.fetcher import MetadataFetcher
from asset_ingester.metrics import MetricsSink, NullMetricsSink
from asset_ingester.storage.repository import AssetMetadataRepository
from asset_ingester.tasks.classifier import decide_metadata, validate_uri
from asset_ingester.tasks.errors import StoreError, TaskManagerError
from asset_ingester.tasks.payload import DOWNLOAD_METADATA_TASK_NAME, DownloadMetadata

logger = logging.getLogger(__name__)

DOWNLOAD_METADATA_LOCK_DURATION = 5
DOWNLOAD_METADATA_MAX_ATTEMPTS = 3


class DownloadMetadataTask:
    """Fetches metadata for one asset and stores it on the asset record.

    Permanent failures (an unusable URI) write the ``"Invalid Uri"`` marker
    and raise ``UnrecoverableTaskError``. Transient fetch failures raise
    before any write so the record is left for the next attempt.
    """

    def __init__(
        self,
        *,
        fetcher: MetadataFetcher | None = None,
        repository: AssetMetadataRepository | None = None,
        metrics: MetricsSink | None = None,
        fetch_settings: FetchSettings | None = None,
    ) -> None:
        self.metrics = metrics or NullMetricsSink()
        self.repository = repository or AssetMetadataRepository()
        self.fetch_settings = fetch_settings or FetchSettings()
        self._fetcher = fetcher

    @property
    def name(self) -> str:
        return DOWNLOAD_METADATA_TASK_NAME

    @property
    def lock_duration(self) -> int:
        return DOWNLOAD_METADATA_LOCK_DURATION

    @property
    def max_attempts(self) -> int:
        return DOWNLOAD_METADATA_MAX_ATTEMPTS

    async def execute(self, session: AsyncSession, data: dict[str, Any]) -> None:
        payload = DownloadMetadata.from_dict(data)
        payload.sanitize()
        uri_valid = validate_uri(payload.uri)

        if self._fetcher is not None:
            decision = await decide_metadata(
                uri=payload.uri,
                uri_valid=uri_valid,
                fetch=self._fetcher.fetch,
            )
        else:
            async with self._build_fetcher() as fetcher:
                decision = await decide_metadata(
                    uri=payload.uri,
                    uri_valid=uri_valid,
                    fetch=fetcher.fetch,
                )

        logger.info("download metadata for %s", payload.asset_data_id.hex())
        try:
            await self.repository.update_metadata(
                session,
                asset_data_id=payload.asset_data_id,
                document=decision.document,
            )
        except StoreError as error:
            raise TaskManagerError(self.name, error) from error

        if decision.terminal_error is not None:
            raise decision.terminal_error

    def _build_fetcher(self) -> MetadataFetcher:
        return MetadataFetcher(
            timeout_seconds=self.fetch_settings.timeout_seconds,
            user_agent=self.fetch_settings.user_agent,
            follow_redirects=self.fetch_settings.follow_redirects,
            metrics=self.metrics,
            metric_tag=self.name,
        )

    def __repr__(self) -> str:
        return f"DownloadMetadataTask(name={self.name!r}, lock_duration={self.lock_duration})"
