"""Controllers for asset-ingester CLI commands."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from pathlib import Path

from asset_ingester.config import Settings
from asset_ingester.http.fetcher import MetadataFetcher
from asset_ingester.metrics import build_metrics_sink
from asset_ingester.storage.alembic_runner import upgrade_head
from asset_ingester.storage.common import build_async_engine, session_factory
from asset_ingester.storage.repository import AssetMetadataRepository
from asset_ingester.tasks.download_metadata import DownloadMetadataTask
from asset_ingester.tasks.errors import PayloadError, StoreError
from asset_ingester.tasks.models import TaskOutcome
from asset_ingester.tasks.payload import DOWNLOAD_METADATA_TASK_NAME, DownloadMetadata
from asset_ingester.tasks.registry import TaskRegistry


@dataclass(slots=True)
class DbInitCommand:
    """CLI input for schema migration."""

    db_path: Path | None


@dataclass(slots=True)
class AssetAddCommand:
    """CLI input for seeding one asset record."""

    db_path: Path | None
    asset_id: str
    uri: str | None


@dataclass(slots=True)
class AssetShowCommand:
    """CLI input for printing one asset record."""

    db_path: Path | None
    asset_id: str


@dataclass(slots=True)
class DownloadMetadataCommand:
    """CLI input for running one metadata download attempt."""

    db_path: Path | None
    asset_id: str
    uri: str


@dataclass(slots=True)
class TaskRunResult:
    """Outcome plus printable lines."""

    outcome: TaskOutcome
    lines: list[str]


class AssetIngesterCliController:
    """Wires settings, storage and tasks for CLI commands."""

    def init_db(self, command: DbInitCommand) -> list[str]:
        settings = self._settings(command.db_path)
        revision = upgrade_head(settings.db_path)
        return [f"Asset store at revision {revision}: {settings.db_path}"]

    def add_asset(self, command: AssetAddCommand) -> list[str]:
        settings = self._settings(command.db_path)
        asset_data_id = parse_asset_id(command.asset_id)
        repository = AssetMetadataRepository()

        async def _add() -> None:
            engine = build_async_engine(
                db_path=settings.db_path,
                busy_timeout_ms=settings.busy_timeout_ms,
            )
            try:
                async with session_factory(engine)() as session:
                    await repository.create_asset(
                        session,
                        asset_data_id=asset_data_id,
                        metadata_url=command.uri,
                    )
            finally:
                await engine.dispose()

        try:
            asyncio.run(_add())
        except StoreError as error:
            return [f"Failed to add asset {asset_data_id.hex()}: {error}"]
        return [f"Added asset {asset_data_id.hex()}"]

    def show_asset(self, command: AssetShowCommand) -> list[str]:
        settings = self._settings(command.db_path)
        asset_data_id = parse_asset_id(command.asset_id)
        repository = AssetMetadataRepository()

        async def _show() -> list[str]:
            engine = build_async_engine(
                db_path=settings.db_path,
                busy_timeout_ms=settings.busy_timeout_ms,
            )
            try:
                async with session_factory(engine)() as session:
                    row = await repository.get_asset(session, asset_data_id=asset_data_id)
            finally:
                await engine.dispose()
            if row is None:
                return [f"Asset {asset_data_id.hex()} not found"]
            return [
                f"asset_id: {asset_data_id.hex()}",
                f"metadata_url: {row.metadata_url or '-'}",
                f"updated_at: {row.updated_at.isoformat()}",
                "metadata: " + json.dumps(row.asset_metadata, ensure_ascii=False, sort_keys=True),
            ]

        return asyncio.run(_show())

    def list_tasks(self) -> list[str]:
        registry = TaskRegistry([DownloadMetadataTask()])
        return [
            f"{description.name}: lock_duration={description.lock_duration} "
            f"max_attempts={description.max_attempts}"
            for description in registry.describe()
        ]

    def download_metadata(self, command: DownloadMetadataCommand) -> TaskRunResult:
        settings = self._settings(command.db_path)
        payload = DownloadMetadata(asset_data_id=parse_asset_id(command.asset_id), uri=command.uri)
        task_data = payload.to_task_data()
        metrics = build_metrics_sink(settings.metrics.backend, prefix=settings.metrics.prefix)

        async def _run() -> TaskOutcome:
            engine = build_async_engine(
                db_path=settings.db_path,
                busy_timeout_ms=settings.busy_timeout_ms,
            )
            fetcher = MetadataFetcher(
                timeout_seconds=settings.fetch.timeout_seconds,
                user_agent=settings.fetch.user_agent,
                follow_redirects=settings.fetch.follow_redirects,
                metrics=metrics,
                metric_tag=DOWNLOAD_METADATA_TASK_NAME,
            )
            registry = TaskRegistry(
                [DownloadMetadataTask(fetcher=fetcher, metrics=metrics, fetch_settings=settings.fetch)],
            )
            try:
                async with session_factory(engine)() as session:
                    return await registry.run(session, task_data)
            finally:
                await fetcher.aclose()
                await engine.dispose()

        outcome = asyncio.run(_run())
        lines = [f"task: {outcome.task_name}", f"status: {outcome.status.value}"]
        if outcome.reason:
            lines.append(f"reason: {outcome.reason}")
        return TaskRunResult(outcome=outcome, lines=lines)

    @staticmethod
    def _settings(db_path: Path | None) -> Settings:
        settings = Settings.from_env(db_path=db_path)
        settings.validate()
        return settings


def parse_asset_id(value: str) -> bytes:
    """Parse a hex asset identifier from CLI input."""

    try:
        decoded = bytes.fromhex(value.strip())
    except ValueError as error:
        raise PayloadError(f"Asset id must be hex encoded: {value!r}") from error
    if not decoded:
        raise PayloadError("Asset id must not be empty")
    return decoded
