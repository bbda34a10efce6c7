"""CLI entrypoint for asset-ingester."""

import logging
import os
from pathlib import Path

import rich_click as click

from asset_ingester import __version__
from asset_ingester.controllers import (
    AssetAddCommand,
    AssetIngesterCliController,
    AssetShowCommand,
    DbInitCommand,
    DownloadMetadataCommand,
)
from asset_ingester.tasks.errors import PayloadError

click.rich_click.USE_MARKDOWN = True
CONTROLLER = AssetIngesterCliController()


@click.group()
@click.version_option(version=__version__, prog_name="asset-ingester")
@click.option(
    "--log-level",
    default=lambda: os.getenv("ASSET_INGESTER_LOG_LEVEL", "INFO"),
    show_default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging verbosity.",
)
def asset_ingester(log_level: str) -> None:
    """Asset metadata ingester CLI."""

    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asset_ingester.group()
def db() -> None:
    """Database commands."""


@db.command("init")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
def db_init(db_path: Path | None) -> None:
    """Apply schema migrations."""

    _emit_lines(CONTROLLER.init_db(DbInitCommand(db_path=db_path)))


@asset_ingester.group()
def asset() -> None:
    """Asset record commands."""


@asset.command("add")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option("--asset-id", required=True, help="Hex encoded asset identifier.")
@click.option("--uri", default=None, help="Metadata URI recorded with the asset.")
def asset_add(db_path: Path | None, asset_id: str, uri: str | None) -> None:
    """Seed one empty asset record."""

    try:
        lines = CONTROLLER.add_asset(AssetAddCommand(db_path=db_path, asset_id=asset_id, uri=uri))
    except PayloadError as error:
        raise click.BadParameter(str(error), param_hint="--asset-id") from error
    _emit_lines(lines)


@asset.command("show")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option("--asset-id", required=True, help="Hex encoded asset identifier.")
def asset_show(db_path: Path | None, asset_id: str) -> None:
    """Print one asset record with its metadata document."""

    try:
        lines = CONTROLLER.show_asset(AssetShowCommand(db_path=db_path, asset_id=asset_id))
    except PayloadError as error:
        raise click.BadParameter(str(error), param_hint="--asset-id") from error
    _emit_lines(lines)


@asset_ingester.group()
def task() -> None:
    """Background task commands."""


@task.command("list")
def task_list() -> None:
    """List registered tasks with their scheduler contract."""

    _emit_lines(CONTROLLER.list_tasks())


@task.command("download-metadata")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option("--asset-id", required=True, help="Hex encoded asset identifier.")
@click.option("--uri", required=True, help="Metadata document URI.")
def task_download_metadata(db_path: Path | None, asset_id: str, uri: str) -> None:
    """Run one DownloadMetadata attempt and print its outcome."""

    try:
        result = CONTROLLER.download_metadata(
            DownloadMetadataCommand(db_path=db_path, asset_id=asset_id, uri=uri),
        )
    except PayloadError as error:
        raise click.BadParameter(str(error), param_hint="--asset-id") from error
    _emit_lines(result.lines)
    if not result.outcome.is_success:
        raise click.ClickException(f"DownloadMetadata finished with {result.outcome.status.value}.")


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    asset_ingester()
