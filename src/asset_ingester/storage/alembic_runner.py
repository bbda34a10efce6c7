"""Bring an asset store file up to the latest ``asset_data`` schema."""

from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory

from asset_ingester.storage.common import sqlite_url

# alembic.ini and alembic/ sit at the project root, next to src/.
PROJECT_ROOT = Path(__file__).resolve().parents[3]


def _alembic_config(db_path: Path | None = None) -> Config:
    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    if db_path is not None:
        config.set_main_option("sqlalchemy.url", sqlite_url(db_path))
    return config


def upgrade_head(db_path: Path) -> str:
    """Migrate ``db_path`` to head and return the head revision id.

    Safe to call repeatedly; an up-to-date store is left as is.
    """

    db_path.parent.mkdir(parents=True, exist_ok=True)
    config = _alembic_config(db_path)
    command.upgrade(config, "head")
    return head_revision(config)


def head_revision(config: Config | None = None) -> str:
    head = ScriptDirectory.from_config(config or _alembic_config()).get_current_head()
    if head is None:
        raise RuntimeError("No Alembic revisions found for the asset store")
    return head
