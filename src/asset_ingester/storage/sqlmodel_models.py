"""SQLModel ORM tables for asset storage."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Column, DateTime, LargeBinary
from sqlmodel import Field, SQLModel


class AssetData(SQLModel, table=True):
    __tablename__ = "asset_data"  # type: ignore[bad-override]

    id: bytes = Field(sa_column=Column(LargeBinary, primary_key=True))
    # ``metadata`` is reserved on declarative classes; the column keeps the name.
    asset_metadata: Any | None = Field(default=None, sa_column=Column("metadata", JSON, nullable=True))
    metadata_url: str | None = None
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
