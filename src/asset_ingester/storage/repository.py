"""Asset record persistence on a caller-supplied async session."""

from __future__ import annotations

from typing import Any

from sqlalchemy import update as sa_update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from asset_ingester.storage.common import utc_now
from asset_ingester.storage.sqlmodel_models import AssetData
from asset_ingester.tasks.errors import StoreError


class AssetMetadataRepository:
    """Targeted reads and writes against ``asset_data`` rows.

    The repository never owns the session: callers open, pass and close it.
    """

    async def update_metadata(
        self,
        session: AsyncSession,
        *,
        asset_data_id: bytes,
        document: Any,
    ) -> None:
        """Replace the metadata document of an existing record.

        This is a filtered update, never an upsert: a missing record is a
        ``StoreError`` like any other database failure.
        """

        try:
            result = await session.execute(
                sa_update(AssetData)
                .where(col(AssetData.id) == asset_data_id)
                .values({AssetData.asset_metadata: document, AssetData.updated_at: utc_now()}),
            )
            if result.rowcount == 0:
                await session.rollback()
                raise StoreError(f"asset_data record not found: {asset_data_id.hex()}")
            await session.commit()
        except SQLAlchemyError as error:
            await session.rollback()
            raise StoreError(str(error)) from error

    async def create_asset(
        self,
        session: AsyncSession,
        *,
        asset_data_id: bytes,
        metadata_url: str | None = None,
    ) -> AssetData:
        """Insert an empty record, used by tooling to seed assets."""

        now = utc_now()
        row = AssetData(
            id=asset_data_id,
            asset_metadata=None,
            metadata_url=metadata_url,
            created_at=now,
            updated_at=now,
        )
        try:
            session.add(row)
            await session.commit()
        except SQLAlchemyError as error:
            await session.rollback()
            raise StoreError(str(error)) from error
        return row

    async def get_asset(self, session: AsyncSession, *, asset_data_id: bytes) -> AssetData | None:
        result = await session.execute(select(AssetData).where(col(AssetData.id) == asset_data_id))
        row = result.scalar_one_or_none()
        if row is not None:
            await session.refresh(row)
        return row
