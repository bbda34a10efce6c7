"""Create asset_data table holding fetched metadata documents."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "asset_data",
        sa.Column("id", sa.LargeBinary(), primary_key=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("metadata_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("asset_data")
