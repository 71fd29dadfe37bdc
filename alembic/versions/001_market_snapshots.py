"""Initial schema — market_snapshots

Revision ID: 001_market_snapshots
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001_market_snapshots"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "market_snapshots",
        sa.Column("id", sa.Uuid(), nullable=False, primary_key=True),
        sa.Column("card_name", sa.String(), nullable=False),
        sa.Column("set_name", sa.String(), nullable=False),
        sa.Column("condition", sa.String(), nullable=False),
        sa.Column("average_price", sa.DECIMAL(10, 2), nullable=False, comment="Condition-adjusted price in USD"),
        sa.Column("price_low", sa.DECIMAL(10, 2), nullable=False),
        sa.Column("price_high", sa.DECIMAL(10, 2), nullable=False),
        sa.Column("price_change", sa.DECIMAL(5, 2), nullable=True, comment="Percent change"),
        sa.Column("recent_sales", sa.INTEGER(), nullable=True),
        sa.Column("price_source", sa.String(), nullable=False, comment="catalog, catalog_image_only, synthetic"),
        sa.Column(
            "observed_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_market_snapshots_card_set", "market_snapshots", ["card_name", "set_name"])


def downgrade() -> None:
    op.drop_index("ix_market_snapshots_card_set", table_name="market_snapshots")
    op.drop_table("market_snapshots")
