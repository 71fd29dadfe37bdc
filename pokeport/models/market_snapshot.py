"""
PokePort — Market Snapshot Model

One row per resolved market price. Observational history only: the scan
pipeline never reads it back, and pricing is always recomputed.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DECIMAL, INTEGER, TIMESTAMP, Index, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from pokeport.models.base import Base


class MarketSnapshot(Base):
    """A MarketPrice as it was returned to a client."""

    __tablename__ = "market_snapshots"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    card_name: Mapped[str] = mapped_column(String, nullable=False)
    set_name: Mapped[str] = mapped_column(String, nullable=False, default="")
    condition: Mapped[str] = mapped_column(String, nullable=False, default="")
    average_price: Mapped[Decimal] = mapped_column(
        DECIMAL(10, 2), nullable=False, comment="Condition-adjusted price in USD"
    )
    price_low: Mapped[Decimal] = mapped_column(DECIMAL(10, 2), nullable=False)
    price_high: Mapped[Decimal] = mapped_column(DECIMAL(10, 2), nullable=False)
    price_change: Mapped[Decimal | None] = mapped_column(
        DECIMAL(5, 2), nullable=True, comment="Percent change"
    )
    recent_sales: Mapped[int | None] = mapped_column(INTEGER, nullable=True)
    price_source: Mapped[str] = mapped_column(
        String, nullable=False, comment="'catalog', 'catalog_image_only', 'synthetic'"
    )
    observed_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_market_snapshots_card_set", "card_name", "set_name"),
    )

    def __repr__(self) -> str:
        return (
            f"<MarketSnapshot card_name={self.card_name!r} set_name={self.set_name!r} "
            f"avg={self.average_price} source={self.price_source!r}>"
        )
