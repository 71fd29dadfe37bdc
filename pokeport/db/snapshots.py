"""
PokePort — Market snapshot storage.
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pokeport.models.market_snapshot import MarketSnapshot
from pokeport.models.pricing import MarketPrice

logger = structlog.get_logger(__name__)


async def store_snapshot(price: MarketPrice, session: AsyncSession) -> MarketSnapshot:
    """
    Record a resolved MarketPrice.

    Args:
        price: Price as returned to the client.
        session: Async database session. Committed here.

    Returns:
        The stored MarketSnapshot.
    """
    snapshot = MarketSnapshot(
        card_name=price.card_name,
        set_name=price.set,
        condition=price.condition,
        average_price=price.average_price,
        price_low=price.price_range.low,
        price_high=price.price_range.high,
        price_change=Decimal(str(price.price_change)),
        recent_sales=price.recent_sales,
        price_source=price.price_source.value,
    )
    session.add(snapshot)
    await session.commit()
    await session.refresh(snapshot)

    logger.info(
        "market_snapshot_stored",
        card_name=price.card_name,
        set_name=price.set,
        price_source=price.price_source.value,
        source="snapshots",
    )
    return snapshot


async def recent_snapshots(
    session: AsyncSession,
    card_name: str,
    set_name: str | None = None,
    limit: int = 20,
) -> list[MarketSnapshot]:
    """Most recent snapshots for a card, newest first."""
    stmt = select(MarketSnapshot).where(MarketSnapshot.card_name == card_name)
    if set_name is not None:
        stmt = stmt.where(MarketSnapshot.set_name == set_name)
    stmt = stmt.order_by(MarketSnapshot.observed_at.desc()).limit(limit)

    result = await session.execute(stmt)
    return list(result.scalars().all())
