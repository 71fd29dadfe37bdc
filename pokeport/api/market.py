"""
Market data endpoints.

Price lookups for a known card identity, recent price history, and the
trending-cards view.
"""

import random
from datetime import datetime
from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from pokeport.api.dependencies import get_pipeline, get_rng, get_snapshot_session
from pokeport.api.scan import record_snapshot
from pokeport.db.snapshots import recent_snapshots
from pokeport.engine.trending import trending_cards
from pokeport.models.pricing import MarketPrice
from pokeport.pipeline.orchestrator import CardScanPipeline

router = APIRouter(prefix="/api/market", tags=["market"])


class SnapshotResponse(BaseModel):
    """One historical price observation."""

    average_price: Decimal
    condition: str
    price_source: str
    observed_at: datetime


@router.get("/trending", response_model=list[MarketPrice])
async def get_trending(
    rng: Annotated[random.Random, Depends(get_rng)],
) -> list[MarketPrice]:
    """Popular cards with estimated prices."""
    return trending_cards(rng)


@router.get("/{card_name}/{set_name}", response_model=MarketPrice)
async def get_market_price(
    request: Request,
    card_name: str,
    set_name: str,
    pipeline: Annotated[CardScanPipeline, Depends(get_pipeline)],
    condition: Annotated[str, Query(max_length=64)] = "Near Mint",
) -> MarketPrice:
    """Market price for a card identity, without recognition. Never fails."""
    price = await pipeline.resolve_market_price(card_name, set_name, condition)
    await record_snapshot(request, price)
    return price


@router.get("/{card_name}/{set_name}/history", response_model=list[SnapshotResponse])
async def get_price_history(
    card_name: str,
    set_name: str,
    session: Annotated[AsyncSession | None, Depends(get_snapshot_session)],
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> list[SnapshotResponse]:
    """Recorded price snapshots for a card, newest first. Empty when storage is off."""
    if session is None:
        return []

    snapshots = await recent_snapshots(session, card_name, set_name, limit=limit)
    return [
        SnapshotResponse(
            average_price=s.average_price,
            condition=s.condition,
            price_source=s.price_source,
            observed_at=s.observed_at,
        )
        for s in snapshots
    ]
