"""
PokePort — Variant Price Aggregator

Reduces a catalog record's per-variant TCGPlayer prices to one market price.

Foil/holo prints are the most liquid and most commonly quoted, so the
priority variants are averaged first. Only when none of them carries a
positive market price does the average widen to every variant.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Iterable

import structlog

if TYPE_CHECKING:
    from pokeport.pipeline.catalog import CatalogRecord, VariantPrice

logger = structlog.get_logger(__name__)

VARIANT_PRIORITY: tuple[str, ...] = (
    "holofoil",
    "normal",
    "reverseHolofoil",
    "1stEditionHolofoil",
    "1stEditionNormal",
)


def _positive_markets(variants: Iterable[VariantPrice | None]) -> list[Decimal]:
    return [
        v.market for v in variants
        if v is not None and v.market is not None and v.market > 0
    ]


def aggregate_price(record: CatalogRecord) -> Decimal | None:
    """
    Compute a representative market price for a record.

    Args:
        record: Matched catalog record.

    Returns:
        Mean market price of the priced priority variants, else of all
        priced variants; None when no variant has a positive market price.
    """
    prices = record.prices_by_variant
    if not prices:
        return None

    markets = _positive_markets(prices.get(label) for label in VARIANT_PRIORITY)
    tier = "priority"
    if not markets:
        markets = _positive_markets(prices.values())
        tier = "all"

    if not markets:
        logger.debug("variant_prices_absent", card_id=record.id, variants=list(prices))
        return None

    average = sum(markets, Decimal("0")) / len(markets)
    logger.debug(
        "variant_prices_aggregated",
        card_id=record.id,
        tier=tier,
        variant_count=len(markets),
        average=str(average),
    )
    return average
