"""
PokePort — Price Assembly

Shared helpers that turn a raw price into a MarketPrice: condition
adjustment, 2dp rounding, the low/high band, and the simulated
recentSales/priceChange figures.

Randomness always comes from an injected source so tests can pin it.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Protocol

import structlog

from pokeport.config import settings
from pokeport.models.pricing import MarketPrice, PriceRange, PriceSource
from pokeport.utils.condition_map import condition_multiplier

logger = structlog.get_logger(__name__)

_TWO_DP = Decimal("0.01")


class RandomSource(Protocol):
    """Anything with random.Random's random(): a float in [0, 1)."""

    def random(self) -> float: ...


def quantize(value: Decimal) -> Decimal:
    return value.quantize(_TWO_DP, rounding=ROUND_HALF_UP)


def uniform(rng: RandomSource, low: float, high: float) -> float:
    """Float in [low, high)."""
    return low + (high - low) * rng.random()


def randrange(rng: RandomSource, low: int, high: int) -> int:
    """Int in [low, high)."""
    return low + min(int((high - low) * rng.random()), high - low - 1)


def price_range(average: Decimal, low_factor: Decimal, high_factor: Decimal) -> PriceRange:
    """
    Band around an average price, rounded to 2dp.

    Bounds are clamped so low <= average <= high survives rounding.
    """
    low = min(quantize(average * low_factor), average)
    high = max(quantize(average * high_factor), average)
    return PriceRange(low=low, high=high)


def simulated_price_change(rng: RandomSource) -> float:
    """Percent change in [-spread, +spread), 2dp."""
    spread = settings.PRICE_CHANGE_SPREAD_PERCENT
    return round(uniform(rng, -spread, spread), 2)


def catalog_price(
    card_name: str,
    set_name: str,
    condition: str,
    raw_price: Decimal,
    rng: RandomSource,
    image_url: str | None = None,
    source: PriceSource = PriceSource.CATALOG,
) -> MarketPrice:
    """
    Build a MarketPrice from a catalog (Mint-equivalent) price.

    averagePrice = round2(raw_price × condition multiplier), with a
    0.85×–1.15× band.

    Args:
        card_name: Card name as recognized.
        set_name: Set name as recognized.
        condition: Condition label; unparseable labels use the default multiplier.
        raw_price: Aggregated market price, or the image-only placeholder.
        rng: Random source for recentSales and priceChange.
        image_url: Official artwork URL, if found.
        source: CATALOG or CATALOG_IMAGE_ONLY.
    """
    multiplier = condition_multiplier(condition)
    average = quantize(max(raw_price, Decimal("0")) * multiplier)
    sales_low, sales_high = settings.CATALOG_RECENT_SALES_RANGE

    price = MarketPrice(
        card_name=card_name,
        set=set_name,
        condition=condition,
        average_price=average,
        price_range=price_range(
            average, settings.CATALOG_RANGE_LOW, settings.CATALOG_RANGE_HIGH
        ),
        recent_sales=randrange(rng, sales_low, sales_high),
        price_change=simulated_price_change(rng),
        image_url=image_url,
        price_source=source,
    )

    logger.info(
        "catalog_price_resolved",
        card_name=card_name,
        set_name=set_name,
        raw_price=str(raw_price),
        condition_multiplier=str(multiplier),
        average_price=str(average),
        price_source=source.value,
        source="pricing",
    )
    return price
