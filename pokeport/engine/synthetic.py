"""
PokePort — Synthetic Pricing Model

Fallback estimate used when the catalog has no match or no price. Every
scan must come back with a value, even for obscure or misread sets.

  average = base(card name) × era(set name) × condition

Base and era factors are drawn uniformly from fixed ranges; the draw is
market-simulation noise, taken from an injected random source.
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import NamedTuple

import structlog

from pokeport.config import settings
from pokeport.engine.pricing import (
    RandomSource,
    price_range,
    quantize,
    randrange,
    simulated_price_change,
    uniform,
)
from pokeport.models.pricing import MarketPrice, PriceSource
from pokeport.utils.condition_map import condition_multiplier

logger = structlog.get_logger(__name__)


class PriceBand(NamedTuple):
    """Uniform draw bounds [low, high)."""
    low: float
    high: float


class _Rule(NamedTuple):
    pattern: re.Pattern[str]
    band: PriceBand


def _substr(text: str) -> re.Pattern[str]:
    return re.compile(re.escape(text), re.IGNORECASE)


def _word(text: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(text)}\b", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Base price by card name (USD, Mint). First match wins.
# ---------------------------------------------------------------------------

BASE_PRICE_RULES: tuple[_Rule, ...] = (
    _Rule(_substr("charizard"), PriceBand(80, 180)),
    _Rule(_substr("blastoise"), PriceBand(60, 100)),
    _Rule(_substr("venusaur"), PriceBand(55, 90)),
    _Rule(_substr("pikachu"), PriceBand(15, 45)),
    _Rule(_substr("alakazam"), PriceBand(20, 45)),
    _Rule(_substr("mewtwo"), PriceBand(35, 75)),
    _Rule(_substr("mew"), PriceBand(25, 60)),
    _Rule(_substr("rayquaza"), PriceBand(40, 90)),
    _Rule(_substr("lugia"), PriceBand(35, 80)),
    _Rule(_substr("dragonite"), PriceBand(25, 55)),
    _Rule(_substr("gengar"), PriceBand(20, 45)),
    _Rule(_substr("machamp"), PriceBand(15, 35)),
    _Rule(_substr("gyarados"), PriceBand(18, 43)),
    # Special mechanics, as standalone words ("Exeggutor" is not an ex)
    _Rule(_word("ex"), PriceBand(30, 70)),
    _Rule(_word("gx"), PriceBand(30, 70)),
    _Rule(_word("vmax"), PriceBand(30, 70)),
    _Rule(_word("vstar"), PriceBand(30, 70)),
)

DEFAULT_BASE_BAND = PriceBand(3, 18)

# ---------------------------------------------------------------------------
# Set-era multiplier. Special prints come before the sets they belong to.
# ---------------------------------------------------------------------------

SET_ERA_RULES: tuple[_Rule, ...] = (
    _Rule(_substr("1st edition"), PriceBand(3.0, 5.0)),
    _Rule(_substr("shadowless"), PriceBand(2.5, 4.0)),
    _Rule(_substr("base set"), PriceBand(2.0, 3.5)),
    _Rule(_substr("jungle"), PriceBand(1.5, 2.3)),
    _Rule(_substr("fossil"), PriceBand(1.3, 2.0)),
    _Rule(_substr("team rocket"), PriceBand(1.4, 2.0)),
    _Rule(_substr("gym"), PriceBand(1.3, 1.8)),
    _Rule(_substr("neo"), PriceBand(1.6, 2.3)),
    _Rule(_substr("e-card"), PriceBand(1.8, 2.6)),
    _Rule(_word("ex"), PriceBand(1.2, 1.6)),
    _Rule(_substr("diamond"), PriceBand(1.1, 1.4)),
    _Rule(_substr("platinum"), PriceBand(1.1, 1.4)),
    _Rule(_substr("black & white"), PriceBand(0.9, 1.2)),
    _Rule(_word("xy"), PriceBand(0.8, 1.1)),
    _Rule(_substr("sun & moon"), PriceBand(0.7, 1.0)),
    _Rule(_substr("sword & shield"), PriceBand(0.6, 0.9)),
    _Rule(_substr("scarlet"), PriceBand(0.8, 1.2)),
    _Rule(_substr("violet"), PriceBand(0.8, 1.2)),
)


def _lookup(rules: tuple[_Rule, ...], text: str) -> PriceBand | None:
    for rule in rules:
        if rule.pattern.search(text):
            return rule.band
    return None


def base_price_band(card_name: str) -> PriceBand:
    """Base price bounds for a card name."""
    return _lookup(BASE_PRICE_RULES, card_name) or DEFAULT_BASE_BAND


def set_era_band(set_name: str) -> PriceBand | None:
    """Era multiplier bounds for a set name, or None for no adjustment."""
    return _lookup(SET_ERA_RULES, set_name)


def synthetic_base_price(card_name: str, set_name: str, rng: RandomSource) -> Decimal:
    """
    Mint-condition estimate: base draw × set-era draw.

    Args:
        card_name: Card name, matched case-insensitively against the base table.
        set_name: Set name, matched case-insensitively against the era table.
        rng: Random source (random.Random or a stub).

    Returns:
        Unrounded Decimal price.
    """
    base = base_price_band(card_name)
    price = Decimal(str(uniform(rng, base.low, base.high)))

    era = set_era_band(set_name)
    if era is not None:
        price *= Decimal(str(uniform(rng, era.low, era.high)))
    return price


def synthetic_price(
    card_name: str,
    set_name: str,
    condition: str,
    rng: RandomSource,
    image_url: str | None = None,
) -> MarketPrice:
    """
    Fully synthetic MarketPrice for a card.

    averagePrice = round2(base × era × condition), band 0.8×–1.2×,
    recentSales in [20, 60), priceChange in [-6, +6) percent.
    """
    multiplier = condition_multiplier(condition)
    average = quantize(synthetic_base_price(card_name, set_name, rng) * multiplier)
    sales_low, sales_high = settings.SYNTHETIC_RECENT_SALES_RANGE

    price = MarketPrice(
        card_name=card_name,
        set=set_name,
        condition=condition,
        average_price=average,
        price_range=price_range(
            average, settings.SYNTHETIC_RANGE_LOW, settings.SYNTHETIC_RANGE_HIGH
        ),
        recent_sales=randrange(rng, sales_low, sales_high),
        price_change=simulated_price_change(rng),
        image_url=image_url,
        price_source=PriceSource.SYNTHETIC,
    )

    logger.info(
        "synthetic_price_generated",
        card_name=card_name,
        set_name=set_name,
        condition=condition,
        condition_multiplier=str(multiplier),
        average_price=str(average),
        source="pricing",
    )
    return price
