from pokeport.engine.aggregate import VARIANT_PRIORITY, aggregate_price
from pokeport.engine.matcher import find_best_match
from pokeport.engine.pricing import catalog_price, price_range
from pokeport.engine.synthetic import synthetic_base_price, synthetic_price
from pokeport.engine.trending import trending_cards
from pokeport.models.pricing import MarketPrice, PriceRange, PriceSource

__all__ = [
    "VARIANT_PRIORITY",
    "MarketPrice",
    "PriceRange",
    "PriceSource",
    "aggregate_price",
    "catalog_price",
    "find_best_match",
    "price_range",
    "synthetic_base_price",
    "synthetic_price",
    "trending_cards",
]
