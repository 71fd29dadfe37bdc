"""
Models package — SQLAlchemy models and API result models.
"""

from pokeport.models.base import Base
from pokeport.models.market_snapshot import MarketSnapshot
from pokeport.models.pricing import MarketPrice, PriceRange, PriceSource

__all__ = ["Base", "MarketPrice", "MarketSnapshot", "PriceRange", "PriceSource"]
