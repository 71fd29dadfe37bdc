"""
PokePort — Scan result contract returned to clients.
"""

from __future__ import annotations

from pokeport.models.pricing import CamelModel, MarketPrice
from pokeport.recognition import CardIdentity


class RecognizedCard(CardIdentity):
    """CardIdentity plus the image the client should display for it."""
    image_url: str | None = None


class ScanResult(CamelModel):
    """One scanned image resolved to one priced card identity."""
    recognition: RecognizedCard
    market_price: MarketPrice
    image_url: str
