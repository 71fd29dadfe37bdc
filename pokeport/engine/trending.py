"""
PokePort — Trending Cards

Market view of a fixed list of popular current-era cards. Priced with the
synthetic model and paired with known official images, so the view renders
without any catalog calls.
"""

from __future__ import annotations

from typing import NamedTuple

from pokeport.engine.pricing import RandomSource
from pokeport.engine.synthetic import synthetic_price
from pokeport.models.pricing import MarketPrice


class TrendingCard(NamedTuple):
    name: str
    set: str
    condition: str
    image_url: str


POPULAR_CARDS: tuple[TrendingCard, ...] = (
    TrendingCard("Charizard ex", "Paldea Evolved", "Near Mint",
                 "https://images.pokemontcg.io/sv2/1.png"),
    TrendingCard("Miraidon ex", "Scarlet & Violet", "Near Mint",
                 "https://images.pokemontcg.io/sv1/81.png"),
    TrendingCard("Koraidon ex", "Scarlet & Violet", "Near Mint",
                 "https://images.pokemontcg.io/sv1/67.png"),
    TrendingCard("Chien-Pao ex", "Paldea Evolved", "Near Mint",
                 "https://images.pokemontcg.io/sv2/61.png"),
    TrendingCard("Gardevoir ex", "Scarlet & Violet", "Near Mint",
                 "https://images.pokemontcg.io/sv1/86.png"),
)


def trending_cards(
    rng: RandomSource,
    cards: tuple[TrendingCard, ...] = POPULAR_CARDS,
) -> list[MarketPrice]:
    """Synthetic MarketPrice for each popular card, in list order."""
    return [
        synthetic_price(card.name, card.set, card.condition, rng, image_url=card.image_url)
        for card in cards
    ]
