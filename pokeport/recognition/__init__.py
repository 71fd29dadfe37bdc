"""PokePort — Recognition Layer (vision model → card identity)"""

from __future__ import annotations

from pydantic import Field

from pokeport.models.pricing import CamelModel
from pokeport.utils.condition_map import CardCondition, parse_condition


class CardIdentity(CamelModel):
    """
    Structured card identity extracted from one scanned image.

    Created once per scan and immutable afterwards. A CardIdentity only
    exists when recognition cleared the confidence threshold.
    """
    name: str = Field(..., min_length=1)
    set: str = ""
    card_number: str = ""
    condition: str = ""
    confidence: float = Field(..., ge=0.0, le=1.0)
    rarity: str | None = None
    type: str | None = None

    @property
    def grade(self) -> CardCondition | None:
        """Parsed condition grade, or None when the model's label is unrecognized."""
        return parse_condition(self.condition)


__all__ = ["CardIdentity"]
