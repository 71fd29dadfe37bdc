"""
PokePort — Market price result models.

MarketPrice is derived on every call and never persisted by the pipeline.
Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, model_validator
from pydantic.alias_generators import to_camel

# Money is Decimal in Python, a plain JSON number on the wire
Money = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]


class PriceSource(str, Enum):
    """Where an averagePrice came from."""
    CATALOG = "catalog"
    CATALOG_IMAGE_ONLY = "catalog_image_only"
    SYNTHETIC = "synthetic"


class CamelModel(BaseModel):
    """Base for models that serialize with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class PriceRange(CamelModel):
    """Low/high band around the average price."""
    low: Money = Field(..., ge=0)
    high: Money = Field(..., ge=0)


class MarketPrice(CamelModel):
    """
    Resolved market value for one card identity in one condition.

    Invariant: price_range.low <= average_price <= price_range.high.
    """
    card_name: str
    set: str
    condition: str
    average_price: Money = Field(..., ge=0)
    price_range: PriceRange
    recent_sales: int = Field(..., ge=0)
    price_change: float = Field(..., description="Percent change")
    image_url: str | None = None

    # Tracked internally, kept out of the public payload
    price_source: PriceSource = Field(default=PriceSource.CATALOG, exclude=True)

    @model_validator(mode="after")
    def check_range(self) -> MarketPrice:
        if not self.price_range.low <= self.average_price <= self.price_range.high:
            raise ValueError(
                f"price range {self.price_range.low}-{self.price_range.high} "
                f"does not contain average {self.average_price}"
            )
        return self
