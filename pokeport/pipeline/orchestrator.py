"""
PokePort — Card Scan Pipeline

Sequences one scan:

  RECOGNIZE ─(fail)→ abort with RecognitionFailure
      │
  SEARCH_CATALOG → MATCH → AGGREGATE_PRICE ─→ CATALOG_PRICED
      │ no candidates / no price
      └──────────────────────────────────────→ SYNTHETIC_PRICED
                                                    │
                                             ASSEMBLE_RESULT

Only recognition can fail a scan. Everything after it degrades (looser
queries, image-only placeholder price, synthetic price) instead of failing.

Image resolution: the matched record's official image wins, even when its
price data is thin; otherwise the uploaded image as a data URL.
"""

from __future__ import annotations

import base64
import random

import structlog

from pokeport.config import settings
from pokeport.engine.aggregate import aggregate_price
from pokeport.engine.pricing import RandomSource, catalog_price
from pokeport.engine.synthetic import synthetic_price
from pokeport.exceptions import InputError
from pokeport.models.pricing import MarketPrice, PriceSource
from pokeport.models.scan import RecognizedCard, ScanResult
from pokeport.pipeline.catalog import PokemonTCGClient
from pokeport.recognition.vision import CardRecognizer

logger = structlog.get_logger(__name__)


def to_data_url(image_bytes: bytes, media_type: str) -> str:
    """Re-encode uploaded bytes as a data URL."""
    encoded = base64.standard_b64encode(image_bytes).decode("ascii")
    return f"data:{media_type};base64,{encoded}"


class CardScanPipeline:
    """
    Recognition → catalog search → match → price.

    All collaborators are injected; nothing is read from module-level
    singletons at scan time. Holds no per-scan state, so one instance
    serves concurrent scans.

    Usage:
        async with PokemonTCGClient() as catalog:
            pipeline = CardScanPipeline(CardRecognizer(), catalog)
            result = await pipeline.scan_card(image_bytes, "image/jpeg")
    """

    def __init__(
        self,
        recognizer: CardRecognizer,
        catalog: PokemonTCGClient,
        rng: RandomSource | None = None,
        image_lookup: bool | None = None,
    ):
        self._recognizer = recognizer
        self._catalog = catalog
        self._rng = rng if rng is not None else random.Random()
        self._image_lookup = (
            image_lookup if image_lookup is not None else settings.ENABLE_IMAGE_LOOKUP_FALLBACK
        )

    async def scan_card(self, image_bytes: bytes, media_type: str = "image/jpeg") -> ScanResult:
        """
        Turn one card image into one priced card identity.

        Args:
            image_bytes: Uploaded image.
            media_type: MIME type of the upload.

        Returns:
            ScanResult with recognition, market price and display image URL.

        Raises:
            InputError: No image bytes.
            RecognitionFailure: Card could not be identified; no catalog
                                calls are made.
        """
        if not image_bytes:
            raise InputError("no image provided")

        identity = await self._recognizer.recognize(image_bytes, media_type)
        market_price = await self.resolve_market_price(
            identity.name, identity.set, identity.condition
        )

        image_url = market_price.image_url or to_data_url(image_bytes, media_type)

        logger.info(
            "scan_complete",
            card_name=identity.name,
            set_name=identity.set,
            average_price=str(market_price.average_price),
            price_source=market_price.price_source.value,
            official_image=market_price.image_url is not None,
            source="pipeline",
        )
        return ScanResult(
            recognition=RecognizedCard(
                **identity.model_dump(),
                image_url=image_url,
            ),
            market_price=market_price,
            image_url=image_url,
        )

    async def resolve_market_price(
        self,
        card_name: str,
        set_name: str,
        condition: str,
    ) -> MarketPrice:
        """
        Price a known card identity. Never fails.

        Returns:
            Catalog-sourced price when a match carries one, the image-only
            placeholder when a match has artwork but no price, else a
            synthetic price.
        """
        record = await self._catalog.search(card_name, set_name)

        if record is not None:
            raw_price = aggregate_price(record)
            if raw_price is not None:
                return catalog_price(
                    card_name, set_name, condition, raw_price, self._rng,
                    image_url=record.image_url,
                )

            if record.image_url:
                logger.info(
                    "catalog_price_absent",
                    card_id=record.id,
                    fallback="image_only_placeholder",
                    source="pipeline",
                )
                return catalog_price(
                    card_name, set_name, condition,
                    settings.IMAGE_ONLY_PLACEHOLDER_PRICE, self._rng,
                    image_url=record.image_url,
                    source=PriceSource.CATALOG_IMAGE_ONLY,
                )

            logger.info(
                "catalog_price_absent",
                card_id=record.id,
                fallback="synthetic",
                source="pipeline",
            )
            return synthetic_price(card_name, set_name, condition, self._rng)

        image_url = None
        if self._image_lookup:
            image_url = await self._catalog.find_image(card_name, set_name)
        return synthetic_price(card_name, set_name, condition, self._rng, image_url=image_url)
