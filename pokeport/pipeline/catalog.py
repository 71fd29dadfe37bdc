"""
PokePort — pokemontcg.io Catalog Search Client

Resolves a recognized (name, set) to catalog records carrying TCGPlayer
variant prices and official card images.

Search degrades through progressively looser queries:
  1. name:"X" set.name:"Y"   (skipped when the set is unknown)
  2. name:"X"
  3. X with punctuation stripped (free-text)
Recognition noise in set names often empties query 1, so the looser queries
recover otherwise-lost hits. The first query returning any record wins.

Each query is one bounded-timeout request. A failed query is logged and the
next strategy takes its place; the same query is never retried.

Base URL: https://api.pokemontcg.io/v2/
"""

from __future__ import annotations

import json
import re
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx
import structlog
from pydantic import BaseModel, Field, ValidationError, field_validator

from pokeport.config import settings
from pokeport.engine.matcher import find_best_match
from pokeport.exceptions import CatalogTransientFailure

logger = structlog.get_logger(__name__)

# Set names the recognizer emits when it could not read the set
_UNKNOWN_SETS = frozenset({"", "unknown", "unknown set"})

_PUNCTUATION = re.compile(r"[^\w\s]")

# ---------------------------------------------------------------------------
# Pydantic Response Models
# ---------------------------------------------------------------------------


class VariantPrice(BaseModel):
    """TCGPlayer price points for one print variant (holofoil, normal, ...)."""
    low: Decimal | None = None
    mid: Decimal | None = None
    high: Decimal | None = None
    market: Decimal | None = None
    directLow: Decimal | None = None

    @field_validator("low", "mid", "high", "market", "directLow", mode="before")
    @classmethod
    def parse_decimal(cls, v: Any) -> Decimal | None:
        """Safely convert price values to Decimal. Never use float for money."""
        if v is None or v == "" or isinstance(v, bool):
            return None
        try:
            return Decimal(str(v))
        except (InvalidOperation, ValueError):
            return None


class TCGPlayerData(BaseModel):
    """TCGPlayer block of a pokemontcg.io card."""
    url: str | None = None
    updatedAt: str | None = None
    prices: dict[str, VariantPrice | None] = Field(default_factory=dict)


class SetInfo(BaseModel):
    """Set metadata embedded in a card record."""
    id: str = ""
    name: str = ""
    series: str | None = None


class CardImages(BaseModel):
    """Official card artwork URLs."""
    small: str | None = None
    large: str | None = None


class CatalogRecord(BaseModel):
    """
    One printed card variant as returned by pokemontcg.io.

    Read-only and ephemeral: re-fetched on every scan.
    """
    id: str = ""
    name: str = ""
    number: str = ""
    rarity: str | None = None
    set: SetInfo = Field(default_factory=SetInfo)
    tcgplayer: TCGPlayerData | None = None
    images: CardImages | None = None

    @property
    def set_name(self) -> str:
        return self.set.name

    @property
    def prices_by_variant(self) -> dict[str, VariantPrice]:
        """Variant label → price points, skipping null variants."""
        if not self.tcgplayer:
            return {}
        return {k: v for k, v in self.tcgplayer.prices.items() if v is not None}

    @property
    def image_url(self) -> str | None:
        """Small image first (what the portfolio grid renders), else large."""
        if self.images:
            return self.images.small or self.images.large
        return None


class CardListResponse(BaseModel):
    """Response from the pokemontcg.io cards search endpoint."""
    data: list[CatalogRecord] = Field(default_factory=list)
    page: int = Field(default=1)
    pageSize: int = Field(default=0)
    count: int = Field(default=0)
    totalCount: int = Field(default=0)


# ---------------------------------------------------------------------------
# Query strategies
# ---------------------------------------------------------------------------


def _quote(value: str) -> str:
    return value.replace('"', "").strip()


def build_search_queries(name: str, set_name: str | None) -> list[str]:
    """
    Build the ordered query strategies, most to least specific.

    Duplicate or empty strategies are dropped so no query is sent twice.

    Args:
        name: Recognized card name.
        set_name: Recognized set name (may be empty or "Unknown Set").

    Returns:
        List of pokemontcg.io `q` strings.
    """
    clean_name = _quote(name)
    clean_set = _quote(set_name or "")

    queries: list[str] = []
    if clean_set.lower() not in _UNKNOWN_SETS:
        queries.append(f'name:"{clean_name}" set.name:"{clean_set}"')
    queries.append(f'name:"{clean_name}"')
    queries.append(_PUNCTUATION.sub("", name).strip())

    ordered: list[str] = []
    for q in queries:
        if q and q not in ordered:
            ordered.append(q)
    return ordered


# ---------------------------------------------------------------------------
# API Client
# ---------------------------------------------------------------------------


class PokemonTCGClient:
    """
    Async search client for the pokemontcg.io v2 API.

    Pass an existing httpx.AsyncClient to share a connection pool (the
    caller keeps ownership), or use it as an async context manager to let
    it own one.

    Usage:
        async with PokemonTCGClient() as client:
            record = await client.search("Charizard", "Base Set")
            image = await client.find_image("Charizard", "Base Set")
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        price_timeout: float | None = None,
        image_timeout: float | None = None,
        price_page_size: int | None = None,
        image_page_size: int | None = None,
    ):
        self._api_key = api_key or settings.POKEMONTCG_API_KEY
        self._base_url = (base_url or settings.POKEMONTCG_BASE_URL).rstrip("/")
        self._client = http_client
        self._owns_client = http_client is None
        self._price_timeout = price_timeout or settings.CATALOG_PRICE_TIMEOUT_SECONDS
        self._image_timeout = image_timeout or settings.CATALOG_IMAGE_TIMEOUT_SECONDS
        self._price_page_size = price_page_size or settings.CATALOG_PRICE_PAGE_SIZE
        self._image_page_size = image_page_size or settings.CATALOG_IMAGE_PAGE_SIZE

    def _headers(self) -> dict[str, str]:
        headers = {
            "User-Agent": settings.CATALOG_USER_AGENT,
            "Accept": "application/json",
        }
        if self._api_key:
            headers["X-Api-Key"] = self._api_key
        return headers

    async def __aenter__(self) -> PokemonTCGClient:
        if self._client is None:
            self._client = httpx.AsyncClient(headers=self._headers())
            self._owns_client = True
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _query(
        self,
        query: str,
        page_size: int,
        timeout: float,
    ) -> list[CatalogRecord]:
        """
        Issue one search request with its own timeout.

        Raises:
            CatalogTransientFailure: Timeout, transport error, non-2xx status,
                                     or an unparseable body.
        """
        assert self._client is not None, "Client not initialized. Use 'async with'."

        try:
            response = await self._client.get(
                f"{self._base_url}/cards",
                params={"q": query, "pageSize": page_size},
                headers=self._headers(),
                timeout=timeout,
            )
            response.raise_for_status()
            payload = CardListResponse.model_validate(response.json())
        except httpx.TimeoutException as e:
            raise CatalogTransientFailure(query, f"timed out after {timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise CatalogTransientFailure(
                query, f"status {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise CatalogTransientFailure(query, f"request error: {e}") from e
        except (json.JSONDecodeError, ValidationError) as e:
            raise CatalogTransientFailure(query, f"malformed response: {e}") from e

        return payload.data

    async def search_candidates(
        self,
        name: str,
        set_name: str | None,
        *,
        page_size: int | None = None,
        timeout: float | None = None,
    ) -> list[CatalogRecord]:
        """
        Run the query strategies in order and return the first non-empty
        candidate list.

        Args:
            name: Card name to search.
            set_name: Set name to narrow the first strategy.
            page_size: Result cap per query (default: price page size).
            timeout: Per-request timeout in seconds (default: price timeout).

        Returns:
            Candidates from the first productive query, or [] when every
            strategy came back empty or failed.
        """
        size = page_size or self._price_page_size
        limit = timeout or self._price_timeout

        for strategy, query in enumerate(build_search_queries(name, set_name), start=1):
            try:
                records = await self._query(query, size, limit)
            except CatalogTransientFailure as e:
                logger.warning(
                    "catalog_query_failed",
                    query=query,
                    strategy=strategy,
                    reason=e.reason,
                    source="pokemontcg",
                )
                continue

            logger.info(
                "catalog_query_complete",
                query=query,
                strategy=strategy,
                result_count=len(records),
                source="pokemontcg",
            )
            if records:
                return records

        logger.info(
            "catalog_search_exhausted",
            card_name=name,
            set_name=set_name,
            source="pokemontcg",
        )
        return []

    async def search(self, name: str, set_name: str | None) -> CatalogRecord | None:
        """
        Find the single best catalog record for a card identity.

        Returns:
            Best-matching CatalogRecord, or None when no query found anything.
        """
        candidates = await self.search_candidates(name, set_name)
        if not candidates:
            return None
        return find_best_match(candidates, name, set_name or "")

    async def find_image(self, name: str, set_name: str | None) -> str | None:
        """
        Image-only lookup: official artwork URL for a card, if any.

        Uses the shorter image timeout and a smaller page size.
        """
        candidates = await self.search_candidates(
            name,
            set_name,
            page_size=self._image_page_size,
            timeout=self._image_timeout,
        )
        if not candidates:
            return None
        return find_best_match(candidates, name, set_name or "").image_url
