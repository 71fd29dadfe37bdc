"""
Tests for the pokemontcg.io catalog search client (pokeport/pipeline/catalog.py).

Covers:
- Query strategy construction and ordering
- Stop at first non-empty result (call-count assertions)
- Transient failures (5xx, timeout, malformed body) advance to the next query
- Page size, timeout and headers per request
- find_image and search convenience wrappers
"""

from __future__ import annotations

import httpx
import pytest
import respx

from pokeport.config import settings
from pokeport.pipeline.catalog import (
    CatalogRecord,
    PokemonTCGClient,
    build_search_queries,
)

BASE_URL = settings.POKEMONTCG_BASE_URL


def _queries(route: respx.Route) -> list[str]:
    return [call.request.url.params["q"] for call in route.calls]


class TestBuildSearchQueries:
    def test_three_strategies_in_order(self) -> None:
        assert build_search_queries("Charizard", "Base Set") == [
            'name:"Charizard" set.name:"Base Set"',
            'name:"Charizard"',
            "Charizard",
        ]

    def test_punctuation_stripped_in_last_strategy(self) -> None:
        queries = build_search_queries("Farfetch'd", "Base Set")
        assert queries[-1] == "Farfetchd"

    def test_hyphen_stripped(self) -> None:
        assert build_search_queries("Chien-Pao ex", "")[-1] == "ChienPao ex"

    @pytest.mark.parametrize("set_name", ["", None, "Unknown Set", "unknown"])
    def test_unknown_set_skips_first_strategy(self, set_name: str | None) -> None:
        assert build_search_queries("Pikachu", set_name) == ['name:"Pikachu"', "Pikachu"]

    def test_quotes_removed_from_values(self) -> None:
        assert build_search_queries('Pika"chu', "Jungle")[0] == 'name:"Pikachu" set.name:"Jungle"'


class TestSearchCandidates:
    @pytest.mark.asyncio
    async def test_all_empty_tries_three_queries_in_order(self, search_payload) -> None:
        with respx.mock(base_url=BASE_URL) as mock:
            route = mock.get("/cards").mock(
                return_value=httpx.Response(200, json=search_payload())
            )

            async with PokemonTCGClient(api_key="test-key") as client:
                result = await client.search_candidates("Charizard", "Base Set")

        assert result == []
        assert route.call_count == 3
        assert _queries(route) == build_search_queries("Charizard", "Base Set")

    @pytest.mark.asyncio
    async def test_stops_at_first_non_empty(self, card_payload, search_payload) -> None:
        with respx.mock(base_url=BASE_URL) as mock:
            route = mock.get("/cards").mock(
                return_value=httpx.Response(200, json=search_payload(card_payload()))
            )

            async with PokemonTCGClient() as client:
                result = await client.search_candidates("Charizard", "Base Set")

        assert route.call_count == 1
        assert len(result) == 1
        assert isinstance(result[0], CatalogRecord)
        assert result[0].name == "Charizard"

    @pytest.mark.asyncio
    async def test_second_query_recovers(self, card_payload, search_payload) -> None:
        with respx.mock(base_url=BASE_URL) as mock:
            route = mock.get("/cards").mock(
                side_effect=[
                    httpx.Response(200, json=search_payload()),
                    httpx.Response(200, json=search_payload(card_payload(), card_payload(card_id="base4-4"))),
                ]
            )

            async with PokemonTCGClient() as client:
                result = await client.search_candidates("Charizard", "Base Sett")

        assert route.call_count == 2
        assert _queries(route)[1] == 'name:"Charizard"'
        assert [r.id for r in result] == ["base1-4", "base4-4"]

    @pytest.mark.asyncio
    async def test_transient_failures_advance(self, card_payload, search_payload) -> None:
        """5xx and timeouts are not retried; the next strategy runs instead."""
        with respx.mock(base_url=BASE_URL) as mock:
            route = mock.get("/cards").mock(
                side_effect=[
                    httpx.Response(503, json={"error": "unavailable"}),
                    httpx.ReadTimeout("timed out"),
                    httpx.Response(200, json=search_payload(card_payload())),
                ]
            )

            async with PokemonTCGClient() as client:
                result = await client.search_candidates("Charizard", "Base Set")

        assert route.call_count == 3
        assert len(result) == 1

    @pytest.mark.asyncio
    async def test_malformed_body_advances(self, card_payload, search_payload) -> None:
        with respx.mock(base_url=BASE_URL) as mock:
            route = mock.get("/cards").mock(
                side_effect=[
                    httpx.Response(200, text="<html>gateway</html>"),
                    httpx.Response(200, json={"data": "not-a-list"}),
                    httpx.Response(200, json=search_payload(card_payload())),
                ]
            )

            async with PokemonTCGClient() as client:
                result = await client.search_candidates("Charizard", "Base Set")

        assert route.call_count == 3
        assert len(result) == 1

    @pytest.mark.asyncio
    async def test_all_failures_return_empty(self) -> None:
        with respx.mock(base_url=BASE_URL) as mock:
            route = mock.get("/cards").mock(side_effect=httpx.ConnectError("refused"))

            async with PokemonTCGClient() as client:
                result = await client.search_candidates("Charizard", "Base Set")

        assert result == []
        assert route.call_count == 3

    @pytest.mark.asyncio
    async def test_request_parameters(self, search_payload) -> None:
        with respx.mock(base_url=BASE_URL) as mock:
            route = mock.get("/cards").mock(
                return_value=httpx.Response(200, json=search_payload())
            )

            async with PokemonTCGClient(api_key="test-key") as client:
                await client.search_candidates("Charizard", "Base Set")

        request = route.calls[0].request
        assert request.url.params["pageSize"] == str(settings.CATALOG_PRICE_PAGE_SIZE)
        assert request.headers["X-Api-Key"] == "test-key"
        assert request.headers["Accept"] == "application/json"
        assert request.extensions["timeout"]["read"] == settings.CATALOG_PRICE_TIMEOUT_SECONDS

    @pytest.mark.asyncio
    async def test_shared_http_client_not_closed(self, search_payload) -> None:
        with respx.mock(base_url=BASE_URL) as mock:
            mock.get("/cards").mock(return_value=httpx.Response(200, json=search_payload()))

            async with httpx.AsyncClient() as http_client:
                async with PokemonTCGClient(http_client=http_client) as client:
                    await client.search_candidates("Pikachu", "Jungle")

                assert not http_client.is_closed


class TestSearchAndFindImage:
    @pytest.mark.asyncio
    async def test_search_returns_best_match(self, card_payload, search_payload) -> None:
        payload = search_payload(
            card_payload(name="Charizard", set_name="Base Set 2", card_id="base4-4"),
            card_payload(name="Charizard", set_name="Base", card_id="base1-4"),
        )
        with respx.mock(base_url=BASE_URL) as mock:
            mock.get("/cards").mock(return_value=httpx.Response(200, json=payload))

            async with PokemonTCGClient() as client:
                record = await client.search("Charizard", "Base Set 2")

        assert record is not None
        assert record.id == "base4-4"

    @pytest.mark.asyncio
    async def test_search_none_when_exhausted(self, search_payload) -> None:
        with respx.mock(base_url=BASE_URL) as mock:
            mock.get("/cards").mock(return_value=httpx.Response(200, json=search_payload()))

            async with PokemonTCGClient() as client:
                assert await client.search("Missingno", "Glitch") is None

    @pytest.mark.asyncio
    async def test_find_image_uses_image_limits(self, card_payload, search_payload) -> None:
        payload = search_payload(
            card_payload(images={"small": "https://img/small.png", "large": "https://img/large.png"})
        )
        with respx.mock(base_url=BASE_URL) as mock:
            route = mock.get("/cards").mock(return_value=httpx.Response(200, json=payload))

            async with PokemonTCGClient() as client:
                image = await client.find_image("Charizard", "Base")

        assert image == "https://img/small.png"
        request = route.calls[0].request
        assert request.url.params["pageSize"] == str(settings.CATALOG_IMAGE_PAGE_SIZE)
        assert request.extensions["timeout"]["read"] == settings.CATALOG_IMAGE_TIMEOUT_SECONDS

    @pytest.mark.asyncio
    async def test_find_image_large_fallback(self, card_payload, search_payload) -> None:
        payload = search_payload(card_payload(images={"large": "https://img/large.png"}))
        with respx.mock(base_url=BASE_URL) as mock:
            mock.get("/cards").mock(return_value=httpx.Response(200, json=payload))

            async with PokemonTCGClient() as client:
                assert await client.find_image("Charizard", "Base") == "https://img/large.png"
