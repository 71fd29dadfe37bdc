"""
PokePort — Shared pytest Fixtures & Configuration

Provides common fixtures for all test modules:
- Pinned random sources
- Mock Anthropic client returning a canned reply
- pokemontcg.io card payload builders
- In-memory database session (aiosqlite)
"""

from __future__ import annotations

import json
from typing import Any, AsyncGenerator, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from pokeport.models.base import Base


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

pytest_plugins = ("pytest_asyncio",)


# ---------------------------------------------------------------------------
# Random sources
# ---------------------------------------------------------------------------


class FixedRandom:
    """Random source whose random() always returns the same value."""

    def __init__(self, value: float = 0.5) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture
def fixed_rng() -> FixedRandom:
    return FixedRandom(0.5)


# ---------------------------------------------------------------------------
# Anthropic mock
# ---------------------------------------------------------------------------


def make_vision_client(reply: str | dict[str, Any]) -> AsyncMock:
    """AsyncAnthropic stand-in whose messages.create returns `reply` as text."""
    text = reply if isinstance(reply, str) else json.dumps(reply)

    mock_message = MagicMock()
    mock_message.content = [MagicMock(text=text)]

    mock_client = AsyncMock()
    mock_client.messages.create = AsyncMock(return_value=mock_message)
    return mock_client


@pytest.fixture
def vision_client_factory() -> Callable[[str | dict[str, Any]], AsyncMock]:
    return make_vision_client


@pytest.fixture
def charizard_reply() -> dict[str, Any]:
    return {
        "name": "Charizard",
        "set": "Base Set",
        "cardNumber": "4/102",
        "condition": "Near Mint",
        "confidence": 0.9,
        "rarity": "Rare Holo",
        "type": "Fire",
    }


# ---------------------------------------------------------------------------
# pokemontcg.io payloads
# ---------------------------------------------------------------------------


def make_card(
    name: str = "Charizard",
    set_name: str = "Base",
    card_id: str = "base1-4",
    prices: dict[str, dict[str, float]] | None = None,
    images: dict[str, str] | None = None,
) -> dict[str, Any]:
    """One card record in pokemontcg.io's JSON shape."""
    card: dict[str, Any] = {
        "id": card_id,
        "name": name,
        "number": card_id.split("-")[-1],
        "set": {"id": card_id.split("-")[0], "name": set_name},
    }
    if prices is not None:
        card["tcgplayer"] = {"url": f"https://prices.pokemontcg.io/tcgplayer/{card_id}", "prices": prices}
    if images is not None:
        card["images"] = images
    return card


def card_list(*cards: dict[str, Any]) -> dict[str, Any]:
    return {
        "data": list(cards),
        "page": 1,
        "pageSize": 15,
        "count": len(cards),
        "totalCount": len(cards),
    }


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Async database session using aiosqlite in-memory.

    Creates a fresh database for each test, ensuring isolation.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def card_payload() -> Callable[..., dict[str, Any]]:
    return make_card


@pytest.fixture
def search_payload() -> Callable[..., dict[str, Any]]:
    return card_list


@pytest.fixture
def rng_factory() -> Callable[[float], FixedRandom]:
    return FixedRandom
