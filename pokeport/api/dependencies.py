"""
Shared FastAPI dependencies.

Collaborators are built once in the application lifespan and stored on
app.state; tests replace them through app.dependency_overrides.
"""

from __future__ import annotations

import random
from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from pokeport.config import settings
from pokeport.pipeline.orchestrator import CardScanPipeline
from pokeport.recognition.condition import ConditionAssessor


def get_pipeline(request: Request) -> CardScanPipeline:
    return request.app.state.pipeline


def get_assessor(request: Request) -> ConditionAssessor:
    return request.app.state.assessor


def get_rng(request: Request) -> random.Random:
    return request.app.state.rng


async def get_snapshot_session(request: Request) -> AsyncGenerator[AsyncSession | None, None]:
    """
    Session from the lifespan's session factory.

    Yields None when snapshot storage is disabled or no database was set up.
    """
    session_factory = getattr(request.app.state, "session_factory", None)
    if not settings.ENABLE_SNAPSHOT_STORAGE or session_factory is None:
        yield None
        return

    async with session_factory() as session:
        yield session
