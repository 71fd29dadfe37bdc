"""
PokePort — Application Entrypoint

Configures structlog, builds the scan pipeline and its collaborators once
per process, and serves the HTTP API.

Run via:
    uvicorn pokeport.main:app
"""

from __future__ import annotations

import logging
import random
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI

from pokeport import __version__
from pokeport.api import health_router, market_router, scan_router
from pokeport.config import settings
from pokeport.db.database import create_db_engine
from pokeport.models.base import Base
from pokeport.pipeline.catalog import PokemonTCGClient
from pokeport.pipeline.orchestrator import CardScanPipeline
from pokeport.recognition.condition import ConditionAssessor
from pokeport.recognition.vision import CardRecognizer


# ---------------------------------------------------------------------------
# Structlog Configuration
# ---------------------------------------------------------------------------


def configure_logging(log_level: str = "INFO", json_logs: bool = True) -> None:
    """
    Set up structured logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        json_logs: JSON output when True, human-readable console output otherwise.
    """
    # Configure stdlib logging first (for third-party libraries)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Application Startup
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Build long-lived collaborators and tear them down on shutdown.

    Execution order:
    1. Configure logging
    2. Open the shared catalog HTTP client
    3. Build recognizer, assessor and pipeline
    4. Create the database engine when snapshot storage is enabled
    """
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)
    logger = structlog.get_logger(__name__)
    logger.info("pokeport_startup_begin", version=__version__)

    if not settings.ANTHROPIC_API_KEY:
        logger.warning("config_anthropic_api_key_missing", note="scans will fail recognition")
    if not settings.POKEMONTCG_API_KEY:
        logger.warning("config_pokemontcg_api_key_missing", note="using anonymous rate limits")

    http_client = httpx.AsyncClient()
    catalog = PokemonTCGClient(http_client=http_client)

    app.state.rng = random.Random()
    app.state.pipeline = CardScanPipeline(CardRecognizer(), catalog, rng=app.state.rng)
    app.state.assessor = ConditionAssessor()
    app.state.session_factory = None

    engine = None
    if settings.ENABLE_SNAPSHOT_STORAGE:
        engine, app.state.session_factory = create_db_engine()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    logger.info(
        "pokeport_startup_complete",
        snapshot_storage_enabled=settings.ENABLE_SNAPSHOT_STORAGE,
        image_lookup_fallback=settings.ENABLE_IMAGE_LOOKUP_FALLBACK,
    )

    try:
        yield
    finally:
        await http_client.aclose()
        if engine is not None:
            await engine.dispose()
        logger.info("pokeport_shutdown_complete")


app = FastAPI(
    title="PokePort",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(market_router)
app.include_router(scan_router)
