"""
PokePort — Scan pipeline error taxonomy.

Only InputError and RecognitionFailure ever reach the caller. Catalog
problems are absorbed inside the catalog client, and missing price data
degrades to synthetic pricing instead of raising.
"""

from __future__ import annotations


class PokePortError(Exception):
    """Base class for all PokePort errors."""


class InputError(PokePortError):
    """No usable image bytes were handed to the pipeline."""


class RecognitionFailure(PokePortError):
    """The vision model could not produce a trustworthy card identity."""

    def __init__(self, reason: str = "could not identify card clearly") -> None:
        super().__init__(reason)
        self.reason = reason


class CatalogTransientFailure(PokePortError):
    """A single catalog query timed out, failed, or returned garbage."""

    def __init__(self, query: str, reason: str) -> None:
        super().__init__(f"catalog query {query!r} failed: {reason}")
        self.query = query
        self.reason = reason


class PriceResolutionFailure(PokePortError):
    """
    Declared for the scan result contract.

    The orchestrator never raises it: an unpriceable card falls back to
    synthetic pricing.
    """
