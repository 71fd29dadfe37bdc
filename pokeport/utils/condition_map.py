"""
PokePort — Condition Mapping Layer

Translates the free-text condition reported by the vision model (or typed
by a user) into a fixed grade and a price multiplier relative to Mint.

Vision replies are not consistent: "Near Mint", "NM", "near-mint" and
"NearMint" all show up, and TCGPlayer-style grades ("Lightly Played") are
mixed with the older scale ("Excellent"). Both scales fold into the same
six grades here.

Rule: an unparseable condition is never an error. It prices at the
default multiplier (0.70).
"""

from __future__ import annotations

import re
from decimal import Decimal
from enum import Enum

import structlog

from pokeport.config import settings

logger = structlog.get_logger(__name__)


class CardCondition(str, Enum):
    """
    Condition grades, best to worst.

    Enum values are the display labels returned to clients.
    """
    MINT = "Mint"
    NEAR_MINT = "Near Mint"
    EXCELLENT = "Excellent"          # aka Lightly Played
    GOOD = "Good"                    # aka Moderately Played
    FAIR = "Fair"                    # aka Heavily Played
    POOR = "Poor"                    # aka Damaged


# ---------------------------------------------------------------------------
# Multiplier table (fraction of Mint value)
# ---------------------------------------------------------------------------

CONDITION_MULTIPLIERS: dict[CardCondition, Decimal] = {
    CardCondition.MINT: Decimal("1.00"),
    CardCondition.NEAR_MINT: Decimal("0.85"),
    CardCondition.EXCELLENT: Decimal("0.70"),
    CardCondition.GOOD: Decimal("0.50"),
    CardCondition.FAIR: Decimal("0.30"),
    CardCondition.POOR: Decimal("0.15"),
}

# Platform shorthand codes, matched against the whole normalized string
_CODES: dict[str, CardCondition] = {
    "m": CardCondition.MINT,
    "mt": CardCondition.MINT,
    "nm": CardCondition.NEAR_MINT,
    "ex": CardCondition.EXCELLENT,
    "exc": CardCondition.EXCELLENT,
    "lp": CardCondition.EXCELLENT,
    "gd": CardCondition.GOOD,
    "mp": CardCondition.GOOD,
    "hp": CardCondition.FAIR,
    "pl": CardCondition.FAIR,
    "po": CardCondition.POOR,
    "dmg": CardCondition.POOR,
}

# Substring keywords, checked in order. "nearmint" must precede "mint".
_KEYWORDS: tuple[tuple[str, CardCondition], ...] = (
    ("nearmint", CardCondition.NEAR_MINT),
    ("mint", CardCondition.MINT),
    ("excellent", CardCondition.EXCELLENT),
    ("lightlyplayed", CardCondition.EXCELLENT),
    ("moderatelyplayed", CardCondition.GOOD),
    ("good", CardCondition.GOOD),
    ("heavilyplayed", CardCondition.FAIR),
    ("fair", CardCondition.FAIR),
    ("damaged", CardCondition.POOR),
    ("poor", CardCondition.POOR),
)

_NON_ALPHA = re.compile(r"[^a-z]")


def parse_condition(raw: str | None) -> CardCondition | None:
    """
    Parse a free-text condition into a CardCondition.

    Args:
        raw: Condition as reported, e.g. "Near Mint", "NM", "Lightly Played".

    Returns:
        The matching grade, or None when nothing matches.
    """
    if not raw:
        return None

    normalized = _NON_ALPHA.sub("", raw.lower())
    if normalized in _CODES:
        return _CODES[normalized]

    for keyword, grade in _KEYWORDS:
        if keyword in normalized:
            return grade
    return None


def condition_multiplier(raw: str | CardCondition | None) -> Decimal:
    """
    Price multiplier for a condition, relative to Mint.

    Args:
        raw: A CardCondition or any free-text condition string.

    Returns:
        Multiplier from the table, or DEFAULT_CONDITION_MULTIPLIER when the
        condition cannot be parsed.
    """
    grade = raw if isinstance(raw, CardCondition) else parse_condition(raw)

    if grade is None:
        logger.debug(
            "condition_unrecognized",
            raw_condition=raw,
            multiplier=str(settings.DEFAULT_CONDITION_MULTIPLIER),
        )
        return settings.DEFAULT_CONDITION_MULTIPLIER

    return CONDITION_MULTIPLIERS[grade]
