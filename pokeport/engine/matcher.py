"""
PokePort — Candidate Matcher

Picks one catalog record out of a search result. Rules are tried in order
(case-insensitive); the first rule with a hit wins:

  1. name equals target AND set name contains target set
  2. name equals target
  3. name contains target AND set name contains target set (target set non-empty)
  4. name contains target
  5. first candidate

Rule 5 guarantees a result for any non-empty list. A poor match from rule 5
is accepted imprecision.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Sequence

import structlog

if TYPE_CHECKING:
    from pokeport.pipeline.catalog import CatalogRecord

logger = structlog.get_logger(__name__)


def find_best_match(
    candidates: Sequence[CatalogRecord],
    target_name: str,
    target_set: str,
) -> CatalogRecord:
    """
    Select the best-matching record.

    Args:
        candidates: Non-empty search result, in upstream order.
        target_name: Recognized card name.
        target_set: Recognized set name (may be empty).

    Returns:
        The chosen CatalogRecord.

    Raises:
        ValueError: If candidates is empty.
    """
    if not candidates:
        raise ValueError("find_best_match requires at least one candidate")

    name = target_name.lower()
    set_name = (target_set or "").lower()

    def name_eq(card: CatalogRecord) -> bool:
        return card.name.lower() == name

    def name_in(card: CatalogRecord) -> bool:
        return name in card.name.lower()

    def set_in(card: CatalogRecord) -> bool:
        return set_name in card.set_name.lower()

    rules: list[tuple[str, Callable[[CatalogRecord], bool]]] = [
        ("exact_name_and_set", lambda c: name_eq(c) and set_in(c)),
        ("exact_name", name_eq),
    ]
    if set_name:
        rules.append(("partial_name_and_set", lambda c: name_in(c) and set_in(c)))
    rules.append(("partial_name", name_in))

    for rule, predicate in rules:
        for card in candidates:
            if predicate(card):
                logger.debug(
                    "catalog_match_selected",
                    rule=rule,
                    card_id=card.id,
                    card_name=card.name,
                    set_name=card.set_name,
                )
                return card

    logger.debug(
        "catalog_match_fallback",
        target_name=target_name,
        target_set=target_set,
        card_id=candidates[0].id,
    )
    return candidates[0]
