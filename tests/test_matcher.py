"""
Candidate Matcher Tests

Rule order: exact name + set → exact name → partial name + set →
partial name → first candidate.
"""

from __future__ import annotations

import pytest

from pokeport.engine.matcher import find_best_match
from pokeport.pipeline.catalog import CatalogRecord


def _record(card_id: str, name: str, set_name: str) -> CatalogRecord:
    return CatalogRecord.model_validate(
        {"id": card_id, "name": name, "set": {"id": card_id.split("-")[0], "name": set_name}}
    )


class TestFindBestMatch:
    def test_exact_name_and_set_beats_substring(self) -> None:
        candidates = [
            _record("sv3pt5-6", "Charizard ex", "151"),
            _record("base4-4", "Charizard", "Base Set 2"),
            _record("base1-4", "Charizard", "Base Set"),
        ]

        # "Base Set 2" also contains "base set": first in order wins
        assert find_best_match(candidates, "Charizard", "Base Set").id == "base4-4"

    def test_exact_name_and_set_preferred_over_partial_match_first_in_list(self) -> None:
        candidates = [
            _record("sv3pt5-6", "Charizard ex", "Obsidian Flames"),
            _record("sv3-125", "Charizard", "Obsidian Flames"),
        ]

        assert find_best_match(candidates, "charizard", "obsidian flames").id == "sv3-125"

    def test_exact_name_ignores_set_when_no_set_hit(self) -> None:
        candidates = [
            _record("sv2-1", "Pikachu ex", "Paldea Evolved"),
            _record("base1-58", "Pikachu", "Base"),
        ]

        assert find_best_match(candidates, "Pikachu", "Jungle").id == "base1-58"

    def test_partial_name_with_set(self) -> None:
        candidates = [
            _record("swsh4-44", "Pikachu V", "Vivid Voltage"),
            _record("sv2-63", "Pikachu ex", "Paldea Evolved"),
        ]

        assert find_best_match(candidates, "Pikachu", "Paldea").id == "sv2-63"

    def test_partial_name_without_set(self) -> None:
        candidates = [
            _record("sv1-1", "Pineco", "Scarlet & Violet"),
            _record("swsh4-44", "Pikachu V", "Vivid Voltage"),
        ]

        assert find_best_match(candidates, "Pikachu", "").id == "swsh4-44"

    def test_partial_name_and_set_skipped_for_empty_set(self) -> None:
        """With no target set, rule 3 collapses into rule 4: first partial match wins."""
        candidates = [
            _record("a-1", "Dark Charizard", "Team Rocket"),
            _record("b-2", "Charizard GX", "Hidden Fates"),
        ]

        assert find_best_match(candidates, "Charizard", "").id == "a-1"

    def test_fallback_to_first_candidate(self) -> None:
        candidates = [
            _record("sv1-1", "Pineco", "Scarlet & Violet"),
            _record("sv1-2", "Forretress ex", "Scarlet & Violet"),
        ]

        assert find_best_match(candidates, "Mewtwo", "Base").id == "sv1-1"

    def test_case_insensitive(self) -> None:
        candidates = [
            _record("x-1", "Other", "Jungle"),
            _record("base2-60", "PIKACHU", "JUNGLE"),
        ]

        assert find_best_match(candidates, "pikachu", "jungle").id == "base2-60"

    def test_empty_candidates_raises(self) -> None:
        with pytest.raises(ValueError):
            find_best_match([], "Charizard", "Base Set")
