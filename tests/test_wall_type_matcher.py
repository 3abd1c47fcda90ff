"""Unit tests for wall type matching and tie-breaking."""

from unittest.mock import Mock

import pytest

from cadwalls.classification.wall_type_matcher import WallTypeMatcher, find_candidate_wall_types
from cadwalls.core.errors import EmptyCatalogError
from conftest import make_entry


class TestFindCandidates:
    def test_single_closest(self):
        catalog = [make_entry("A", 200), make_entry("B", 300)]
        min_diff, candidates = find_candidate_wall_types(210, catalog)
        assert min_diff == pytest.approx(10)
        assert [c.name for c in candidates] == ["A"]

    def test_equal_differences_sorted_by_name(self):
        catalog = [make_entry("Zeta", 210), make_entry("Alpha", 190)]
        min_diff, candidates = find_candidate_wall_types(200, catalog)
        assert min_diff == pytest.approx(10)
        assert [c.name for c in candidates] == ["Alpha", "Zeta"]

    def test_differences_within_tolerance(self):
        catalog = [make_entry("A", 200.0004), make_entry("B", 199.9998)]
        _, candidates = find_candidate_wall_types(200, catalog)
        assert len(candidates) == 2

    def test_empty_catalog(self):
        min_diff, candidates = find_candidate_wall_types(200, [])
        assert candidates == []


class TestWallTypeMatcher:
    def test_exact_match_needs_no_prompt(self):
        tie_breaker = Mock()
        matcher = WallTypeMatcher([make_entry("A", 200), make_entry("B", 300)], tie_breaker)

        match = matcher.match(200)

        assert match.entry.name == "A"
        assert match.cancelled is False
        assert match.prompted is False
        tie_breaker.assert_not_called()

    def test_genuine_tie_asks_tie_breaker(self):
        a, b = make_entry("A", 190), make_entry("B", 210)
        tie_breaker = Mock(return_value=b)
        matcher = WallTypeMatcher([a, b], tie_breaker)

        match = matcher.match(200, pair_index=4)

        tie_breaker.assert_called_once_with(4, 200, [a, b])
        assert match.entry == b
        assert match.prompted is True
        assert match.min_difference == pytest.approx(10)

    def test_cancelled_tie(self):
        matcher = WallTypeMatcher([make_entry("A", 190), make_entry("B", 210)], Mock(return_value=None))

        match = matcher.match(200)

        assert match.cancelled is True
        assert match.entry is None
        assert len(match.candidates) == 2

    def test_tie_without_tie_breaker_picks_first_by_name(self):
        matcher = WallTypeMatcher([make_entry("B", 210), make_entry("A", 190)])
        assert matcher.match(200).entry.name == "A"

    def test_more_than_two_candidates_picks_first_by_name(self):
        tie_breaker = Mock()
        catalog = [make_entry("C", 190), make_entry("B", 210), make_entry("A", 190)]
        matcher = WallTypeMatcher(catalog, tie_breaker)

        match = matcher.match(200)

        assert match.entry.name == "A"
        assert len(match.candidates) == 3
        tie_breaker.assert_not_called()

    def test_choice_independent_of_catalog_order(self):
        catalog = [make_entry("C", 190), make_entry("B", 210), make_entry("A", 190)]
        forward = WallTypeMatcher(catalog).match(200).entry.name
        backward = WallTypeMatcher(list(reversed(catalog))).match(200).entry.name
        assert forward == backward == "A"

    def test_empty_catalog_rejected(self):
        with pytest.raises(EmptyCatalogError):
            WallTypeMatcher([])
