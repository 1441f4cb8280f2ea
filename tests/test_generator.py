"""Tests for division seeding and fixture generation."""

from __future__ import annotations

import itertools
import unittest

from boneclub.core.constants import FORMAT_DOUBLE_ROUND_ROBIN, MATCH_UNARRANGED
from boneclub.league.generator import DivisionGenerator, FixtureGenerator


def players(count: int) -> list[dict]:
    return [
        {"user_id": f"u{i}", "username": f"Player {i}", "rating": 1000 + i}
        for i in range(1, count + 1)
    ]


class DivisionGeneratorTestCase(unittest.TestCase):
    def test_division_count(self) -> None:
        self.assertEqual(DivisionGenerator.division_count(4, 2), 2)
        self.assertEqual(DivisionGenerator.division_count(5, 2), 3)
        self.assertEqual(DivisionGenerator.division_count(3, 4), 1)

    def test_missing_rating_uses_default(self) -> None:
        seeded = DivisionGenerator.seed([{"user_id": "a"}, {"user_id": "b", "rating": 1600}])
        self.assertEqual([p["user_id"] for p in seeded], ["b", "a"])

    def test_snake_draft(self) -> None:
        groups = DivisionGenerator.snake_draft(players(6), 2)
        ids = [[p["user_id"] for p in group] for group in groups]
        self.assertEqual(ids, [["u6", "u1"], ["u5", "u2"], ["u4", "u3"]])

    def test_every_participant_placed_once(self) -> None:
        groups = DivisionGenerator.snake_draft(players(7), 3)
        placed = [p["user_id"] for group in groups for p in group]
        self.assertEqual(sorted(placed), sorted(p["user_id"] for p in players(7)))


class FixtureGeneratorTestCase(unittest.TestCase):
    def test_round_robin_pairs_everyone_once(self) -> None:
        for count in (2, 3, 4, 5, 6):
            with self.subTest(count=count):
                ids = [f"u{i}" for i in range(count)]
                pairings = FixtureGenerator.generate_round_robin(ids)
                expected = {frozenset(pair) for pair in itertools.combinations(ids, 2)}
                self.assertEqual(len(pairings), len(expected))
                self.assertEqual({frozenset(pair) for pair in pairings}, expected)

    def test_too_few_players(self) -> None:
        self.assertEqual(FixtureGenerator.generate_round_robin(["u1"]), [])

    def test_build_division_matches(self) -> None:
        league = {"id": "l1", "format": "round_robin"}
        matches = FixtureGenerator.build_division_matches(league, "d1", players(3))
        self.assertEqual(len(matches), 3)
        for match in matches:
            self.assertEqual(match["status"], MATCH_UNARRANGED)
            self.assertEqual(match["division_id"], "d1")
            self.assertIsNone(match["winner_id"])

    def test_second_leg_swaps_players(self) -> None:
        league = {"id": "l1", "format": FORMAT_DOUBLE_ROUND_ROBIN}
        first, second = FixtureGenerator.build_division_matches(league, "d1", players(2))
        self.assertEqual((first["leg"], second["leg"]), (1, 2))
        self.assertEqual(first["player_1_id"], second["player_2_id"])
        self.assertEqual(first["player_2_username"], second["player_1_username"])


if __name__ == "__main__":
    unittest.main()
