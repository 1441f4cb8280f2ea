"""Tests for the division standings table."""

from __future__ import annotations

import unittest

from boneclub.core.constants import MATCH_COMPLETED, MATCH_SCHEDULED, MATCH_UNARRANGED
from boneclub.league.standings import build_row, compute_standings, open_fixtures


def participant(user_id: str, name: str) -> dict:
    return {"id": f"p_{user_id}", "user_id": user_id, "username": name}


def completed(p1: str, p2: str, s1: int, s2: int) -> dict:
    winner = p1 if s1 > s2 else p2 if s2 > s1 else None
    return {
        "player_1_id": p1,
        "player_2_id": p2,
        "player_1_score": s1,
        "player_2_score": s2,
        "winner_id": winner,
        "status": MATCH_COMPLETED,
    }


class StandingsTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.alice = participant("alice", "Alice")
        self.bob = participant("bob", "Bob")
        self.carol = participant("carol", "Carol")
        self.matches = [
            completed("alice", "bob", 5, 2),
            completed("bob", "carol", 5, 1),
            {
                "player_1_id": "alice",
                "player_2_id": "carol",
                "status": MATCH_UNARRANGED,
                "winner_id": None,
            },
        ]

    def test_three_player_division(self) -> None:
        rows = compute_standings([self.alice, self.bob, self.carol], self.matches)

        self.assertEqual([r["username"] for r in rows], ["Alice", "Bob", "Carol"])
        alice, bob, carol = rows
        self.assertEqual(
            (alice["matchesPlayed"], alice["wins"], alice["points"], alice["pointsDifference"]),
            (1, 1, 3, 3),
        )
        # Bob scored 2 + 5 and conceded 5 + 1.
        self.assertEqual(
            (bob["matchesPlayed"], bob["wins"], bob["losses"], bob["points"]),
            (2, 1, 1, 3),
        )
        self.assertEqual(bob["pointsDifference"], 1)
        self.assertEqual(
            (carol["matchesPlayed"], carol["losses"], carol["points"], carol["pointsDifference"]),
            (1, 1, 0, -4),
        )

    def test_repeated_calls_give_identical_tables(self) -> None:
        participants = [self.carol, self.alice, self.bob]
        first = compute_standings(participants, self.matches)
        second = compute_standings(participants, self.matches)
        self.assertEqual(first, second)

    def test_points_law(self) -> None:
        matches = self.matches + [completed("alice", "carol", 3, 3)]
        for row in compute_standings([self.alice, self.bob, self.carol], matches):
            self.assertEqual(row["points"], row["wins"] * 3 + row["draws"])
            self.assertEqual(
                row["losses"], row["matchesPlayed"] - row["wins"] - row["draws"]
            )
            self.assertGreaterEqual(row["losses"], 0)

    def test_more_points_always_ranks_higher(self) -> None:
        # Carol wins narrowly once; Alice loses heavily but still has fewer points.
        matches = [completed("carol", "alice", 1, 0), completed("bob", "alice", 9, 0)]
        rows = compute_standings([self.alice, self.carol], matches)
        self.assertEqual(rows[0]["user_id"], "carol")

    def test_points_difference_breaks_ties(self) -> None:
        matches = [completed("alice", "carol", 7, 0), completed("bob", "carol", 7, 6)]
        rows = compute_standings([self.bob, self.alice], matches)
        self.assertEqual([r["user_id"] for r in rows], ["alice", "bob"])

    def test_points_for_breaks_remaining_ties(self) -> None:
        matches = [completed("alice", "carol", 9, 7), completed("bob", "carol", 4, 2)]
        rows = compute_standings([self.bob, self.alice], matches)
        self.assertEqual([r["user_id"] for r in rows], ["alice", "bob"])

    def test_full_ties_keep_participant_order(self) -> None:
        rows = compute_standings([self.carol, self.bob, self.alice], [])
        self.assertEqual([r["user_id"] for r in rows], ["carol", "bob", "alice"])

    def test_draw_counts_for_both_players(self) -> None:
        row = build_row(self.alice, [completed("alice", "bob", 3, 3)])
        self.assertEqual((row["draws"], row["points"], row["losses"]), (1, 1, 0))

    def test_row_keeps_participant_fields(self) -> None:
        row = build_row(self.alice, [])
        self.assertEqual(row["id"], "p_alice")
        self.assertEqual(row["matchesPlayed"], 0)

    def test_open_fixtures_exclude_completed(self) -> None:
        scheduled = {"id": "m4", "status": MATCH_SCHEDULED, "created_date": "2025-01-02T00:00:00Z"}
        unarranged = {"id": "m3", "status": MATCH_UNARRANGED, "created_date": "2025-01-01T00:00:00Z"}
        fixtures = open_fixtures(self.matches[:2] + [scheduled, unarranged])
        self.assertEqual([m["id"] for m in fixtures], ["m3", "m4"])


if __name__ == "__main__":
    unittest.main()
