"""Tests for league, match and proposal state machines."""

from __future__ import annotations

import unittest

from boneclub.core.constants import (
    LEAGUE_COMPLETED,
    LEAGUE_DRAFT,
    LEAGUE_IN_PROGRESS,
    LEAGUE_REGISTRATION_OPEN,
    MATCH_ARRANGEMENT_PROPOSED,
    MATCH_COMPLETED,
    MATCH_PENDING_RESULT_REPORT,
    MATCH_SCHEDULED,
    MATCH_UNARRANGED,
    PROPOSAL_ACCEPTED,
    PROPOSAL_PENDING,
)
from boneclub.errors import InvalidTransitionError, ValidationError
from boneclub.league.lifecycle import (
    MATCH_TRANSITIONS,
    build_match_reset,
    build_result_update,
    can_transition,
    compute_winner,
    ensure_league_transition,
    ensure_match_transition,
    ensure_proposal_pending,
    is_league_finished,
    parse_score,
)

MATCH = {"player_1_id": "u1", "player_2_id": "u2", "status": MATCH_SCHEDULED}


class WinnerTestCase(unittest.TestCase):
    def test_higher_score_wins(self) -> None:
        self.assertEqual(compute_winner(MATCH, 7, 3), "u1")
        self.assertEqual(compute_winner(MATCH, 2, 7), "u2")

    def test_equal_scores_have_no_winner(self) -> None:
        self.assertIsNone(compute_winner(MATCH, 3, 3))

    def test_result_update(self) -> None:
        update = build_result_update(MATCH, 7, 3, "u2")
        self.assertEqual(
            update,
            {
                "player_1_score": 7,
                "player_2_score": 3,
                "status": MATCH_COMPLETED,
                "winner_id": "u1",
                "reported_by_user_id": "u2",
            },
        )

    def test_result_update_accepts_numeric_strings(self) -> None:
        update = build_result_update(MATCH, "3", " 3 ", "u1")
        self.assertEqual((update["player_1_score"], update["player_2_score"]), (3, 3))
        self.assertIsNone(update["winner_id"])

    def test_result_for_unscheduled_match_is_rejected(self) -> None:
        match = {**MATCH, "status": MATCH_UNARRANGED}
        with self.assertRaises(InvalidTransitionError):
            build_result_update(match, 1, 0, "u1")

    def test_result_cannot_be_reported_twice(self) -> None:
        match = {**MATCH, "status": MATCH_COMPLETED}
        with self.assertRaises(InvalidTransitionError):
            build_result_update(match, 1, 0, "u1")

    def test_pending_result_can_be_completed(self) -> None:
        match = {**MATCH, "status": MATCH_PENDING_RESULT_REPORT}
        self.assertEqual(build_result_update(match, 0, 5, "u1")["winner_id"], "u2")


class ParseScoreTestCase(unittest.TestCase):
    def test_valid_scores(self) -> None:
        self.assertEqual(parse_score(0), 0)
        self.assertEqual(parse_score("11"), 11)

    def test_invalid_scores(self) -> None:
        for value in (None, "", "abc", "1.5", -1, "-2", True):
            with self.subTest(value=value):
                with self.assertRaises(ValidationError):
                    parse_score(value)


class TransitionTestCase(unittest.TestCase):
    def test_match_forward_path(self) -> None:
        path = [
            MATCH_UNARRANGED,
            MATCH_ARRANGEMENT_PROPOSED,
            MATCH_SCHEDULED,
            MATCH_PENDING_RESULT_REPORT,
            MATCH_COMPLETED,
        ]
        for current, target in zip(path, path[1:]):
            self.assertTrue(can_transition(MATCH_TRANSITIONS, current, target))

    def test_decline_returns_match_to_unarranged(self) -> None:
        ensure_match_transition({"status": MATCH_ARRANGEMENT_PROPOSED}, MATCH_UNARRANGED)

    def test_completed_match_is_terminal(self) -> None:
        for target in (MATCH_UNARRANGED, MATCH_SCHEDULED):
            with self.assertRaises(InvalidTransitionError):
                ensure_match_transition({"status": MATCH_COMPLETED}, target)

    def test_cannot_skip_arrangement(self) -> None:
        with self.assertRaises(InvalidTransitionError):
            ensure_match_transition({"status": MATCH_UNARRANGED}, MATCH_SCHEDULED)

    def test_league_path(self) -> None:
        ensure_league_transition({"status": LEAGUE_DRAFT}, LEAGUE_REGISTRATION_OPEN)
        ensure_league_transition({}, LEAGUE_REGISTRATION_OPEN)
        ensure_league_transition({"status": LEAGUE_REGISTRATION_OPEN}, LEAGUE_IN_PROGRESS)
        ensure_league_transition({"status": LEAGUE_IN_PROGRESS}, LEAGUE_COMPLETED)

    def test_league_cannot_start_from_draft(self) -> None:
        with self.assertRaises(InvalidTransitionError):
            ensure_league_transition({"status": LEAGUE_DRAFT}, LEAGUE_IN_PROGRESS)

    def test_resolved_proposal_is_rejected(self) -> None:
        ensure_proposal_pending({"status": PROPOSAL_PENDING})
        with self.assertRaisesRegex(InvalidTransitionError, "already been accepted"):
            ensure_proposal_pending({"status": PROPOSAL_ACCEPTED})

    def test_match_reset_clears_result(self) -> None:
        reset = build_match_reset()
        self.assertEqual(reset["status"], MATCH_UNARRANGED)
        self.assertIsNone(reset["winner_id"])
        self.assertIsNone(reset["scheduled_date"])

    def test_league_finished(self) -> None:
        self.assertFalse(is_league_finished([]))
        self.assertFalse(
            is_league_finished([{"status": MATCH_COMPLETED}, {"status": MATCH_SCHEDULED}])
        )
        self.assertTrue(is_league_finished([{"status": MATCH_COMPLETED}]))


if __name__ == "__main__":
    unittest.main()
