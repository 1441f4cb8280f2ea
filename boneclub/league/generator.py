"""Division seeding and fixture generation for leagues."""

from __future__ import annotations

import math
from typing import Any

from boneclub.core.constants import (
    DEFAULT_RATING,
    FORMAT_DOUBLE_ROUND_ROBIN,
    MATCH_UNARRANGED,
)

BYE = "BYE"


class DivisionGenerator:
    """Splits seeded participants into balanced divisions."""

    @staticmethod
    def seed(participants: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Order participants by rating, strongest first."""
        return sorted(
            participants,
            key=lambda p: p.get("rating") or DEFAULT_RATING,
            reverse=True,
        )

    @staticmethod
    def division_count(participant_count: int, players_per_division: int) -> int:
        """Number of divisions needed to hold every participant."""
        return math.ceil(participant_count / players_per_division)

    @staticmethod
    def snake_draft(
        participants: list[dict[str, Any]], players_per_division: int
    ) -> list[list[dict[str, Any]]]:
        """Assign seeded participants with a serpentine draft.

        Picks run D1, D2, ... Dn, then Dn ... D1, and so on, so each
        division gets a similar spread of ratings.
        """
        seeded = DivisionGenerator.seed(participants)
        count = DivisionGenerator.division_count(len(seeded), players_per_division)
        divisions: list[list[dict[str, Any]]] = [[] for _ in range(count)]
        for i, participant in enumerate(seeded):
            index = i % count
            if (i // count) % 2 == 1:
                index = count - 1 - index
            divisions[index].append(participant)
        return divisions


class FixtureGenerator:
    """Builds the match records for a division."""

    MIN_PARTICIPANTS = 2

    @staticmethod
    def generate_round_robin(participant_ids: list[str]) -> list[tuple[str, str]]:
        """Generate round robin pairings using the circle method."""
        if len(participant_ids) < FixtureGenerator.MIN_PARTICIPANTS:
            return []

        ids = list(participant_ids)
        if len(ids) % 2 != 0:
            ids.append(BYE)

        num_participants = len(ids)
        num_rounds = num_participants - 1
        pairings = []

        for _ in range(num_rounds):
            for i in range(num_participants // 2):
                p1 = ids[i]
                p2 = ids[num_participants - 1 - i]
                if p1 != BYE and p2 != BYE:
                    pairings.append((p1, p2))
            # Keep the first element fixed, rotate the others
            ids = [ids[0], ids[-1]] + ids[1:-1]

        return pairings

    @staticmethod
    def build_division_matches(
        league: dict[str, Any],
        division_id: str,
        participants: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """Create one unarranged match per pairing, two legs for double round robin."""
        by_user = {p["user_id"]: p for p in participants if p.get("user_id")}
        legs = [1, 2] if league.get("format") == FORMAT_DOUBLE_ROUND_ROBIN else [1]
        matches = []
        for p1_id, p2_id in FixtureGenerator.generate_round_robin(list(by_user)):
            player_1 = by_user[p1_id]
            player_2 = by_user[p2_id]
            for leg in legs:
                # The second leg swaps who is listed first.
                first, second = (player_1, player_2) if leg == 1 else (player_2, player_1)
                matches.append(
                    {
                        "league_id": league["id"],
                        "division_id": division_id,
                        "player_1_id": first["user_id"],
                        "player_1_username": first.get("username"),
                        "player_2_id": second["user_id"],
                        "player_2_username": second.get("username"),
                        "status": MATCH_UNARRANGED,
                        "scheduled_date": None,
                        "player_1_score": None,
                        "player_2_score": None,
                        "winner_id": None,
                        "reported_by_user_id": None,
                        "leg": leg,
                    }
                )
        return matches
