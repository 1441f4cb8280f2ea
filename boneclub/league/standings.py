"""Division standings: the league table derived from completed matches."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from boneclub.core.constants import (
    MATCH_COMPLETED,
    POINTS_PER_DRAW,
    POINTS_PER_LOSS,
    POINTS_PER_WIN,
)
from boneclub.core.timestamps import sort_key

from .models import StandingsRow


def _plays_in(match: dict[str, Any], user_id: str) -> bool:
    return match.get("player_1_id") == user_id or match.get("player_2_id") == user_id


def _own_and_opponent_score(match: dict[str, Any], user_id: str) -> tuple[int, int]:
    p1_score = match.get("player_1_score") or 0
    p2_score = match.get("player_2_score") or 0
    if match.get("player_1_id") == user_id:
        return p1_score, p2_score
    return p2_score, p1_score


def build_row(participant: dict[str, Any], matches: Iterable[dict[str, Any]]) -> StandingsRow:
    """Aggregate one participant's completed matches into a table row."""
    user_id = participant.get("user_id")
    played = [
        m
        for m in matches
        if m.get("status") == MATCH_COMPLETED and _plays_in(m, user_id)
    ]
    wins = sum(1 for m in played if m.get("winner_id") == user_id)
    # A completed match without a winner is a draw.
    draws = sum(1 for m in played if not m.get("winner_id"))
    losses = len(played) - wins - draws

    points_for = 0
    points_against = 0
    for m in played:
        own, opponent = _own_and_opponent_score(m, user_id)
        points_for += own
        points_against += opponent

    row: dict[str, Any] = dict(participant)
    row.update(
        {
            "matchesPlayed": len(played),
            "wins": wins,
            "losses": losses,
            "draws": draws,
            "points": wins * POINTS_PER_WIN
            + draws * POINTS_PER_DRAW
            + losses * POINTS_PER_LOSS,
            "pointsFor": points_for,
            "pointsAgainst": points_against,
            "pointsDifference": points_for - points_against,
        }
    )
    return row  # type: ignore[return-value]


def compute_standings(
    participants: Iterable[dict[str, Any]], matches: Iterable[dict[str, Any]]
) -> list[StandingsRow]:
    """Rank a division's participants.

    Ordered by points, then points difference, then points for, all
    descending. Rows still level after the three keys keep their input order.
    The result's list position is the 1-based rank minus one.
    """
    matches = list(matches)
    rows = [build_row(p, matches) for p in participants]
    # sort() is stable with reverse=True, so ties keep participant order.
    rows.sort(
        key=lambda r: (r["points"], r["pointsDifference"], r["pointsFor"]),
        reverse=True,
    )
    return rows


def open_fixtures(matches: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Matches still to be played, oldest fixture first."""
    pending = [m for m in matches if m.get("status") != MATCH_COMPLETED]
    return sorted(pending, key=lambda m: sort_key(m.get("created_date")))
