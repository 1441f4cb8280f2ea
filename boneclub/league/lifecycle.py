"""State machines for leagues, league matches and match proposals."""

from __future__ import annotations

from typing import Any

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
    PROPOSAL_DECLINED,
    PROPOSAL_PENDING,
)
from boneclub.errors import InvalidTransitionError, ValidationError

MATCH_TRANSITIONS: dict[str, frozenset[str]] = {
    MATCH_UNARRANGED: frozenset({MATCH_ARRANGEMENT_PROPOSED}),
    MATCH_ARRANGEMENT_PROPOSED: frozenset({MATCH_SCHEDULED, MATCH_UNARRANGED}),
    MATCH_SCHEDULED: frozenset({MATCH_PENDING_RESULT_REPORT, MATCH_COMPLETED}),
    MATCH_PENDING_RESULT_REPORT: frozenset({MATCH_COMPLETED}),
    MATCH_COMPLETED: frozenset(),
}

LEAGUE_TRANSITIONS: dict[str, frozenset[str]] = {
    LEAGUE_DRAFT: frozenset({LEAGUE_REGISTRATION_OPEN}),
    LEAGUE_REGISTRATION_OPEN: frozenset({LEAGUE_IN_PROGRESS}),
    LEAGUE_IN_PROGRESS: frozenset({LEAGUE_COMPLETED}),
    LEAGUE_COMPLETED: frozenset(),
}

PROPOSAL_TRANSITIONS: dict[str, frozenset[str]] = {
    PROPOSAL_PENDING: frozenset({PROPOSAL_ACCEPTED, PROPOSAL_DECLINED}),
    PROPOSAL_ACCEPTED: frozenset(),
    PROPOSAL_DECLINED: frozenset(),
}


def _label(status: str | None) -> str:
    return (status or "unknown").replace("_", " ")


def can_transition(table: dict[str, frozenset[str]], current: str | None, target: str) -> bool:
    """Whether `target` is reachable from `current` in one step."""
    return target in table.get(current or "", frozenset())


def ensure_match_transition(match: dict[str, Any], target: str) -> None:
    """Raise unless the match may move to `target`."""
    current = match.get("status")
    if not can_transition(MATCH_TRANSITIONS, current, target):
        raise InvalidTransitionError(
            f"Match cannot move from '{_label(current)}' to '{_label(target)}'."
        )


def ensure_league_transition(league: dict[str, Any], target: str) -> None:
    """Raise unless the league may move to `target`."""
    current = league.get("status") or LEAGUE_DRAFT
    if not can_transition(LEAGUE_TRANSITIONS, current, target):
        raise InvalidTransitionError(
            f"League must not be '{_label(current)}' to move to '{_label(target)}'."
        )


def ensure_proposal_pending(proposal: dict[str, Any]) -> None:
    """Raise if the proposal has already been resolved."""
    status = proposal.get("status")
    if status != PROPOSAL_PENDING:
        raise InvalidTransitionError(
            f"This proposal has already been {_label(status)}."
        )


def parse_score(value: Any, label: str = "Score") -> int:
    """Parse a reported score into a non-negative integer."""
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a whole number.")
    if isinstance(value, int):
        score = value
    elif isinstance(value, str) and value.strip():
        try:
            score = int(value.strip(), 10)
        except ValueError as e:
            raise ValidationError(f"{label} must be a whole number.") from e
    else:
        raise ValidationError(f"{label} is required.")
    if score < 0:
        raise ValidationError(f"{label} cannot be negative.")
    return score


def compute_winner(match: dict[str, Any], p1_score: int, p2_score: int) -> str | None:
    """Return the winning player's id, or None for a draw."""
    if p1_score > p2_score:
        return match.get("player_1_id")
    if p2_score > p1_score:
        return match.get("player_2_id")
    return None


def build_result_update(
    match: dict[str, Any], p1_score: Any, p2_score: Any, reporter_id: str
) -> dict[str, Any]:
    """Validate a reported result and return the single update that records it."""
    ensure_match_transition(match, MATCH_COMPLETED)
    score_1 = parse_score(p1_score, f"{match.get('player_1_username') or 'Player 1'}'s score")
    score_2 = parse_score(p2_score, f"{match.get('player_2_username') or 'Player 2'}'s score")
    return {
        "player_1_score": score_1,
        "player_2_score": score_2,
        "status": MATCH_COMPLETED,
        "winner_id": compute_winner(match, score_1, score_2),
        "reported_by_user_id": reporter_id,
    }


def build_match_reset() -> dict[str, Any]:
    """Fields that return a match to an unplayed, unarranged fixture."""
    return {
        "status": MATCH_UNARRANGED,
        "scheduled_date": None,
        "player_1_score": None,
        "player_2_score": None,
        "winner_id": None,
        "reported_by_user_id": None,
    }


def is_league_finished(matches: list[dict[str, Any]]) -> bool:
    """A league is finished once it has fixtures and all of them are completed."""
    return bool(matches) and all(m.get("status") == MATCH_COMPLETED for m in matches)
