"""Data models for the league blueprint."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, TypedDict

from boneclub.core.constants import (
    DEFAULT_PLAYERS_PER_DIVISION,
    FORMAT_ROUND_ROBIN,
    LEAGUE_FORMATS,
    PROPOSAL_MAX_SLOTS,
    PROPOSAL_MIN_SLOTS,
)
from boneclub.core.timestamps import normalize_timestamp
from boneclub.core.types import FirestoreDocument
from boneclub.errors import ValidationError


class League(FirestoreDocument, total=False):
    """A league document in Firestore."""

    name: str
    description: str
    status: str
    format: str
    players_per_division: int
    default_target_score: int
    default_use_clock: bool
    start_date: Any
    end_date: Any
    registration_end_date: Any
    club_id: str
    admin_user_id: str
    masthead_url: str


class Division(FirestoreDocument, total=False):
    """A division within a league."""

    league_id: str
    name: str
    division_number: int


class LeagueParticipant(FirestoreDocument, total=False):
    """A player's membership of a league."""

    league_id: str
    division_id: Optional[str]
    user_id: str
    username: str
    status: str
    rating: float


class LeagueMatch(FirestoreDocument, total=False):
    """A single fixture between two division members."""

    league_id: str
    division_id: str
    player_1_id: str
    player_1_username: str
    player_2_id: str
    player_2_username: str
    status: str
    scheduled_date: Optional[str]
    player_1_score: Optional[int]
    player_2_score: Optional[int]
    winner_id: Optional[str]
    reported_by_user_id: Optional[str]
    leg: int


class LeagueMatchProposal(FirestoreDocument, total=False):
    """A set of candidate times offered by one match player to the other."""

    league_match_id: str
    proposer_id: str
    proposer_username: str
    recipient_id: str
    recipient_username: str
    proposed_datetimes: list[str]
    accepted_datetime: Optional[str]
    custom_message: str
    status: str


class StandingsRow(TypedDict, total=False):
    """A participant's derived line in the division table."""

    id: str
    user_id: str
    username: str
    matchesPlayed: int
    wins: int
    losses: int
    draws: int
    points: int
    pointsFor: int
    pointsAgainst: int
    pointsDifference: int


@dataclass
class LeagueSubmission:
    """Dataclass for league creation."""

    name: str
    club_id: Optional[str] = None
    description: str = ""
    format: str = FORMAT_ROUND_ROBIN
    players_per_division: int = DEFAULT_PLAYERS_PER_DIVISION
    default_target_score: Optional[int] = None
    default_use_clock: bool = False
    start_date: Optional[Any] = None
    end_date: Optional[Any] = None
    registration_end_date: Optional[Any] = None
    masthead_url: Optional[str] = None

    def validate(self) -> None:
        """Validate the league settings."""
        if not self.name or not self.name.strip():
            raise ValidationError("League name is required.")
        if self.format not in LEAGUE_FORMATS:
            raise ValidationError(f"Unsupported league format: {self.format}.")
        if self.players_per_division < 2:
            raise ValidationError("A division needs at least 2 players.")
        if self.default_target_score is not None and self.default_target_score < 1:
            raise ValidationError("Target score must be positive.")


@dataclass
class ProposalSubmission:
    """Dataclass for a match-time proposal."""

    league_match_id: str
    proposed_datetimes: list[Any] = field(default_factory=list)
    custom_message: str = ""

    def validate(self, max_slots: int = PROPOSAL_MAX_SLOTS) -> list[str]:
        """Validate the offered times and return them normalised, in order."""
        slots = [
            t for t in self.proposed_datetimes if not (isinstance(t, str) and not t.strip())
        ]
        if len(slots) < PROPOSAL_MIN_SLOTS:
            raise ValidationError("Please propose at least one time slot.")
        if len(slots) > max_slots:
            raise ValidationError(
                f"You can propose at most {max_slots} time slots."
            )
        normalized = [normalize_timestamp(t) for t in slots]
        if len(set(normalized)) != len(normalized):
            raise ValidationError("Each proposed time must be different.")
        return normalized
