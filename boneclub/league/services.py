"""Service layer for league business logic."""

from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING, Any

from boneclub.core.constants import (
    DIVISIONS,
    ELIGIBLE_PARTICIPANT_STATUSES,
    LEAGUE_COMPLETED,
    LEAGUE_DRAFT,
    LEAGUE_IN_PROGRESS,
    LEAGUE_MATCH_PROPOSALS,
    LEAGUE_MATCHES,
    LEAGUE_PARTICIPANTS,
    LEAGUE_REGISTRATION_OPEN,
    LEAGUES,
    MATCH_PENDING_RESULT_REPORT,
    MATCH_UNARRANGED,
    PARTICIPANT_ACTIVE,
    PARTICIPANT_REGISTERED,
    PROPOSAL_DECLINED,
    PROPOSAL_PENDING,
)
from boneclub.core.store import EntityStore
from boneclub.core.timestamps import normalize_timestamp
from boneclub.errors import (
    InvalidTransitionError,
    PermissionDeniedError,
    ValidationError,
)
from boneclub.notifications.services import NotificationService

from .generator import DivisionGenerator, FixtureGenerator
from .lifecycle import (
    build_match_reset,
    build_result_update,
    ensure_league_transition,
    ensure_match_transition,
    is_league_finished,
)
from .standings import compute_standings, open_fixtures

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from boneclub.core.types import CurrentUser

    from .models import LeagueSubmission


def is_league_admin(league: dict[str, Any], current_user: CurrentUser) -> bool:
    """Site admins and the league's own admin may manage a league."""
    return current_user.is_admin or league.get("admin_user_id") == current_user.uid


def has_enough_participants(
    league: dict[str, Any], participants: list[dict[str, Any]]
) -> bool:
    """Whether enough eligible players exist to fill one division."""
    players_per_division = league.get("players_per_division")
    if not players_per_division:
        return False
    eligible = [
        p for p in participants if p.get("status") in ELIGIBLE_PARTICIPANT_STATUSES
    ]
    return len(eligible) >= players_per_division


class LeagueService:
    """Handles business logic and data access for leagues."""

    @staticmethod
    def _require_admin(
        league: dict[str, Any],
        current_user: CurrentUser,
        action: str = "perform this action",
    ) -> None:
        if not is_league_admin(league, current_user):
            raise PermissionDeniedError(f"Only league admins can {action}.")

    @staticmethod
    def _eligible_participants(
        store: EntityStore, league_id: str
    ) -> list[dict[str, Any]]:
        return store.filter_in(
            LEAGUE_PARTICIPANTS,
            "status",
            ELIGIBLE_PARTICIPANT_STATUSES,
            league_id=league_id,
        )

    @staticmethod
    def _league_proposals(
        store: EntityStore, matches: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        match_ids = [m["id"] for m in matches]
        if not match_ids:
            return []
        return store.filter_in(LEAGUE_MATCH_PROPOSALS, "league_match_id", match_ids)

    @staticmethod
    def get_league(league_id: str, db: Client | None = None) -> dict[str, Any]:
        """Fetch a league or raise NotFoundError."""
        return EntityStore(db).get(LEAGUES, league_id, "League")

    @staticmethod
    def create_league(
        submission: LeagueSubmission,
        current_user: CurrentUser,
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Create a draft league administered by the acting user."""
        submission.validate()
        store = EntityStore(db)

        def optional_date(value: Any) -> str | None:
            return normalize_timestamp(value) if value else None

        league = store.create(
            LEAGUES,
            {
                "name": submission.name.strip(),
                "description": submission.description,
                "status": LEAGUE_DRAFT,
                "format": submission.format,
                "players_per_division": submission.players_per_division,
                "default_target_score": submission.default_target_score,
                "default_use_clock": submission.default_use_clock,
                "start_date": optional_date(submission.start_date),
                "end_date": optional_date(submission.end_date),
                "registration_end_date": optional_date(submission.registration_end_date),
                "club_id": submission.club_id,
                "admin_user_id": current_user.uid,
                "masthead_url": submission.masthead_url,
            },
        )
        logging.info(f"League {league['id']} created by {current_user.uid}.")
        return league

    @staticmethod
    def open_registration(
        league_id: str, current_user: CurrentUser, db: Client | None = None
    ) -> dict[str, Any]:
        """Move a draft league to registration_open."""
        store = EntityStore(db)
        league = store.get(LEAGUES, league_id, "League")
        LeagueService._require_admin(league, current_user, "open registration")
        ensure_league_transition(league, LEAGUE_REGISTRATION_OPEN)

        participants = LeagueService._eligible_participants(store, league_id)
        if not has_enough_participants(league, participants):
            raise ValidationError(
                f"At least {league.get('players_per_division')} registered players "
                "are needed to open registration."
            )

        store.update(LEAGUES, league_id, {"status": LEAGUE_REGISTRATION_OPEN})
        return {**league, "status": LEAGUE_REGISTRATION_OPEN}

    @staticmethod
    def activate_participants(
        league_id: str, current_user: CurrentUser, db: Client | None = None
    ) -> int:
        """Promote every registered participant to active."""
        store = EntityStore(db)
        league = store.get(LEAGUES, league_id, "League")
        LeagueService._require_admin(league, current_user)

        registered = store.filter(
            LEAGUE_PARTICIPANTS, league_id=league_id, status=PARTICIPANT_REGISTERED
        )
        return store.update_many(
            LEAGUE_PARTICIPANTS,
            [p["id"] for p in registered],
            {"status": PARTICIPANT_ACTIVE},
        )

    @staticmethod
    def _clear_matches(store: EntityStore, league_id: str) -> int:
        """Delete a league's matches and their proposals."""
        matches = store.filter(LEAGUE_MATCHES, league_id=league_id)
        proposals = LeagueService._league_proposals(store, matches)

        store.delete_many(LEAGUE_MATCH_PROPOSALS, [p["id"] for p in proposals])
        store.delete_many(LEAGUE_MATCHES, [m["id"] for m in matches])
        return len(matches)

    @staticmethod
    def _clear_fixtures(store: EntityStore, league_id: str) -> tuple[int, int]:
        """Delete a league's proposals, matches and divisions."""
        match_count = LeagueService._clear_matches(store, league_id)
        divisions = store.filter(DIVISIONS, league_id=league_id)
        store.delete_many(DIVISIONS, [d["id"] for d in divisions])
        return match_count, len(divisions)

    @staticmethod
    def generate_divisions(
        league_id: str, current_user: CurrentUser, db: Client | None = None
    ) -> dict[str, Any]:
        """Seed eligible participants into balanced divisions.

        Any previous divisions and fixtures for the league are removed first.
        """
        store = EntityStore(db)
        league = store.get(LEAGUES, league_id, "League")
        LeagueService._require_admin(league, current_user)
        if league.get("status") != LEAGUE_REGISTRATION_OPEN:
            raise InvalidTransitionError(
                "Divisions can only be generated while registration is open."
            )

        participants = LeagueService._eligible_participants(store, league_id)
        players_per_division = league.get("players_per_division") or 0
        if not has_enough_participants(league, participants):
            raise ValidationError(
                f"Not enough participants ({len(participants)}) to form a full "
                f"division of {players_per_division}."
            )

        logging.info(f"Generating divisions for league {league_id}.")
        LeagueService._clear_fixtures(store, league_id)

        groups = DivisionGenerator.snake_draft(participants, players_per_division)
        divisions = store.create_many(
            DIVISIONS,
            [
                {
                    "league_id": league_id,
                    "division_number": number,
                    "name": f"Division {number}",
                }
                for number in range(1, len(groups) + 1)
            ],
        )
        for division, members in zip(divisions, groups):
            store.update_many(
                LEAGUE_PARTICIPANTS,
                [p["id"] for p in members],
                {"division_id": division["id"]},
            )

        return {
            "message": (
                f"Successfully generated {len(divisions)} divisions for "
                f"{len(participants)} participants. You can now edit them or "
                "start the league."
            ),
            "divisions": divisions,
        }

    @staticmethod
    def start_league(
        league_id: str, current_user: CurrentUser, db: Client | None = None
    ) -> dict[str, Any]:
        """Create every division's fixtures and put the league in progress."""
        store = EntityStore(db)
        league = store.get(LEAGUES, league_id, "League")
        LeagueService._require_admin(league, current_user, "start a league")
        ensure_league_transition(league, LEAGUE_IN_PROGRESS)

        divisions = store.filter(DIVISIONS, league_id=league_id)
        if not divisions:
            raise ValidationError(
                "No divisions found. Please generate divisions before starting the league."
            )
        participants = LeagueService._eligible_participants(store, league_id)
        if not has_enough_participants(league, participants):
            raise ValidationError("Not enough participants to start the league.")

        fixtures: list[dict[str, Any]] = []
        for division in sorted(divisions, key=lambda d: d.get("division_number") or 0):
            members = [p for p in participants if p.get("division_id") == division["id"]]
            fixtures.extend(
                FixtureGenerator.build_division_matches(league, division["id"], members)
            )
        # Matches left by an earlier failed start are replaced, not duplicated.
        LeagueService._clear_matches(store, league_id)
        created = store.create_many(LEAGUE_MATCHES, fixtures)

        # Status goes last so a failed fixture write leaves the league as it was.
        start_date = normalize_timestamp(datetime.datetime.now(datetime.timezone.utc))
        store.update(
            LEAGUES, league_id, {"status": LEAGUE_IN_PROGRESS, "start_date": start_date}
        )
        logging.info(f"League {league_id} started with {len(created)} matches.")
        return {
            "message": f"League started successfully! Created {len(created)} matches.",
            "matches_created": len(created),
        }

    @staticmethod
    def reset_league(
        league_id: str, current_user: CurrentUser, db: Client | None = None
    ) -> dict[str, Any]:
        """Wipe fixtures, results and divisions and return the league to draft."""
        store = EntityStore(db)
        league = store.get(LEAGUES, league_id, "League")
        LeagueService._require_admin(league, current_user, "reset leagues")

        match_count, division_count = LeagueService._clear_fixtures(store, league_id)
        participants = LeagueService._eligible_participants(store, league_id)
        store.update_many(
            LEAGUE_PARTICIPANTS,
            [p["id"] for p in participants],
            {"status": PARTICIPANT_REGISTERED, "division_id": None},
        )
        store.update(LEAGUES, league_id, {"status": LEAGUE_DRAFT, "start_date": None})
        logging.info(f"League {league_id} reset by {current_user.uid}.")
        return {
            "message": (
                f"League reset successfully! Deleted {match_count} matches and "
                f"{division_count} divisions. Reset {len(participants)} participants."
            )
        }

    @staticmethod
    def delete_league(
        league_id: str, current_user: CurrentUser, db: Client | None = None
    ) -> dict[str, Any]:
        """Notify participants, then delete the league and everything under it."""
        store = EntityStore(db)
        league = store.get(LEAGUES, league_id, "League")
        LeagueService._require_admin(league, current_user, "delete this league")

        participants = store.filter(LEAGUE_PARTICIPANTS, league_id=league_id)
        NotificationService.emit_many(
            store,
            [
                NotificationService.build(
                    recipient_id=p["user_id"],
                    recipient_username=p.get("username"),
                    subject=f"League Deleted: {league.get('name')}",
                    body=(
                        f'The league "{league.get("name")}" has been deleted by the '
                        "admin. It will no longer be accessible."
                    ),
                    club_id=league.get("club_id"),
                )
                for p in participants
                if p.get("user_id") != current_user.uid
            ],
        )

        LeagueService._clear_fixtures(store, league_id)
        store.delete_many(LEAGUE_PARTICIPANTS, [p["id"] for p in participants])
        store.delete(LEAGUES, league_id)
        logging.info(f"League {league_id} deleted by {current_user.uid}.")
        return {
            "message": (
                f'League "{league.get("name")}" and all its data have been '
                "successfully deleted."
            )
        }

    @staticmethod
    def complete_if_finished(league_id: str, db: Client | None = None) -> bool:
        """Mark an in-progress league completed once every match is played."""
        store = EntityStore(db)
        league = store.find(LEAGUES, league_id)
        if not league or league.get("status") != LEAGUE_IN_PROGRESS:
            return False
        if not is_league_finished(store.filter(LEAGUE_MATCHES, league_id=league_id)):
            return False
        store.update(LEAGUES, league_id, {"status": LEAGUE_COMPLETED})
        logging.info(f"League {league_id} completed.")
        return True

    @staticmethod
    def get_division_standings(
        league_id: str, division_id: str, db: Client | None = None
    ) -> dict[str, Any]:
        """The table and open fixtures for one division."""
        store = EntityStore(db)
        division = store.get(DIVISIONS, division_id, "Division")
        if division.get("league_id") != league_id:
            raise ValidationError("Division does not belong to this league.")
        participants = store.filter(
            LEAGUE_PARTICIPANTS, league_id=league_id, division_id=division_id
        )
        matches = store.filter(
            LEAGUE_MATCHES, league_id=league_id, division_id=division_id
        )
        return {
            "division": division,
            "standings": compute_standings(participants, matches),
            "fixtures": open_fixtures(matches),
        }

    @staticmethod
    def get_league_overview(league_id: str, db: Client | None = None) -> dict[str, Any]:
        """League details with each division's table."""
        store = EntityStore(db)
        league = store.get(LEAGUES, league_id, "League")
        participants = store.filter(LEAGUE_PARTICIPANTS, league_id=league_id)
        matches = store.filter(LEAGUE_MATCHES, league_id=league_id)
        divisions = sorted(
            store.filter(DIVISIONS, league_id=league_id),
            key=lambda d: d.get("division_number") or 0,
        )
        tables = []
        for division in divisions:
            members = [p for p in participants if p.get("division_id") == division["id"]]
            division_matches = [m for m in matches if m.get("division_id") == division["id"]]
            tables.append(
                {
                    "division": division,
                    "standings": compute_standings(members, division_matches),
                    "fixtures": open_fixtures(division_matches),
                }
            )
        return {
            "league": league,
            "participants": participants,
            "has_enough_participants": has_enough_participants(league, participants),
            "divisions": tables,
        }

    @staticmethod
    def report_result(
        match_id: str,
        player_1_score: Any,
        player_2_score: Any,
        current_user: CurrentUser,
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Record the final score of a scheduled match."""
        store = EntityStore(db)
        match = store.get(LEAGUE_MATCHES, match_id, "Match")
        if current_user.uid not in (match.get("player_1_id"), match.get("player_2_id")):
            league = store.get(LEAGUES, match.get("league_id"), "League")
            LeagueService._require_admin(league, current_user, "report this result")

        update = build_result_update(
            match, player_1_score, player_2_score, current_user.uid
        )
        store.update(LEAGUE_MATCHES, match_id, update)
        logging.info(
            f"Result for match {match_id} reported by {current_user.uid}: "
            f"{update['player_1_score']}-{update['player_2_score']}."
        )
        LeagueService.complete_if_finished(match.get("league_id"), db=store.db)
        return {**match, **update}

    @staticmethod
    def mark_pending_result(
        match_id: str, current_user: CurrentUser, db: Client | None = None
    ) -> dict[str, Any]:
        """Flag a scheduled match as played and awaiting its result."""
        store = EntityStore(db)
        match = store.get(LEAGUE_MATCHES, match_id, "Match")
        if current_user.uid not in (match.get("player_1_id"), match.get("player_2_id")):
            raise PermissionDeniedError("Only the match players can update this match.")
        ensure_match_transition(match, MATCH_PENDING_RESULT_REPORT)
        store.update(LEAGUE_MATCHES, match_id, {"status": MATCH_PENDING_RESULT_REPORT})
        return {**match, "status": MATCH_PENDING_RESULT_REPORT}

    @staticmethod
    def reset_match(
        match_id: str, current_user: CurrentUser, db: Client | None = None
    ) -> dict[str, Any]:
        """Admin repair: return a match to unarranged and clear its result."""
        store = EntityStore(db)
        match = store.get(LEAGUE_MATCHES, match_id, "Match")
        league = store.get(LEAGUES, match.get("league_id"), "League")
        LeagueService._require_admin(league, current_user, "reset matches")
        if match.get("status") == MATCH_UNARRANGED:
            raise InvalidTransitionError("Match is already unarranged.")

        pending = store.filter(
            LEAGUE_MATCH_PROPOSALS, league_match_id=match_id, status=PROPOSAL_PENDING
        )
        reset = build_match_reset()
        batch = store.batch()
        store.update(LEAGUE_MATCHES, match_id, reset, batch=batch)
        for proposal in pending:
            store.update(
                LEAGUE_MATCH_PROPOSALS,
                proposal["id"],
                {"status": PROPOSAL_DECLINED},
                batch=batch,
            )
        if league.get("status") == LEAGUE_COMPLETED:
            store.update(LEAGUES, league["id"], {"status": LEAGUE_IN_PROGRESS}, batch=batch)
        store.commit(batch)
        logging.warning(f"Match {match_id} reset by admin {current_user.uid}.")
        return {**match, **reset}

    @staticmethod
    def repair_match_usernames(
        league_id: str, current_user: CurrentUser, db: Client | None = None
    ) -> dict[str, Any]:
        """Fill in player usernames missing from a league's matches."""
        store = EntityStore(db)
        league = store.get(LEAGUES, league_id, "League")
        LeagueService._require_admin(league, current_user)

        usernames = {
            p["user_id"]: p.get("username")
            for p in store.filter(LEAGUE_PARTICIPANTS, league_id=league_id)
            if p.get("user_id")
        }
        matches = store.filter(LEAGUE_MATCHES, league_id=league_id)
        updated = 0
        errors = 0
        batch = store.batch()
        for match in matches:
            if match.get("player_1_username") and match.get("player_2_username"):
                continue
            name_1 = usernames.get(match.get("player_1_id"))
            name_2 = usernames.get(match.get("player_2_id"))
            if not name_1 or not name_2:
                logging.warning(f"No participant data for match {match['id']}.")
                errors += 1
                continue
            store.update(
                LEAGUE_MATCHES,
                match["id"],
                {"player_1_username": name_1, "player_2_username": name_2},
                batch=batch,
            )
            updated += 1
        if updated:
            store.commit(batch)
        return {
            "message": f"Fixed {updated} league matches. {errors} errors encountered.",
            "total_matches": len(matches),
            "updated_matches": updated,
            "errors": errors,
        }
