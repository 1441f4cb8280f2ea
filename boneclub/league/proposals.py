"""Service layer for negotiating league match times."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from boneclub.core.constants import (
    LEAGUE_MATCH_PROPOSALS,
    LEAGUE_MATCHES,
    MATCH_ARRANGEMENT_PROPOSED,
    MATCH_SCHEDULED,
    MATCH_UNARRANGED,
    PROPOSAL_ACCEPTED,
    PROPOSAL_DECLINED,
    PROPOSAL_MAX_SLOTS,
    PROPOSAL_PENDING,
)
from boneclub.core.settings import get_setting
from boneclub.core.store import EntityStore
from boneclub.core.timestamps import normalize_timestamp
from boneclub.errors import (
    InvalidTransitionError,
    PermissionDeniedError,
    ValidationError,
)
from boneclub.notifications.services import NotificationService, format_match_time

from .lifecycle import ensure_match_transition, ensure_proposal_pending
from .models import ProposalSubmission

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from boneclub.core.types import CurrentUser

ACCEPT = "accept"
DECLINE = "decline"
RELATED_MATCH_TYPE = "LeagueMatch"


def opponent_of(match: dict[str, Any], user_id: str) -> dict[str, Any]:
    """Return the id and username of the other player in a match."""
    if match.get("player_1_id") == user_id:
        return {"id": match.get("player_2_id"), "username": match.get("player_2_username")}
    return {"id": match.get("player_1_id"), "username": match.get("player_1_username")}


class ProposalService:
    """Handles match-time proposals between the two players of a league match."""

    @staticmethod
    def get_active_proposal(
        match_id: str, db: Client | None = None
    ) -> dict[str, Any] | None:
        """Return the pending proposal for a match, if there is one."""
        store = EntityStore(db)
        pending = store.filter(
            LEAGUE_MATCH_PROPOSALS,
            league_match_id=match_id,
            status=PROPOSAL_PENDING,
            limit=1,
        )
        return pending[0] if pending else None

    @staticmethod
    def list_pending_for_user(user_id: str, db: Client | None = None) -> list[dict[str, Any]]:
        """Pending proposals the user sent or received."""
        store = EntityStore(db)
        results: dict[str, dict[str, Any]] = {}
        for role in ("proposer_id", "recipient_id"):
            for proposal in store.filter(
                LEAGUE_MATCH_PROPOSALS, status=PROPOSAL_PENDING, **{role: user_id}
            ):
                results[proposal["id"]] = proposal
        return list(results.values())

    @staticmethod
    def create_proposal(
        submission: ProposalSubmission,
        current_user: CurrentUser,
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Offer one to five times for a match and mark it as being arranged."""
        proposed = submission.validate(
            get_setting("PROPOSAL_MAX_SLOTS", PROPOSAL_MAX_SLOTS)
        )

        store = EntityStore(db)
        match = store.get(LEAGUE_MATCHES, submission.league_match_id, "Match")
        if current_user.uid not in (match.get("player_1_id"), match.get("player_2_id")):
            raise PermissionDeniedError("Only the match players can arrange this match.")

        ensure_match_transition(match, MATCH_ARRANGEMENT_PROPOSED)
        if ProposalService.get_active_proposal(match["id"], db=store.db):
            raise InvalidTransitionError("This match already has a pending proposal.")

        recipient = opponent_of(match, current_user.uid)
        batch = store.batch()
        proposal = store.create(
            LEAGUE_MATCH_PROPOSALS,
            {
                "league_match_id": match["id"],
                "proposer_id": current_user.uid,
                "proposer_username": current_user.username,
                "recipient_id": recipient["id"],
                "recipient_username": recipient["username"],
                "proposed_datetimes": proposed,
                "accepted_datetime": None,
                "custom_message": (submission.custom_message or "").strip(),
                "status": PROPOSAL_PENDING,
            },
            batch=batch,
        )
        store.update(
            LEAGUE_MATCHES, match["id"], {"status": MATCH_ARRANGEMENT_PROPOSED}, batch=batch
        )
        store.commit(batch)
        logging.info(
            f"Proposal {proposal['id']} sent for match {match['id']} "
            f"by {current_user.uid} with {len(proposed)} slot(s)."
        )
        return proposal

    @staticmethod
    def respond(  # noqa: PLR0913
        proposal_id: str,
        current_user: CurrentUser,
        decision: str,
        selected_time: Any = None,
        message: str = "",
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Accept one of the proposed times or decline them all.

        The proposal update, the match update and the notification to the
        proposer are committed together.
        """
        if decision not in (ACCEPT, DECLINE):
            raise ValidationError("Decision must be 'accept' or 'decline'.")
        if decision == ACCEPT:
            if selected_time is None or selected_time == "":
                raise ValidationError("Please select a time to accept.")
            selected = normalize_timestamp(selected_time)

        store = EntityStore(db)
        proposal = store.get(LEAGUE_MATCH_PROPOSALS, proposal_id, "Proposal")
        if proposal.get("recipient_id") != current_user.uid:
            raise PermissionDeniedError("Only the invited player can respond to this proposal.")
        ensure_proposal_pending(proposal)

        match = store.get(LEAGUE_MATCHES, proposal["league_match_id"], "Match")

        if decision == ACCEPT:
            offered = {normalize_timestamp(t) for t in proposal.get("proposed_datetimes", [])}
            if selected not in offered:
                raise ValidationError("The selected time was not one of the proposed times.")
            return ProposalService._accept(store, proposal, match, selected, current_user)
        return ProposalService._decline(store, proposal, match, message, current_user)

    @staticmethod
    def _ensure_match_open(match: dict[str, Any], target: str) -> None:
        # Proposals from older clients left their match unarranged.
        if match.get("status") == MATCH_UNARRANGED:
            return
        ensure_match_transition(match, target)

    @staticmethod
    def _accept(
        store: EntityStore,
        proposal: dict[str, Any],
        match: dict[str, Any],
        selected: str,
        current_user: CurrentUser,
    ) -> dict[str, Any]:
        ProposalService._ensure_match_open(match, MATCH_SCHEDULED)
        when = format_match_time(selected)
        notification = NotificationService.build(
            recipient_id=proposal["proposer_id"],
            recipient_username=proposal.get("proposer_username"),
            subject=(
                f"Match Accepted: {current_user.username} vs "
                f"{proposal.get('proposer_username')}"
            ),
            body=(
                f"Great news! {current_user.username} has accepted your proposed "
                f"match time. The match is now scheduled for {when}. You can start "
                "the match from your My Games page when the time comes."
            ),
            related_entity_id=match["id"],
            related_entity_type=RELATED_MATCH_TYPE,
        )

        proposal_update = {"status": PROPOSAL_ACCEPTED, "accepted_datetime": selected}
        match_update = {"status": MATCH_SCHEDULED, "scheduled_date": selected}
        batch = store.batch()
        store.update(LEAGUE_MATCH_PROPOSALS, proposal["id"], proposal_update, batch=batch)
        store.update(LEAGUE_MATCHES, match["id"], match_update, batch=batch)
        notification = NotificationService.emit(store, notification, batch=batch)
        store.commit(batch)
        logging.info(f"Proposal {proposal['id']} accepted; match {match['id']} at {selected}.")

        NotificationService.send_scheduled_match_email(
            store, proposal["proposer_id"], current_user.username, selected
        )
        return {
            "proposal": {**proposal, **proposal_update},
            "match": {**match, **match_update},
            "notification": notification,
            "message": (
                f"You have accepted the match with {proposal.get('proposer_username')}. "
                f"The match is scheduled for {when}."
            ),
        }

    @staticmethod
    def _decline(
        store: EntityStore,
        proposal: dict[str, Any],
        match: dict[str, Any],
        message: str,
        current_user: CurrentUser,
    ) -> dict[str, Any]:
        ProposalService._ensure_match_open(match, MATCH_UNARRANGED)
        message = (message or "").strip()
        said = f' They said: "{message}"' if message else ""
        notification = NotificationService.build(
            recipient_id=proposal["proposer_id"],
            recipient_username=proposal.get("proposer_username"),
            subject=(
                f"Match Declined: {current_user.username} vs "
                f"{proposal.get('proposer_username')}"
            ),
            body=(
                f"{current_user.username} has declined your proposed match times.{said} "
                "You can propose new times from your My Games page."
            ),
            related_entity_id=match["id"],
            related_entity_type=RELATED_MATCH_TYPE,
        )

        proposal_update = {"status": PROPOSAL_DECLINED}
        match_update = {"status": MATCH_UNARRANGED}
        batch = store.batch()
        store.update(LEAGUE_MATCH_PROPOSALS, proposal["id"], proposal_update, batch=batch)
        store.update(LEAGUE_MATCHES, match["id"], match_update, batch=batch)
        notification = NotificationService.emit(store, notification, batch=batch)
        store.commit(batch)
        logging.info(f"Proposal {proposal['id']} declined for match {match['id']}.")

        return {
            "proposal": {**proposal, **proposal_update},
            "match": {**match, **match_update},
            "notification": notification,
            "message": (
                "You have declined the match proposal from "
                f"{proposal.get('proposer_username')}."
            ),
        }
