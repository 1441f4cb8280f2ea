"""Service layer for invitations to leagues, tournaments and clubs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from boneclub.core.constants import (
    CLUB_MEMBERS,
    DEFAULT_RATING,
    LEAGUE_PARTICIPANTS,
    LEAGUES,
    MESSAGE_READ,
    MESSAGE_TYPE_NOTIFICATION,
    MESSAGES,
    PARTICIPANT_ACTIVE,
    PARTICIPANT_INVITED,
    TOURNAMENT_PARTICIPANTS,
    USERS,
)
from boneclub.core.store import EntityStore
from boneclub.errors import (
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from boneclub.notifications.services import NotificationService

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from boneclub.core.types import CurrentUser


@dataclass(frozen=True)
class InvitationKind:
    """Where one kind of invitation lives and which statuses it moves between."""

    name: str
    collection: str
    pending_status: str
    accepted_status: str
    scope_field: str
    related_entity_type: str
    label: str


INVITATION_KINDS: dict[str, InvitationKind] = {
    "league": InvitationKind(
        name="league",
        collection=LEAGUE_PARTICIPANTS,
        pending_status=PARTICIPANT_INVITED,
        accepted_status=PARTICIPANT_ACTIVE,
        scope_field="league_id",
        related_entity_type="LeagueParticipant",
        label="League invitation",
    ),
    "tournament": InvitationKind(
        name="tournament",
        collection=TOURNAMENT_PARTICIPANTS,
        pending_status="invited",
        accepted_status="accepted",
        scope_field="tournament_id",
        related_entity_type="TournamentParticipant",
        label="Tournament invitation",
    ),
    "club": InvitationKind(
        name="club",
        collection=CLUB_MEMBERS,
        pending_status="pending",
        accepted_status="active",
        scope_field="club_id",
        related_entity_type="ClubMember",
        label="Club invitation",
    ),
}


def get_kind(name: str) -> InvitationKind:
    """Look up an invitation kind by name."""
    try:
        return INVITATION_KINDS[name]
    except KeyError:
        raise NotFoundError(f"Unknown invitation type: {name}.") from None


class InvitationService:
    """One pending -> accepted | declined protocol shared by every invitation kind."""

    @staticmethod
    def respond(
        kind: InvitationKind,
        invitation_id: str,
        current_user: CurrentUser,
        accept: bool,
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Accept or decline an invitation on behalf of the invitee.

        Accepting moves the record to the kind's accepted status; declining
        deletes it. Either way the invitation messages are marked read.
        """
        store = EntityStore(db)
        invitation = store.get(kind.collection, invitation_id, kind.label)
        if invitation.get("user_id") != current_user.uid:
            raise PermissionDeniedError("This invitation was sent to someone else.")
        if invitation.get("status") != kind.pending_status:
            raise InvalidTransitionError(
                f"{kind.label} has already been answered."
            )

        batch = store.batch()
        if accept:
            store.update(
                kind.collection,
                invitation_id,
                {"status": kind.accepted_status},
                batch=batch,
            )
        else:
            store.delete(kind.collection, invitation_id, batch=batch)
        store.commit(batch)

        NotificationService.mark_related_read(
            store, invitation_id, kind.related_entity_type, recipient_id=current_user.uid
        )
        logging.info(
            f"{kind.label} {invitation_id} "
            f"{'accepted' if accept else 'declined'} by {current_user.uid}."
        )
        if accept:
            return {
                "invitation": {**invitation, "status": kind.accepted_status},
                "message": "Invitation accepted.",
            }
        return {"invitation": None, "message": "Invitation successfully declined."}

    @staticmethod
    def send_bulk_league_invitations(
        league_id: str,
        user_ids: list[str],
        current_user: CurrentUser,
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Invite several users to a league in one batch.

        Users who already have a participant record are skipped. An admin
        adding themselves joins as active and gets no message.
        """
        if not user_ids:
            raise ValidationError("At least one user is required.")

        store = EntityStore(db)
        league = store.get(LEAGUES, league_id, "League")
        if league.get("admin_user_id") != current_user.uid and not current_user.is_admin:
            raise PermissionDeniedError("Only league admins can invite participants.")

        existing = {
            p.get("user_id")
            for p in store.filter(LEAGUE_PARTICIPANTS, league_id=league_id)
        }
        users = []
        for user_id in dict.fromkeys(user_ids):
            if user_id in existing:
                continue
            user = store.find(USERS, user_id)
            if user is None:
                logging.warning(f"Skipping invitation for unknown user {user_id}.")
                continue
            users.append(user)
        if not users:
            raise ValidationError(
                "No valid users found to invite or all users are already participants."
            )

        batch = store.batch()
        messages_sent = 0
        admin_joined = False
        for user in users:
            username = user.get("username") or user.get("name")
            is_self_join = user["id"] == current_user.uid
            participant = store.create(
                LEAGUE_PARTICIPANTS,
                {
                    "league_id": league_id,
                    "user_id": user["id"],
                    "username": username,
                    "status": PARTICIPANT_ACTIVE if is_self_join else PARTICIPANT_INVITED,
                    "rating": user.get("rating") or DEFAULT_RATING,
                    "division_id": None,
                },
                batch=batch,
            )
            if is_self_join:
                admin_joined = True
                continue
            NotificationService.emit(
                store,
                NotificationService.build(
                    recipient_id=user["id"],
                    recipient_username=username,
                    subject=f"League Invitation: {league.get('name')}",
                    body=(
                        f'You have been invited to join the "{league.get("name")}" '
                        "league. Please accept or decline this invitation."
                    ),
                    related_entity_id=participant["id"],
                    related_entity_type=INVITATION_KINDS["league"].related_entity_type,
                    league_name=league.get("name"),
                    club_id=league.get("club_id"),
                ),
                batch=batch,
            )
            messages_sent += 1
        store.commit(batch)

        logging.info(
            f"Invited {len(users)} users to league {league_id}; "
            f"{messages_sent} messages sent."
        )
        return {
            "invited_count": len(users),
            "messages_sent": messages_sent,
            "admin_joined": admin_joined,
        }

    @staticmethod
    def cleanup_stale_invitations(
        kind: InvitationKind, db: Client | None = None
    ) -> dict[str, Any]:
        """Tidy invitation messages whose invitation was answered or removed.

        Messages pointing at a missing record are deleted; messages whose
        record is no longer pending are marked read.
        """
        store = EntityStore(db)
        messages = store.filter(
            MESSAGES,
            related_entity_type=kind.related_entity_type,
            type=MESSAGE_TYPE_NOTIFICATION,
        )
        logging.info(f"Checking {len(messages)} {kind.name} invitation messages.")

        stale: list[str] = []
        answered: list[str] = []
        for message in messages:
            related_id = message.get("related_entity_id")
            invitation = store.find(kind.collection, related_id) if related_id else None
            if invitation is None:
                stale.append(message["id"])
            elif (
                invitation.get("status") != kind.pending_status
                and message.get("status") != MESSAGE_READ
            ):
                answered.append(message["id"])

        store.delete_many(MESSAGES, stale)
        store.update_many(MESSAGES, answered, {"status": MESSAGE_READ})
        kept = len(messages) - len(stale)
        return {
            "total_messages_found": len(messages),
            "deleted_messages": len(stale),
            "marked_read": len(answered),
            "valid_messages": kept,
            "message": (
                f"Cleanup completed. Deleted {len(stale)} stale messages, "
                f"kept {kept} valid messages."
            ),
        }
