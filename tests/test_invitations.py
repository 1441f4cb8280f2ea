"""Tests for the invitation protocol."""

from __future__ import annotations

import unittest

from boneclub.core.constants import (
    CLUB_MEMBERS,
    LEAGUE_PARTICIPANTS,
    LEAGUES,
    MESSAGE_READ,
    MESSAGE_UNREAD,
    MESSAGES,
    PARTICIPANT_ACTIVE,
    PARTICIPANT_INVITED,
    TOURNAMENT_PARTICIPANTS,
    USERS,
)
from boneclub.core.types import CurrentUser
from boneclub.errors import (
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from boneclub.invitations.services import INVITATION_KINDS, InvitationService, get_kind
from tests.conftest import docs, make_db, seed

ADMIN = CurrentUser(uid="admin", username="Admin")
BOB = CurrentUser(uid="bob", username="Bob")


def invitation_message(related_id: str, related_type: str, recipient: str = "bob") -> dict:
    return {
        "recipient_id": recipient,
        "type": "notification",
        "related_entity_id": related_id,
        "related_entity_type": related_type,
        "status": MESSAGE_UNREAD,
    }


class RespondTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_db()

    def test_accept_league_invitation(self) -> None:
        seed(
            self.db,
            LEAGUE_PARTICIPANTS,
            "p1",
            {"league_id": "l1", "user_id": "bob", "status": PARTICIPANT_INVITED},
        )
        seed(self.db, MESSAGES, "msg1", invitation_message("p1", "LeagueParticipant"))

        InvitationService.respond(get_kind("league"), "p1", BOB, accept=True, db=self.db)

        self.assertEqual(docs(self.db, LEAGUE_PARTICIPANTS)["p1"]["status"], PARTICIPANT_ACTIVE)
        self.assertEqual(docs(self.db, MESSAGES)["msg1"]["status"], MESSAGE_READ)

    def test_decline_deletes_invitation(self) -> None:
        seed(
            self.db,
            TOURNAMENT_PARTICIPANTS,
            "tp1",
            {"tournament_id": "t1", "user_id": "bob", "status": "invited"},
        )
        seed(self.db, MESSAGES, "msg1", invitation_message("tp1", "TournamentParticipant"))

        result = InvitationService.respond(
            get_kind("tournament"), "tp1", BOB, accept=False, db=self.db
        )

        self.assertEqual(docs(self.db, TOURNAMENT_PARTICIPANTS), {})
        self.assertEqual(docs(self.db, MESSAGES)["msg1"]["status"], MESSAGE_READ)
        self.assertEqual(result["message"], "Invitation successfully declined.")

    def test_club_invitation_uses_its_own_statuses(self) -> None:
        seed(
            self.db,
            CLUB_MEMBERS,
            "cm1",
            {"club_id": "c1", "user_id": "bob", "status": "pending"},
        )
        InvitationService.respond(get_kind("club"), "cm1", BOB, accept=True, db=self.db)
        self.assertEqual(docs(self.db, CLUB_MEMBERS)["cm1"]["status"], "active")

    def test_only_invitee_may_respond(self) -> None:
        seed(
            self.db,
            LEAGUE_PARTICIPANTS,
            "p1",
            {"league_id": "l1", "user_id": "bob", "status": PARTICIPANT_INVITED},
        )
        with self.assertRaises(PermissionDeniedError):
            InvitationService.respond(
                INVITATION_KINDS["league"], "p1", ADMIN, accept=True, db=self.db
            )

    def test_answered_invitation_is_rejected(self) -> None:
        seed(
            self.db,
            LEAGUE_PARTICIPANTS,
            "p1",
            {"league_id": "l1", "user_id": "bob", "status": PARTICIPANT_ACTIVE},
        )
        with self.assertRaises(InvalidTransitionError):
            InvitationService.respond(
                INVITATION_KINDS["league"], "p1", BOB, accept=False, db=self.db
            )
        self.assertIn("p1", docs(self.db, LEAGUE_PARTICIPANTS))

    def test_unknown_kind_and_record(self) -> None:
        with self.assertRaises(NotFoundError):
            get_kind("friendship")
        with self.assertRaises(NotFoundError):
            InvitationService.respond(
                INVITATION_KINDS["club"], "missing", BOB, accept=True, db=self.db
            )


class BulkLeagueInvitationTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_db()
        seed(
            self.db,
            LEAGUES,
            "l1",
            {"name": "Winter League", "admin_user_id": "admin", "club_id": "c1"},
        )
        for uid, rating in (("admin", 1700), ("bob", 1600), ("carol", None), ("dave", 1400)):
            seed(self.db, USERS, uid, {"username": uid.title(), "rating": rating})
        seed(
            self.db,
            LEAGUE_PARTICIPANTS,
            "existing",
            {"league_id": "l1", "user_id": "dave", "status": PARTICIPANT_ACTIVE},
        )

    def _by_user(self) -> dict:
        return {p["user_id"]: p for p in docs(self.db, LEAGUE_PARTICIPANTS).values()}

    def test_bulk_invite(self) -> None:
        result = InvitationService.send_bulk_league_invitations(
            "l1", ["admin", "bob", "carol", "dave", "ghost"], ADMIN, db=self.db
        )

        self.assertEqual(result["invited_count"], 3)
        self.assertEqual(result["messages_sent"], 2)
        self.assertTrue(result["admin_joined"])

        participants = self._by_user()
        self.assertEqual(participants["admin"]["status"], PARTICIPANT_ACTIVE)
        self.assertEqual(participants["bob"]["status"], PARTICIPANT_INVITED)
        self.assertEqual(participants["carol"]["rating"], 1500)
        self.assertNotIn("ghost", participants)

        messages = list(docs(self.db, MESSAGES).values())
        self.assertEqual(sorted(m["recipient_id"] for m in messages), ["bob", "carol"])
        for message in messages:
            self.assertEqual(message["subject"], "League Invitation: Winter League")
            self.assertEqual(message["related_entity_type"], "LeagueParticipant")
            related = docs(self.db, LEAGUE_PARTICIPANTS)[message["related_entity_id"]]
            self.assertEqual(related["user_id"], message["recipient_id"])

    def test_everyone_already_invited(self) -> None:
        with self.assertRaises(ValidationError):
            InvitationService.send_bulk_league_invitations("l1", ["dave"], ADMIN, db=self.db)
        with self.assertRaises(ValidationError):
            InvitationService.send_bulk_league_invitations("l1", [], ADMIN, db=self.db)

    def test_only_league_admin_can_invite(self) -> None:
        with self.assertRaises(PermissionDeniedError):
            InvitationService.send_bulk_league_invitations("l1", ["carol"], BOB, db=self.db)


class CleanupTestCase(unittest.TestCase):
    def test_cleanup_stale_league_invitations(self) -> None:
        db = make_db()
        seed(
            db,
            LEAGUE_PARTICIPANTS,
            "pending",
            {"league_id": "l1", "user_id": "bob", "status": PARTICIPANT_INVITED},
        )
        seed(
            db,
            LEAGUE_PARTICIPANTS,
            "joined",
            {"league_id": "l1", "user_id": "carol", "status": PARTICIPANT_ACTIVE},
        )
        seed(db, MESSAGES, "m_pending", invitation_message("pending", "LeagueParticipant"))
        seed(db, MESSAGES, "m_joined", invitation_message("joined", "LeagueParticipant"))
        seed(db, MESSAGES, "m_gone", invitation_message("deleted", "LeagueParticipant"))
        seed(db, MESSAGES, "m_club", invitation_message("deleted", "ClubMember"))

        result = InvitationService.cleanup_stale_invitations(get_kind("league"), db=db)

        self.assertEqual(result["total_messages_found"], 3)
        self.assertEqual(result["deleted_messages"], 1)
        self.assertEqual(result["marked_read"], 1)
        messages = docs(db, MESSAGES)
        self.assertNotIn("m_gone", messages)
        self.assertIn("m_club", messages)
        self.assertEqual(messages["m_joined"]["status"], MESSAGE_READ)
        self.assertEqual(messages["m_pending"]["status"], MESSAGE_UNREAD)


if __name__ == "__main__":
    unittest.main()
