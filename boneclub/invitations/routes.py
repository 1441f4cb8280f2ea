"""Routes for the invitations blueprint."""

from __future__ import annotations

from typing import Any

from flask import current_app, jsonify

from boneclub.auth.decorators import login_required
from boneclub.auth.utils import current_user
from boneclub.utils import jsonable, validate_form

from . import bp
from .forms import BulkLeagueInviteForm
from .services import InvitationService, get_kind


@bp.route("/<string:kind>/<string:invitation_id>/accept", methods=["POST"])
@login_required
def accept_invitation(kind: str, invitation_id: str) -> Any:
    """Accept a league, tournament or club invitation."""
    result = InvitationService.respond(
        get_kind(kind), invitation_id, current_user(), accept=True
    )
    return jsonify(jsonable(result))


@bp.route("/<string:kind>/<string:invitation_id>/decline", methods=["POST"])
@login_required
def decline_invitation(kind: str, invitation_id: str) -> Any:
    """Decline an invitation, removing it."""
    result = InvitationService.respond(
        get_kind(kind), invitation_id, current_user(), accept=False
    )
    return jsonify(jsonable(result))


@bp.route("/leagues/<string:league_id>", methods=["POST"])
@login_required
def invite_to_league(league_id: str) -> Any:
    """Invite several users to a league."""
    form = BulkLeagueInviteForm()
    validate_form(form)
    result = InvitationService.send_bulk_league_invitations(
        league_id, form.user_ids.data or [], current_user()
    )
    return jsonify(jsonable(result))


@bp.route("/<string:kind>/cleanup", methods=["POST"])
@login_required(admin_required=True)
def cleanup_invitations(kind: str) -> Any:
    """Admin tool: tidy invitation messages that no longer need an answer."""
    result = InvitationService.cleanup_stale_invitations(get_kind(kind))
    current_app.logger.info(result["message"])
    return jsonify(jsonable(result))
