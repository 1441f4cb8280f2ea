"""Routes for the league blueprint."""

from __future__ import annotations

from typing import Any

from flask import current_app, jsonify

from boneclub.auth.decorators import login_required
from boneclub.auth.utils import current_user
from boneclub.errors import ValidationError
from boneclub.utils import jsonable, validate_form

from . import bp
from .forms import LeagueForm, ProposalForm, ReportResultForm, RespondProposalForm
from .models import LeagueSubmission, ProposalSubmission
from .proposals import ProposalService
from .services import LeagueService


def respond(payload: Any, status: int = 200) -> Any:
    """JSON response for a service result."""
    return jsonify(jsonable(payload)), status


@bp.route("/", methods=["POST"])
@login_required
def create_league() -> Any:
    """Create a draft league administered by the current user."""
    form = LeagueForm()
    validate_form(form)
    submission = LeagueSubmission(
        name=form.name.data,
        club_id=form.club_id.data or None,
        description=form.description.data or "",
        format=form.format.data,
        players_per_division=form.players_per_division.data,
        default_target_score=form.default_target_score.data,
        default_use_clock=form.default_use_clock.data,
        start_date=form.start_date.data or None,
        end_date=form.end_date.data or None,
        registration_end_date=form.registration_end_date.data or None,
        masthead_url=form.masthead_url.data or None,
    )
    league = LeagueService.create_league(submission, current_user())
    return respond(league, 201)


@bp.route("/<string:league_id>", methods=["GET"])
@login_required
def view_league(league_id: str) -> Any:
    """League details with every division's standings."""
    return respond(LeagueService.get_league_overview(league_id))


@bp.route("/<string:league_id>", methods=["DELETE"])
@login_required
def delete_league(league_id: str) -> Any:
    """Delete a league and everything that belongs to it."""
    return respond(LeagueService.delete_league(league_id, current_user()))


@bp.route("/<string:league_id>/divisions/<string:division_id>", methods=["GET"])
@login_required
def division_standings(league_id: str, division_id: str) -> Any:
    """Standings and open fixtures for one division."""
    return respond(LeagueService.get_division_standings(league_id, division_id))


@bp.route("/<string:league_id>/open_registration", methods=["POST"])
@login_required
def open_registration(league_id: str) -> Any:
    """Open a draft league for registration."""
    return respond(LeagueService.open_registration(league_id, current_user()))


@bp.route("/<string:league_id>/activate_participants", methods=["POST"])
@login_required
def activate_participants(league_id: str) -> Any:
    """Promote registered participants to active."""
    count = LeagueService.activate_participants(league_id, current_user())
    return respond({"message": f"Activated {count} participants.", "activated": count})


@bp.route("/<string:league_id>/generate_divisions", methods=["POST"])
@login_required
def generate_divisions(league_id: str) -> Any:
    """Seed participants into divisions."""
    result = LeagueService.generate_divisions(league_id, current_user())
    current_app.logger.info(result["message"])
    return respond(result)


@bp.route("/<string:league_id>/start", methods=["POST"])
@login_required
def start_league(league_id: str) -> Any:
    """Create fixtures and start the league."""
    return respond(LeagueService.start_league(league_id, current_user()))


@bp.route("/<string:league_id>/reset", methods=["POST"])
@login_required
def reset_league(league_id: str) -> Any:
    """Return a league to draft, discarding divisions and fixtures."""
    return respond(LeagueService.reset_league(league_id, current_user()))


@bp.route("/<string:league_id>/repair_usernames", methods=["POST"])
@login_required
def repair_usernames(league_id: str) -> Any:
    """Fill in player usernames missing from the league's matches."""
    return respond(LeagueService.repair_match_usernames(league_id, current_user()))


@bp.route("/matches/<string:match_id>/proposal", methods=["GET"])
@login_required
def active_proposal(match_id: str) -> Any:
    """The pending proposal for a match, if any."""
    return respond({"proposal": ProposalService.get_active_proposal(match_id)})


@bp.route("/matches/<string:match_id>/proposals", methods=["POST"])
@login_required
def propose_times(match_id: str) -> Any:
    """Offer match times to the opponent."""
    form = ProposalForm()
    validate_form(form)
    if form.league_match_id.data != match_id:
        raise ValidationError("Match id in the body does not match the URL.")
    submission = ProposalSubmission(
        league_match_id=match_id,
        proposed_datetimes=form.proposed_datetimes.data or [],
        custom_message=form.custom_message.data or "",
    )
    proposal = ProposalService.create_proposal(submission, current_user())
    return respond(proposal, 201)


@bp.route("/proposals/pending", methods=["GET"])
@login_required
def pending_proposals() -> Any:
    """Pending proposals the current user sent or received."""
    user = current_user()
    return respond({"proposals": ProposalService.list_pending_for_user(user.uid)})


@bp.route("/proposals/<string:proposal_id>/respond", methods=["POST"])
@login_required
def respond_to_proposal(proposal_id: str) -> Any:
    """Accept or decline a proposal."""
    form = RespondProposalForm()
    validate_form(form)
    result = ProposalService.respond(
        proposal_id,
        current_user(),
        form.decision.data,
        selected_time=form.selected_time.data or None,
        message=form.message.data or "",
    )
    return respond(result)


@bp.route("/matches/<string:match_id>/result", methods=["POST"])
@login_required
def report_result(match_id: str) -> Any:
    """Report the final score of a match."""
    form = ReportResultForm()
    validate_form(form)
    match = LeagueService.report_result(
        match_id,
        form.player_1_score.data,
        form.player_2_score.data,
        current_user(),
    )
    return respond(match)


@bp.route("/matches/<string:match_id>/pending_result", methods=["POST"])
@login_required
def mark_pending_result(match_id: str) -> Any:
    """Flag a scheduled match as played, awaiting its score."""
    return respond(LeagueService.mark_pending_result(match_id, current_user()))


@bp.route("/matches/<string:match_id>/reset", methods=["POST"])
@login_required
def reset_match(match_id: str) -> Any:
    """Admin repair: return a match to unarranged."""
    return respond(LeagueService.reset_match(match_id, current_user()))
