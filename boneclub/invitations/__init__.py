"""Invitations blueprint."""

from flask import Blueprint

bp = Blueprint("invitations", __name__, url_prefix="/invitations")

from . import routes  # noqa: E402, F401
from .services import INVITATION_KINDS, InvitationService  # noqa: E402

__all__ = ["INVITATION_KINDS", "InvitationService", "routes"]
