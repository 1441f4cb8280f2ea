"""League blueprint."""

from flask import Blueprint

bp = Blueprint("league", __name__, url_prefix="/leagues")

from . import routes  # noqa: E402, F401
from .models import League, LeagueMatch, LeagueMatchProposal  # noqa: E402
from .proposals import ProposalService  # noqa: E402
from .services import LeagueService  # noqa: E402

__all__ = [
    "League",
    "LeagueMatch",
    "LeagueMatchProposal",
    "LeagueService",
    "ProposalService",
    "routes",
]
