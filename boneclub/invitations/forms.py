"""Forms for the invitations blueprint."""

from flask_wtf import FlaskForm

from boneclub.league.forms import StringListField


class BulkLeagueInviteForm(FlaskForm):
    """Form for inviting several users to a league."""

    user_ids = StringListField("Players")
