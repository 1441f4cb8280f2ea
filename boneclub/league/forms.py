"""Forms for the league blueprint."""

from flask_wtf import FlaskForm
from wtforms import (
    BooleanField,
    Field,
    IntegerField,
    SelectField,
    StringField,
    TextAreaField,
)
from wtforms.validators import DataRequired, Length, NumberRange, Optional

from boneclub.core.constants import (
    FORMAT_DOUBLE_ROUND_ROBIN,
    FORMAT_ROUND_ROBIN,
    FORMAT_SWISS,
)


class StringListField(Field):
    """Collects every submitted value for the field as a list of strings."""

    def process_formdata(self, valuelist):
        """Keep the non-blank submitted values in order."""
        self.data = [v for v in valuelist if v is not None and str(v).strip()]

    def _value(self):
        return ",".join(self.data or [])


class LeagueForm(FlaskForm):
    """Form for creating a league."""

    name = StringField("League Name", validators=[DataRequired(), Length(max=120)])

    description = TextAreaField("Description", validators=[Optional()])

    format = SelectField(
        "League Format",
        choices=[
            (FORMAT_ROUND_ROBIN, "Round Robin"),
            (FORMAT_DOUBLE_ROUND_ROBIN, "Double Round Robin"),
            (FORMAT_SWISS, "Swiss"),
        ],
        default=FORMAT_ROUND_ROBIN,
    )

    players_per_division = IntegerField(
        "Players per Division", default=2, validators=[NumberRange(min=2)]
    )

    default_target_score = IntegerField(
        "Match Length (points)", validators=[Optional(), NumberRange(min=1)]
    )

    default_use_clock = BooleanField("Use Clock")

    start_date = StringField("Start Date", validators=[Optional()])
    end_date = StringField("End Date", validators=[Optional()])
    registration_end_date = StringField("Registration Closes", validators=[Optional()])

    club_id = StringField("Club", validators=[Optional()])
    masthead_url = StringField("Masthead Image URL", validators=[Optional()])


class ProposalForm(FlaskForm):
    """Form for proposing match times to an opponent."""

    league_match_id = StringField("Match", validators=[DataRequired()])
    proposed_datetimes = StringListField("Proposed Times")
    custom_message = TextAreaField("Message", validators=[Optional(), Length(max=500)])


class RespondProposalForm(FlaskForm):
    """Form for accepting or declining a proposal."""

    decision = SelectField(
        "Decision",
        choices=[("accept", "Accept"), ("decline", "Decline")],
        validators=[DataRequired()],
    )
    selected_time = StringField("Selected Time", validators=[Optional()])
    message = TextAreaField("Message", validators=[Optional(), Length(max=500)])


class ReportResultForm(FlaskForm):
    """Form for reporting the final score of a league match."""

    player_1_score = IntegerField("Player 1 Score", validators=[NumberRange(min=0)])
    player_2_score = IntegerField("Player 2 Score", validators=[NumberRange(min=0)])
