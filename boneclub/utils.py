"""Utility functions for the application."""

import datetime
import smtplib

from flask import current_app
from flask_mail import Message

from .core.constants import SMTP_AUTH_ERROR_CODE
from .errors import ValidationError
from .extensions import mail


class EmailError(Exception):
    """Base class for email errors."""

    pass


def send_email(to, subject, body):
    """Send a plain-text email to a recipient.

    Raises:
        EmailError: If sending the email fails.
    """
    msg = Message(
        subject,
        recipients=[to],
        body=body,
        sender=current_app.config["MAIL_DEFAULT_SENDER"],
    )
    try:
        mail.send(msg)
    except smtplib.SMTPAuthenticationError as e:
        if e.smtp_code == SMTP_AUTH_ERROR_CODE:
            raise EmailError(
                "Authentication failed. Google requires you to use an App Password. "
                "Please verify your MAIL_USERNAME and MAIL_PASSWORD settings."
            ) from e
        raise EmailError(f"SMTP Authentication failed: {e}") from e
    except Exception as e:
        raise EmailError(f"Failed to send email: {e}") from e


def jsonable(value):
    """Convert store records into something `jsonify` accepts.

    Datetimes become ISO strings; unresolved server sentinels and other
    foreign objects become None.
    """
    if isinstance(value, dict):
        return {k: jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(v) for v in value]
    if isinstance(value, datetime.datetime):
        return value.isoformat()
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return None


def validate_form(form):
    """Raise ValidationError with the first field error of an invalid form."""
    if form.validate_on_submit():
        return
    if not form.errors:
        raise ValidationError("Request body is required.")
    name, messages = next(iter(form.errors.items()))
    label = form[name].label.text if name in form else name
    raise ValidationError(f"{label}: {messages[0]}")
