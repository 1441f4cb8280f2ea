"""Helpers for reading the logged-in user."""

from flask import g

from boneclub.core.types import CurrentUser


def current_user():
    """The acting user for this request, built from the user loaded into `g`."""
    return CurrentUser.from_user_doc(g.user)
