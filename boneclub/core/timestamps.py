"""Normalisation of the timestamps exchanged with the store."""

from __future__ import annotations

import datetime
from typing import Any

from boneclub.errors import ValidationError


def to_utc_datetime(value: Any) -> datetime.datetime:
    """Parse a datetime or ISO-8601 string into an aware UTC datetime.

    Naive values are taken to already be in UTC.
    """
    if isinstance(value, datetime.datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValidationError("A date/time value is required.")
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.datetime.fromisoformat(text)
        except ValueError as e:
            raise ValidationError(f"Invalid date/time: {value!r}.") from e
    else:
        raise ValidationError(f"Invalid date/time: {value!r}.")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    return dt.astimezone(datetime.timezone.utc)


def normalize_timestamp(value: Any) -> str:
    """Return the canonical stored form of a timestamp, e.g. ``2025-03-01T18:00:00Z``."""
    return to_utc_datetime(value).isoformat().replace("+00:00", "Z")


def sort_key(value: Any) -> str:
    """Key for ordering stored timestamps that may be missing or unresolved."""
    if isinstance(value, datetime.datetime):
        return normalize_timestamp(value)
    if isinstance(value, str):
        return value
    return ""
