"""Service layer for notification messages."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from flask import has_app_context

from boneclub.core.constants import (
    MESSAGE_READ,
    MESSAGE_TYPE_NOTIFICATION,
    MESSAGE_UNREAD,
    MESSAGES,
    SYSTEM_SENDER_ID,
    SYSTEM_SENDER_USERNAME,
    USERS,
)
from boneclub.core.settings import get_setting
from boneclub.core.timestamps import to_utc_datetime
from boneclub.errors import AppError
from boneclub.utils import EmailError, send_email

if TYPE_CHECKING:
    from google.cloud.firestore_v1.batch import WriteBatch

    from boneclub.core.store import EntityStore


def format_match_time(value: Any) -> str:
    """Human-readable UTC match time, e.g. 'Saturday, March 01, 2025 at 06:00 PM UTC'."""
    return to_utc_datetime(value).strftime("%A, %B %d, %Y at %I:%M %p UTC")


class NotificationService:
    """Builds and stores the system notifications users see in their inbox."""

    @staticmethod
    def build(
        recipient_id: str,
        recipient_username: str | None,
        subject: str,
        body: str,
        related_entity_id: str | None = None,
        related_entity_type: str | None = None,
        **extra: Any,
    ) -> dict[str, Any]:
        """Return a notification message record."""
        message = {
            "sender_id": SYSTEM_SENDER_ID,
            "sender_username": get_setting(
                "NOTIFICATION_SENDER_USERNAME", SYSTEM_SENDER_USERNAME
            ),
            "recipient_id": recipient_id,
            "recipient_username": recipient_username,
            "type": MESSAGE_TYPE_NOTIFICATION,
            "subject": subject,
            "body": body,
            "related_entity_id": related_entity_id,
            "related_entity_type": related_entity_type,
            "status": MESSAGE_UNREAD,
        }
        message.update(extra)
        return message

    @staticmethod
    def emit(
        store: EntityStore, message: dict[str, Any], batch: WriteBatch | None = None
    ) -> dict[str, Any]:
        """Write one notification, as part of `batch` when given."""
        return store.create(MESSAGES, message, batch=batch)

    @staticmethod
    def emit_many(store: EntityStore, messages: list[dict[str, Any]]) -> int:
        """Write several notifications in one batch."""
        if not messages:
            return 0
        batch = store.batch()
        for message in messages:
            store.create(MESSAGES, message, batch=batch)
        store.commit(batch)
        return len(messages)

    @staticmethod
    def mark_read(store: EntityStore, message_id: str) -> None:
        """Flag a message as read."""
        store.update(MESSAGES, message_id, {"status": MESSAGE_READ})

    @staticmethod
    def mark_related_read(
        store: EntityStore,
        related_entity_id: str,
        related_entity_type: str,
        recipient_id: str | None = None,
    ) -> int:
        """Mark unread notifications about an entity as read; returns how many."""
        filters: dict[str, Any] = {
            "related_entity_id": related_entity_id,
            "related_entity_type": related_entity_type,
            "status": MESSAGE_UNREAD,
        }
        if recipient_id:
            filters["recipient_id"] = recipient_id
        messages = store.filter(MESSAGES, **filters)
        return store.update_many(
            MESSAGES, [m["id"] for m in messages], {"status": MESSAGE_READ}
        )

    @staticmethod
    def send_scheduled_match_email(
        store: EntityStore,
        recipient_id: str,
        opponent_username: str,
        scheduled_date: str,
    ) -> bool:
        """Best-effort e-mail telling a player their match is scheduled."""
        if not has_app_context():
            return False
        try:
            user = store.find(USERS, recipient_id)
        except AppError as e:
            logging.error(f"Could not look up {recipient_id} for match email: {e}")
            return False
        email = user.get("email") if user else None
        if not email:
            return False
        try:
            send_email(
                to=email,
                subject=f"Match scheduled vs {opponent_username}",
                body=(
                    f"Your league match against {opponent_username} is scheduled "
                    f"for {format_match_time(scheduled_date)}."
                ),
            )
        except EmailError as e:
            logging.error(f"Scheduled match email to {recipient_id} failed: {e}")
            return False
        return True
