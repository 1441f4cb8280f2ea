"""Notification messages sent to users by the system."""

from .services import NotificationService

__all__ = ["NotificationService"]
