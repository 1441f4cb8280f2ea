"""Core module for the boneclub application."""

from .store import EntityStore
from .types import CurrentUser, FirestoreDocument

__all__ = ["CurrentUser", "EntityStore", "FirestoreDocument"]
