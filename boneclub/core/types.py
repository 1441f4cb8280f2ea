"""Core data types for the boneclub application."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, TypedDict


class _FirestoreDocumentBase(TypedDict):
    id: str
    created_date: Any


class FirestoreDocument(_FirestoreDocumentBase, total=False):
    """Generic Firestore document structure."""

    updated_date: Any


@dataclass(frozen=True)
class CurrentUser:
    """The acting user, passed explicitly into every service call."""

    uid: str
    username: str
    is_admin: bool = False
    email: Optional[str] = None

    @classmethod
    def from_user_doc(cls, data: dict[str, Any]) -> CurrentUser:
        """Build the acting user from a loaded `users` document."""
        return cls(
            uid=data["uid"],
            username=data.get("username") or data.get("name") or data["uid"],
            is_admin=bool(data.get("isAdmin", False)),
            email=data.get("email"),
        )
