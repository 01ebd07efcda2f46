"""
Campus Events — Data Models.

Events and profiles live in Firestore; these dataclasses are the canonical
in-memory shape. Stored documents keep the mobile app's camelCase field names,
so every model converts to and from that layout explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class EventType(str, Enum):
    ASSIGNMENT = "Assignment"
    ENTERTAINMENT = "Entertainment"
    EXAM = "Exam"
    SPECIAL = "Special"
    SPORT = "Sport"
    INDUSTRY_VISIT = "Industry Visit"


# Named defaults for fields that older documents may not carry.
EVENT_DEFAULTS: dict[str, Any] = {
    "description": "",
    "imageUrl": None,
    "isFavorite": False,
    "isCompleted": False,
}

# Stored field name for each mutable Event attribute.
EVENT_FIELD_NAMES: dict[str, str] = {
    "type": "type",
    "title": "title",
    "date": "date",
    "start_time": "startTime",
    "end_time": "endTime",
    "location": "location",
    "description": "description",
    "image_uri": "imageUrl",
    "is_favorite": "isFavorite",
    "is_completed": "isCompleted",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _read_timestamp(value: Any, now: datetime) -> datetime:
    """Firestore hands back datetimes; anything else unreadable becomes now."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return now
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return now


def _read_event_type(value: Any) -> EventType:
    try:
        return EventType(value)
    except ValueError:
        return EventType.SPECIAL


@dataclass
class Event:
    """One calendar item owned by exactly one user.

    Favorite and completed are independent flags: an event can be both.
    """

    id: str
    user_id: str
    type: EventType
    title: str
    date: str                  # ISO date YYYY-MM-DD
    start_time: str            # display string, not validated
    end_time: str
    location: str
    description: str = ""
    image_url: str | None = None
    is_favorite: bool = False
    is_completed: bool = False
    created_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def from_document(
        cls, doc_id: str, data: dict, now: datetime | None = None,
    ) -> Event:
        """Rebuild an Event from a stored document, backfilling EVENT_DEFAULTS.

        A missing or unreadable createdAt becomes ``now`` (defaults to the
        current UTC time).
        """
        if now is None:
            now = _utcnow()
        merged = {**EVENT_DEFAULTS, **{k: v for k, v in data.items() if v is not None}}
        return cls(
            id=doc_id,
            user_id=merged.get("userId", ""),
            type=_read_event_type(merged.get("type")),
            title=merged.get("title", ""),
            date=merged.get("date", ""),
            start_time=merged.get("startTime", ""),
            end_time=merged.get("endTime", ""),
            location=merged.get("location", ""),
            description=merged["description"],
            image_url=merged["imageUrl"],
            is_favorite=bool(merged["isFavorite"]),
            is_completed=bool(merged["isCompleted"]),
            created_at=_read_timestamp(data.get("createdAt"), now),
        )


@dataclass
class UserProfile:
    """Profile document mirrored into the ``users`` collection at sign-up."""

    uid: str
    email: str
    first_name: str
    last_name: str
    photo_url: str | None = None
    created_at: str = ""
    email_verified: bool = False

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_document(self) -> dict:
        return {
            "uid": self.uid,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "photoURL": self.photo_url,
            "createdAt": self.created_at,
            "emailVerified": self.email_verified,
        }

    @classmethod
    def from_document(cls, data: dict) -> UserProfile:
        return cls(
            uid=data.get("uid", ""),
            email=data.get("email", ""),
            first_name=data.get("firstName", ""),
            last_name=data.get("lastName", ""),
            photo_url=data.get("photoURL"),
            created_at=data.get("createdAt", ""),
            email_verified=bool(data.get("emailVerified", False)),
        )


# Python attribute name → stored profile field name
PROFILE_FIELD_NAMES: dict[str, str] = {
    "first_name": "firstName",
    "last_name": "lastName",
    "photo_url": "photoURL",
    "email_verified": "emailVerified",
}


@dataclass
class AccountSession:
    """The signed-in backend identity and its tokens."""

    uid: str
    email: str
    id_token: str = ""
    refresh_token: str = ""
    display_name: str = ""
    email_verified: bool = False
    photo_url: str | None = None
