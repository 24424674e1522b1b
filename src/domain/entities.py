"""
domain.entities - Persistence-aware types (have IDs, dates).

These are the records written to the key-value store. They carry their own
to_dict()/from_dict() so the store only ever sees plain JSON-compatible
dicts, never domain objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from domain.models import ChatTurn, Profile


@dataclass
class SavedInquiry:
    """A saved consultation: the initial analysis plus the full chat."""
    id: str
    date: str
    entity_id: str
    entity_title: str
    summary: str
    chat_history: list[ChatTurn] = field(default_factory=list)
    kind: str = "article"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "kind": self.kind,
            "entity_id": self.entity_id,
            "entity_title": self.entity_title,
            "summary": self.summary,
            "chat_history": [t.to_dict() for t in self.chat_history],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SavedInquiry:
        return cls(
            id=str(data["id"]),
            date=data.get("date", ""),
            kind=data.get("kind", "article"),
            entity_id=data.get("entity_id", ""),
            entity_title=data.get("entity_title", ""),
            summary=data.get("summary", ""),
            chat_history=[ChatTurn.from_dict(t) for t in data.get("chat_history", [])],
        )


@dataclass
class UserDatabaseEntry:
    """Root persisted object per user. Inquiries are most-recent-first."""
    username: str
    profile: Optional[Profile] = None
    saved_inquiries: list[SavedInquiry] = field(default_factory=list)

    def find_inquiry(self, inquiry_id: str) -> int:
        """Return the index of the inquiry with this id, or -1."""
        for index, inquiry in enumerate(self.saved_inquiries):
            if inquiry.id == inquiry_id:
                return index
        return -1

    def to_dict(self) -> dict[str, Any]:
        return {
            "username": self.username,
            "profile": self.profile.to_dict() if self.profile else None,
            "saved_inquiries": [s.to_dict() for s in self.saved_inquiries],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserDatabaseEntry:
        profile = data.get("profile")
        return cls(
            username=data["username"],
            profile=Profile.from_dict(profile) if profile else None,
            saved_inquiries=[
                SavedInquiry.from_dict(s) for s in data.get("saved_inquiries", [])
            ],
        )
