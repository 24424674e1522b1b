"""
application.context - Session-scoped context.

Replaces an ambient "current user" lookup. The top-level controller (CLI
adapter, tests) owns one SessionContext, begins it on login or restore and
ends it on logout; every service receives it explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
from uuid import uuid4

from domain.entities import UserDatabaseEntry
from domain.models import Profile


@dataclass
class SessionContext:
    """Per-session context passed through all layers.

    Attributes:
        username:    Logged-in user, or None when logged out.
        user_data:   Cached copy of the user's persisted record. Services
                     refresh it after every write.
        language:    UI / answer language ("zh" or "en").
        session_id:  Unique per session, for tracing/logging.
    """
    username: Optional[str] = None
    user_data: Optional[UserDatabaseEntry] = None
    language: str = "zh"
    session_id: str = field(default_factory=lambda: uuid4().hex)

    @property
    def is_authenticated(self) -> bool:
        return self.username is not None

    @property
    def profile(self) -> Optional[Profile]:
        return self.user_data.profile if self.user_data else None

    @property
    def has_profile(self) -> bool:
        profile = self.profile
        return profile is not None and profile.is_configured

    def begin(self, username: str, user_data: Optional[UserDatabaseEntry]) -> None:
        """Attach a logged-in user to this context."""
        self.username = username
        self.user_data = user_data
        self.session_id = uuid4().hex

    def end(self) -> None:
        """Detach the user (logout). Persisted data is untouched."""
        self.username = None
        self.user_data = None
