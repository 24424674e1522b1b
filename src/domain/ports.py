"""
domain.ports - Abstract interfaces (Protocols) for all system boundaries.

These define WHAT the system needs without specifying HOW. Infrastructure
modules provide concrete implementations. Application services depend only
on these protocols, never on concrete classes.

Using typing.Protocol (structural typing) instead of ABC: any class that
implements the methods satisfies the port without explicit inheritance.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, runtime_checkable

from domain.models import (
    Article,
    ChatTurn,
    ClinicalTrial,
    Credentials,
    Drug,
    FetchResult,
    UserIdentity,
)
from domain.entities import UserDatabaseEntry


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------

@runtime_checkable
class AnalyzableEntity(Protocol):
    """Anything the consultation engine can explain and chat about.

    Implemented by Article, ClinicalTrial and Drug.
    """

    kind: str

    @property
    def entity_id(self) -> str: ...

    @property
    def display_title(self) -> str: ...

    def prompt_context(self, language: str = "en") -> str: ...

    def display_fields(self) -> dict[str, Any]: ...


@runtime_checkable
class ArticleSourcePort(Protocol):
    """Recent research articles for a lookback window in months."""

    async def fetch(self, months: int) -> FetchResult: ...
    async def search(self, months: int) -> list[Article]: ...
    def samples(self) -> list[Article]: ...


@runtime_checkable
class TrialSourcePort(Protocol):
    """Actively relevant clinical trials. Empty list on failure."""

    async def list_trials(self) -> list[ClinicalTrial]: ...


@runtime_checkable
class DrugSourcePort(Protocol):
    """Approved therapies reference table."""

    async def list_drugs(self) -> list[Drug]: ...


# ---------------------------------------------------------------------------
# AI Component Ports
# ---------------------------------------------------------------------------

@runtime_checkable
class TextGeneratorPort(Protocol):
    """Opaque text-completion service.

    Implementations raise GenerationError; callers decide on fallbacks.
    """

    async def generate(self, prompt: str) -> str: ...

    async def chat(
        self,
        system_instruction: str,
        history: Sequence[ChatTurn],
        message: str,
    ) -> str: ...


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

@runtime_checkable
class Authenticator(Protocol):
    """Verify credentials. Raises AuthenticationError on mismatch.

    The static allow-list implementation can be swapped for a real identity
    service without touching AuthenticationService.
    """

    async def authenticate(self, credentials: Credentials) -> UserIdentity: ...


# ---------------------------------------------------------------------------
# Repository Ports
# ---------------------------------------------------------------------------

@runtime_checkable
class KeyValueStore(Protocol):
    """String-to-string durable storage."""

    async def get(self, key: str) -> str | None: ...
    async def set(self, key: str, value: str) -> None: ...
    async def delete(self, key: str) -> None: ...


@runtime_checkable
class UserStore(Protocol):
    """Current-user pointer plus one serialized record per user."""

    async def get_current_user(self) -> str | None: ...
    async def set_current_user(self, username: str) -> None: ...
    async def clear_current_user(self) -> None: ...
    async def load_entry(self, username: str) -> UserDatabaseEntry | None: ...
    async def save_entry(self, entry: UserDatabaseEntry) -> None: ...
    async def get_user_data(self) -> UserDatabaseEntry | None: ...
