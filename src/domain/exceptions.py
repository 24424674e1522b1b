"""
domain.exceptions - Custom exception hierarchy for the DMD companion.

All domain-level errors inherit from DomainError so callers can catch
broad or specific exceptions as needed.
"""


class DomainError(Exception):
    """Base exception for all domain-level errors."""


class ProviderError(DomainError):
    """Raised when an upstream content provider cannot be reached or parsed."""


class GenerationError(DomainError):
    """Raised when the LLM provider fails to generate text."""


class RepositoryError(DomainError):
    """Raised when a storage operation fails."""


class AuthenticationError(DomainError):
    """Raised when authentication fails (unknown user or wrong password)."""


class ProfileRequiredError(DomainError):
    """Raised when personalized content is requested before a profile exists."""


class ProfileIncompleteError(DomainError):
    """Raised when a profile draft is missing age, ambulatory status or region."""


class ConversationBusyError(DomainError):
    """Raised when a chat message is sent while a reply is still outstanding."""


class ConsultationClosedError(DomainError):
    """Raised when a closed consultation is asked another question."""
