"""
infrastructure.auth.static_authenticator - Fixed allow-list of demo accounts.

Implements Authenticator port. Plain-text comparison against an in-memory
list; there is no hashing and no external identity service. Swap this class
for a real provider in the factory without touching AuthenticationService.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from domain.exceptions import AuthenticationError
from domain.models import Credentials, UserIdentity

logger = logging.getLogger(__name__)


def default_accounts() -> dict[str, str]:
    """The nine shared demo accounts: DMDsetup#1..9 / 52011..52019."""
    return {f"DMDsetup#{i + 1}": str(52011 + i) for i in range(9)}


class StaticAllowListAuthenticator:
    """Authenticate against a fixed username -> password mapping."""

    def __init__(self, accounts: Optional[dict[str, str]] = None):
        self._accounts = dict(accounts) if accounts is not None else default_accounts()

    @property
    def usernames(self) -> Iterable[str]:
        return self._accounts.keys()

    async def authenticate(self, credentials: Credentials) -> UserIdentity:
        expected = self._accounts.get(credentials.username)
        if expected is None or expected != credentials.password:
            logger.info("Rejected login for '%s'", credentials.username)
            raise AuthenticationError("Invalid username or password.")
        return UserIdentity(username=credentials.username)
