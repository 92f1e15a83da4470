from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from das_audit.config import AuditSettings
from das_audit.errors import InteractionRequiredError


@dataclass(frozen=True, slots=True)
class Identity:
    username: str


class IdentityProvider(Protocol):
    def get_active_identity(self) -> Identity | None: ...

    async def acquire_access_token(self, identity: Identity) -> str: ...


class StaticIdentityProvider:
    """Identity and bearer token supplied up front, e.g. from settings.

    Token acquisition fails with InteractionRequiredError when no token was
    provided, which is how a caller learns the user must sign in again.
    """

    def __init__(self, username: str | None, token: str | None) -> None:
        self._username = username
        self._token = token

    @classmethod
    def from_settings(cls, settings: AuditSettings) -> StaticIdentityProvider:
        return cls(settings.account, settings.access_token)

    def get_active_identity(self) -> Identity | None:
        if not self._username:
            return None
        return Identity(username=self._username)

    async def acquire_access_token(self, identity: Identity) -> str:
        if not self._token:
            raise InteractionRequiredError(
                f"No access token available for {identity.username}; sign in again"
            )
        return self._token
