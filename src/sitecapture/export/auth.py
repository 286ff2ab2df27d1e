"""Bearer credential adapter. The token exchange itself happens out-of-band."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol

from sitecapture.config import SessionConfig
from sitecapture.errors import AuthFailure


@dataclass(frozen=True)
class Credential:
    token: str
    expires_at: float | None = None  # unix time; None = no known expiry

    def is_valid(self, now: float | None = None) -> bool:
        if not self.token:
            return False
        if self.expires_at is None:
            return True
        return (now if now is not None else time.time()) < self.expires_at


class CredentialProvider(Protocol):
    def current(self) -> Credential | None: ...


class StaticCredentialProvider:
    """Holds one credential; replace() after the user re-authorizes."""

    def __init__(self, credential: Credential | None = None) -> None:
        self._credential = credential

    @classmethod
    def from_config(cls, config: SessionConfig) -> StaticCredentialProvider:
        if not config.access_token:
            return cls(None)
        return cls(Credential(config.access_token, config.token_expires_at))

    def current(self) -> Credential | None:
        return self._credential

    def replace(self, credential: Credential | None) -> None:
        self._credential = credential


def require_token(provider: CredentialProvider) -> str:
    """Return a usable bearer token or raise AuthFailure."""
    credential = provider.current()
    if credential is None or not credential.token:
        raise AuthFailure("not authorized: no access token, sign in again")
    if not credential.is_valid():
        raise AuthFailure("access token expired, sign in again")
    return credential.token
