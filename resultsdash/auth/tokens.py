"""Bearer token providers injected into `ApiClient`."""

from __future__ import annotations

from typing import Callable, Optional, Protocol, runtime_checkable

from resultsdash.auth.models import SessionUser


@runtime_checkable
class TokenProvider(Protocol):
    def get_token(self) -> Optional[str]: ...


class StaticTokenProvider:
    """Fixed token (or none at all, e.g. for the login call)."""

    def __init__(self, token: Optional[str] = None) -> None:
        self._token = token

    def get_token(self) -> Optional[str]:
        return self._token


class SessionTokenProvider:
    """
    Reads the current session on every call.

    `loader` returns the active `SessionUser` or None when nobody is signed in. It may
    raise (unreadable session file, bad signature); `ApiClient` reports that as an
    authentication error.
    """

    def __init__(self, loader: Callable[[], Optional[SessionUser]]) -> None:
        self._loader = loader

    def get_token(self) -> Optional[str]:
        user = self._loader()
        if user is None:
            return None
        return user.access_token or None
