"""Bearer-token auth providers consumed by the request pipeline."""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from wacloud.client.errors import AuthError

logger = logging.getLogger(__name__)


@runtime_checkable
class AuthProvider(Protocol):
    def get_headers(self) -> dict[str, str]:
        """Headers to merge into the next request. Raises AuthError when unusable."""
        ...

    def is_valid(self) -> bool:
        ...


class TokenStore(Protocol):
    def save(self, token: str) -> None: ...

    def get(self) -> str | None: ...

    def delete(self) -> None: ...

    def has(self) -> bool: ...


def _missing_token() -> AuthError:
    return AuthError(
        "Authentication token is missing or empty", code="missing_token",
    )


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TokenAuth:
    """Fixed access token supplied at construction."""

    def __init__(self, access_token: str) -> None:
        if not access_token or not access_token.strip():
            logger.error("Authentication token is missing or empty")
            raise _missing_token()
        self._token = access_token.strip()

    def get_headers(self) -> dict[str, str]:
        return _bearer(self._token)

    def is_valid(self) -> bool:
        return True


class InMemoryTokenStore:
    """Process-local token holder; nothing survives a restart."""

    def __init__(self, token: str | None = None) -> None:
        self._token = token or None

    def save(self, token: str) -> None:
        self._token = token or None
        logger.debug("Token saved to in-memory store")

    def get(self) -> str | None:
        return self._token

    def delete(self) -> None:
        self._token = None
        logger.debug("Token deleted from in-memory store")

    def has(self) -> bool:
        return self._token is not None


class StoredTokenAuth:
    """Reads the token from a store on every request so rotations apply immediately."""

    def __init__(self, store: TokenStore) -> None:
        self._store = store

    def get_headers(self) -> dict[str, str]:
        token = self._store.get()
        if not token or not token.strip():
            raise _missing_token()
        return _bearer(token.strip())

    def is_valid(self) -> bool:
        token = self._store.get()
        return bool(token and token.strip())
