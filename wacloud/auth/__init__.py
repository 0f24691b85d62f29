"""Request authentication for the Graph API."""

from wacloud.auth.provider import (
    AuthProvider,
    InMemoryTokenStore,
    StoredTokenAuth,
    TokenAuth,
    TokenStore,
)

__all__ = [
    "AuthProvider",
    "InMemoryTokenStore",
    "StoredTokenAuth",
    "TokenAuth",
    "TokenStore",
]
