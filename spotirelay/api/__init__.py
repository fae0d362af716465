"""Spotify accounts and Web API access for SpotiRelay."""

from .errors import (AuthError, AuthExpired, CodeExchangeFailed, NoRefreshToken,
                     RefreshRejected, RelayError, RemoteAPIError, TransportError)
from .executor import ApiRequest, AuthenticatedExecutor, AuthOutcome, OutcomeKind
from .oauth import TokenRefresher
from .spotify import SpotifyClient

__all__ = [
    "ApiRequest",
    "AuthError",
    "AuthExpired",
    "AuthOutcome",
    "AuthenticatedExecutor",
    "CodeExchangeFailed",
    "NoRefreshToken",
    "OutcomeKind",
    "RefreshRejected",
    "RelayError",
    "RemoteAPIError",
    "SpotifyClient",
    "TokenRefresher",
    "TransportError",
]
