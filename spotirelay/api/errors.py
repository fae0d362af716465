"""
Exception hierarchy for SpotiRelay.

Auth errors are consumed by the executor (or the callback route); the rest
propagate to the route layer and become JSON error bodies.
"""

from typing import Any, Optional


class RelayError(Exception):
    """Base exception for all SpotiRelay errors."""


class AuthError(RelayError):
    """Raised when an OAuth token operation fails.

    Attributes:
        payload: Error body returned by Spotify, when there was one
    """

    def __init__(self, message: str, payload: Optional[Any] = None) -> None:
        super().__init__(message)
        self.payload = payload


class AuthExpired(AuthError):
    """Spotify rejected the access token (401 or an "expired" error body)."""

    def __init__(self, message: str, payload: Optional[Any] = None, status_code: Optional[int] = None) -> None:
        super().__init__(message, payload)
        self.status_code = status_code


class NoRefreshToken(AuthError):
    """A refresh was needed but no refresh token is stored."""


class RefreshRejected(AuthError):
    """The token endpoint refused the refresh grant or could not be reached."""


class CodeExchangeFailed(AuthError):
    """The authorization code could not be exchanged for tokens."""


class RemoteAPIError(RelayError):
    """Spotify answered with a non-auth error status.

    Attributes:
        status_code: HTTP status code from the API response
        payload: Parsed JSON error body, or the raw text when not JSON
    """

    def __init__(self, message: str, status_code: int, payload: Optional[Any] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class TransportError(RelayError):
    """Spotify could not be reached (connection error, timeout, ...)."""
