#!/usr/bin/env python3
"""
🎟️ Spotify Token Store for SpotiRelay
Holds the single OAuth credential of the process in memory.

Expiry is never tracked here: the executor discovers it when Spotify rejects
a token and the refresher writes the replacement back.
"""

import logging
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Credential:
    """Access/refresh token pair obtained from one authorization."""
    access_token: Optional[str]
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None  # informational, as reported by Spotify
    scope: Optional[str] = None
    token_type: Optional[str] = None
    obtained_at: float = field(default_factory=time.time)
    refresh_count: int = 0

    @property
    def age_seconds(self) -> int:
        """Get credential age in seconds."""
        return int(time.time() - self.obtained_at)

    @property
    def has_refresh_token(self) -> bool:
        return bool(self.refresh_token)

    @classmethod
    def from_token_payload(cls, payload: Dict[str, Any]) -> "Credential":
        """Build a credential from a token endpoint JSON response."""
        expires_in = payload.get("expires_in")
        return cls(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            expires_in=int(expires_in) if expires_in is not None else None,
            scope=payload.get("scope"),
            token_type=payload.get("token_type"),
        )


class TokenStore:
    """
    Thread-safe holder for the current Credential.

    Writes always swap in a complete, immutable ``Credential`` under the lock,
    so readers never see the access token of one exchange paired with the
    refresh token of another.
    """

    def __init__(self, credential: Optional[Credential] = None):
        self._credential = credential
        self._lock = threading.RLock()
        self._logger = logging.getLogger('spotirelay.token_store')

        self._metrics = {
            'reads': 0,
            'writes': 0,
            'access_token_updates': 0,
            'stale_updates': 0,
            'clears': 0,
        }

    def get(self) -> Optional[Credential]:
        """
        Get the current credential.

        Returns:
            Optional[Credential]: Credential or None before the first login
        """
        with self._lock:
            self._metrics['reads'] += 1
            return self._credential

    def set(self, credential: Credential) -> None:
        """Replace the whole credential record."""
        with self._lock:
            self._credential = credential
            self._metrics['writes'] += 1
        self._logger.debug("🎟️ Credential stored (refresh token: %s)", credential.has_refresh_token)

    def update_access_token(
        self,
        access_token: str,
        *,
        expected: Credential,
        refresh_token: Optional[str] = None,
        expires_in: Optional[int] = None,
        scope: Optional[str] = None,
        token_type: Optional[str] = None,
    ) -> Optional[Credential]:
        """
        Swap in a refreshed access token if ``expected`` is still stored.

        The stored refresh token is kept unless ``refresh_token`` supplies a
        rotated one; it is never cleared here. When the record was replaced
        or cleared since ``expected`` was read (a new login, a logout), the
        store is left alone.

        Args:
            access_token: Token returned by the refresh grant
            expected: The credential whose refresh token was presented

        Returns:
            Optional[Credential]: The record now held by the store, or None
            when the refreshed token was discarded
        """
        with self._lock:
            current = self._credential
            if current is None or current is not expected:
                self._metrics['stale_updates'] += 1
                return None

            updated = replace(
                current,
                access_token=access_token,
                refresh_token=refresh_token or current.refresh_token,
                expires_in=expires_in if expires_in is not None else current.expires_in,
                scope=scope or current.scope,
                token_type=token_type or current.token_type,
                obtained_at=time.time(),
                refresh_count=current.refresh_count + 1,
            )
            self._credential = updated
            self._metrics['access_token_updates'] += 1
            return updated

    def clear(self) -> None:
        """Drop the stored credential."""
        with self._lock:
            if self._credential is not None:
                self._logger.debug("🗑️ Clearing stored credential")
            self._credential = None
            self._metrics['clears'] += 1

    def status(self) -> Dict[str, Any]:
        """
        Summarise the store without exposing any token.

        Returns:
            Dict[str, Any]: Presence flags, credential age and store metrics
        """
        with self._lock:
            credential = self._credential
            info: Dict[str, Any] = {
                'has_credential': credential is not None,
                'store_metrics': self._metrics.copy(),
            }
            if credential is not None:
                info['credential'] = {
                    'has_access_token': bool(credential.access_token),
                    'has_refresh_token': credential.has_refresh_token,
                    'age_seconds': credential.age_seconds,
                    'refresh_count': credential.refresh_count,
                    'expires_in': credential.expires_in,
                    'scope': credential.scope,
                }
            return info
