#!/usr/bin/env python3
"""
🔑 Spotify OAuth token exchange for SpotiRelay
Turns authorization codes and refresh tokens into access tokens via the
accounts service ``/api/token`` endpoint.
"""

import logging
import threading
import time
from typing import Any, Dict, Optional, Type
from urllib.parse import quote, urlencode

import requests

from ..config_schema import RelayConfig
from ..constants import AUTHORIZE_PATH, OAUTH_SCOPES, TOKEN_PATH
from ..utils.token_store import Credential, TokenStore
from .errors import AuthError, CodeExchangeFailed, NoRefreshToken, RefreshRejected
from .http import get_http_session, response_payload


class TokenRefresher:
    """
    Performs the two OAuth2 grants SpotiRelay needs.

    ``refresh_expired`` is what the executor calls: it serialises refreshes
    behind ``_refresh_lock`` so Spotify never sees the same refresh token
    exchanged twice in parallel.
    """

    def __init__(
        self,
        config: RelayConfig,
        store: TokenStore,
        session: Optional[requests.Session] = None,
    ):
        self._config = config
        self._store = store
        self._session = session or get_http_session()
        self._refresh_lock = threading.Lock()
        self._metrics_lock = threading.Lock()
        self._logger = logging.getLogger('spotirelay.oauth')

        self._metrics = {
            'code_exchanges': 0,
            'refresh_attempts': 0,
            'refresh_successes': 0,
            'refresh_failures': 0,
            'refresh_coalesced': 0,
            'refresh_discarded': 0,
        }

    @property
    def token_url(self) -> str:
        return f"{self._config.accounts_url}{TOKEN_PATH}"

    def build_authorize_url(self, state: Optional[str] = None) -> str:
        """
        Build the consent page URL the user is redirected to.

        Args:
            state: Optional anti-CSRF value echoed back on the callback

        Returns:
            str: Fully encoded authorize URL
        """
        params = {
            "client_id": self._config.client_id,
            "response_type": "code",
            "redirect_uri": self._config.redirect_uri,
            "scope": " ".join(OAUTH_SCOPES),
        }
        if state:
            params["state"] = state
        return f"{self._config.accounts_url}{AUTHORIZE_PATH}?{urlencode(params, quote_via=quote)}"

    def exchange_authorization_code(self, code: str) -> Credential:
        """
        Exchange an authorization code for an access/refresh token pair.

        The store is not touched; the caller decides whether to keep the
        credential.

        Raises:
            CodeExchangeFailed: Missing/invalid code or unreachable provider
        """
        if not code:
            raise CodeExchangeFailed("Missing authorization code")

        self._bump('code_exchanges')
        payload = self._post_token(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self._config.redirect_uri,
            },
            CodeExchangeFailed,
        )
        credential = Credential.from_token_payload(payload)
        self._logger.info(
            "token.exchange.ok",
            extra={"has_refresh_token": credential.has_refresh_token, "scope": credential.scope},
        )
        return credential

    def refresh(self, current_refresh_token: Optional[str]) -> str:
        """
        Run a refresh_token grant and store the new access token.

        Args:
            current_refresh_token: Refresh token to present

        Returns:
            str: The new access token, or the stored one when the credential
            was replaced while the grant was in flight

        Raises:
            NoRefreshToken: No refresh token given (no request is made), or
                the credential was cleared while the grant was in flight
            RefreshRejected: Spotify refused the grant or was unreachable
        """
        return self._refresh(current_refresh_token, self._store.get())

    def refresh_expired(self, observed_access_token: Optional[str]) -> str:
        """
        Refresh after ``observed_access_token`` was rejected, at most once per expiry.

        Callers that queued behind an in-flight refresh find a different
        access token in the store and reuse it instead of refreshing again.

        Raises:
            NoRefreshToken: Nothing stored, or no refresh token
            RefreshRejected: Spotify refused the grant
        """
        with self._refresh_lock:
            credential = self._store.get()
            if credential is None:
                raise NoRefreshToken("No credential stored - user must authorize")

            if credential.access_token and credential.access_token != observed_access_token:
                self._bump('refresh_coalesced')
                self._logger.debug("token.refresh.coalesced")
                return credential.access_token

            return self._refresh(credential.refresh_token, credential)

    def metrics(self) -> Dict[str, int]:
        with self._metrics_lock:
            return self._metrics.copy()

    def _bump(self, key: str) -> None:
        with self._metrics_lock:
            self._metrics[key] += 1

    def _refresh(self, refresh_token: Optional[str], expected: Optional[Credential]) -> str:
        """Exchange ``refresh_token`` and write the result onto ``expected`` only."""
        if not refresh_token:
            self._logger.warning("token.refresh.no_refresh_token")
            raise NoRefreshToken("No refresh token available - user must re-authorize")

        self._bump('refresh_attempts')
        try:
            payload = self._post_token(
                {"grant_type": "refresh_token", "refresh_token": refresh_token},
                RefreshRejected,
            )
        except RefreshRejected:
            self._bump('refresh_failures')
            raise

        updated = None
        if expected is not None and expected.refresh_token == refresh_token:
            expires_in = payload.get("expires_in")
            updated = self._store.update_access_token(
                payload["access_token"],
                expected=expected,
                refresh_token=payload.get("refresh_token"),
                expires_in=int(expires_in) if expires_in is not None else None,
                scope=payload.get("scope"),
                token_type=payload.get("token_type"),
            )

        if updated is None:
            return self._discard_refreshed_token()

        self._bump('refresh_successes')
        self._logger.info(
            "token.refresh.ok",
            extra={
                "rotated_refresh_token": bool(payload.get("refresh_token")),
                "refresh_count": updated.refresh_count,
            },
        )
        return updated.access_token

    def _discard_refreshed_token(self) -> str:
        """The credential changed during the grant; defer to whatever is stored now."""
        self._bump('refresh_discarded')
        current = self._store.get()
        self._logger.warning(
            "token.refresh.discarded",
            extra={"has_credential": current is not None},
        )
        if current is None or not current.access_token:
            raise NoRefreshToken("Credential was cleared during refresh - user must authorize")
        return current.access_token

    def _post_token(self, form: Dict[str, str], error_cls: Type[AuthError]) -> Dict[str, Any]:
        """POST a grant to the token endpoint and return its JSON body."""
        if not self._config.has_client_credentials:
            raise error_cls("Spotify client credentials are not configured")

        data = dict(form)
        auth = None
        if self._config.token_auth_mode == "basic":
            auth = (self._config.client_id, self._config.client_secret)
        else:
            data["client_id"] = self._config.client_id
            data["client_secret"] = self._config.client_secret

        grant = form["grant_type"]
        start = time.perf_counter()
        try:
            response = self._session.post(self.token_url, data=data, auth=auth)
        except requests.exceptions.RequestException as exc:
            self._logger.warning(
                "token.request.error",
                extra={
                    "grant_type": grant,
                    "elapsed": round(time.perf_counter() - start, 3),
                    "error": exc.__class__.__name__,
                },
            )
            raise error_cls(f"Token endpoint unreachable: {exc}") from exc

        payload = response_payload(response)
        if not 200 <= response.status_code < 300:
            self._logger.error(
                "token.request.http_error",
                extra={
                    "grant_type": grant,
                    "status": response.status_code,
                    "elapsed": round(time.perf_counter() - start, 3),
                },
            )
            raise error_cls(f"Token endpoint returned {response.status_code}", payload=payload)

        if not isinstance(payload, dict) or not payload.get("access_token"):
            self._logger.error("token.request.parse_error", extra={"grant_type": grant})
            raise error_cls("Token response missing access_token", payload=payload)

        return payload
