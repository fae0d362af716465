#!/usr/bin/env python3
"""
🔁 Authenticated request execution for SpotiRelay

Every outbound Web API call goes through ``AuthenticatedExecutor.execute``:
the stored access token is applied as a bearer credential and a rejected
token gets exactly one refresh-and-retry before the caller is told to send
the user back through the authorization step.
"""

import logging
import threading
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional

import requests

from ..constants import EXPIRED_MARKER
from ..utils.token_store import TokenStore
from .errors import AuthExpired, NoRefreshToken, RefreshRejected, RemoteAPIError, TransportError
from .http import get_http_session, response_payload
from .oauth import TokenRefresher


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    REFRESHED_AND_RETRIED = "refreshed_and_retried"
    REAUTHORIZATION_REQUIRED = "reauthorization_required"


@dataclass(frozen=True)
class AuthOutcome:
    """Result of one executed request, handed back up to the route."""
    kind: OutcomeKind
    response: Optional[requests.Response] = None
    data: Any = None
    reason: Optional[str] = None

    @classmethod
    def success(cls, response: requests.Response) -> "AuthOutcome":
        return cls(OutcomeKind.SUCCESS, response=response)

    @classmethod
    def refreshed_and_retried(cls, response: requests.Response) -> "AuthOutcome":
        return cls(OutcomeKind.REFRESHED_AND_RETRIED, response=response)

    @classmethod
    def reauthorization_required(cls, reason: str) -> "AuthOutcome":
        return cls(OutcomeKind.REAUTHORIZATION_REQUIRED, reason=reason)

    @property
    def needs_reauthorization(self) -> bool:
        return self.kind is OutcomeKind.REAUTHORIZATION_REQUIRED

    def with_data(self, data: Any) -> "AuthOutcome":
        return replace(self, data=data)


@dataclass(frozen=True)
class ApiRequest:
    """Everything needed to (re)issue one Web API request."""
    method: str
    url: str
    params: Optional[Dict[str, Any]] = None
    json: Optional[Any] = None


def _error_message(payload: Any) -> Optional[str]:
    """Extract ``error.message`` from a Web API error body."""
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        return message if isinstance(message, str) else None
    return None


def is_auth_failure(response: requests.Response) -> bool:
    """
    Decide whether Spotify rejected the bearer token.

    The status code is authoritative; the error message is only consulted for
    other error statuses, since some endpoints report an expired token with
    a 400 or 403.
    """
    if response.status_code == 401:
        return True
    if response.status_code < 400:
        return False
    message = _error_message(response_payload(response))
    return bool(message) and EXPIRED_MARKER in message.lower()


class AuthenticatedExecutor:
    """Runs Web API requests with the stored credential and recovers from expiry."""

    def __init__(
        self,
        store: TokenStore,
        refresher: TokenRefresher,
        session: Optional[requests.Session] = None,
    ):
        self._store = store
        self._refresher = refresher
        self._session = session or get_http_session()
        self._logger = logging.getLogger('spotirelay.executor')
        self._metrics_lock = threading.Lock()
        self._metrics = {
            'requests': 0,
            'auth_failures': 0,
            'retries': 0,
            'reauthorization_required': 0,
        }

    def execute(self, api_request: ApiRequest) -> AuthOutcome:
        """
        Execute ``api_request`` with automatic recovery from an expired access token.

        Returns:
            AuthOutcome: SUCCESS, REFRESHED_AND_RETRIED or REAUTHORIZATION_REQUIRED

        Raises:
            RemoteAPIError: Non-auth error status, or the retried request failed
            TransportError: Spotify could not be reached
        """
        credential = self._store.get()
        if credential is None:
            self._logger.info("executor.no_credential", extra={"url": api_request.url})
            return self._reauthorization_required("no_credential")

        observed_token = credential.access_token
        try:
            return AuthOutcome.success(self._send(api_request, observed_token))
        except AuthExpired as exc:
            self._bump('auth_failures')
            self._logger.warning(
                "executor.auth_expired",
                extra={"method": api_request.method, "url": api_request.url, "status": exc.status_code},
            )

        try:
            fresh_token = self._refresher.refresh_expired(observed_token)
        except (NoRefreshToken, RefreshRejected) as exc:
            self._logger.warning("executor.refresh_failed", extra={"reason": str(exc)})
            return self._reauthorization_required(exc.__class__.__name__)

        self._bump('retries')
        try:
            response = self._send(api_request, fresh_token)
        except AuthExpired as exc:
            self._logger.error(
                "executor.retry_rejected",
                extra={"method": api_request.method, "url": api_request.url, "status": exc.status_code},
            )
            raise RemoteAPIError(
                "Spotify rejected the refreshed access token",
                status_code=exc.status_code or 401,
                payload=exc.payload,
            ) from exc
        return AuthOutcome.refreshed_and_retried(response)

    def metrics(self) -> Dict[str, int]:
        with self._metrics_lock:
            return self._metrics.copy()

    def _reauthorization_required(self, reason: str) -> AuthOutcome:
        self._bump('reauthorization_required')
        return AuthOutcome.reauthorization_required(reason)

    def _bump(self, key: str) -> None:
        with self._metrics_lock:
            self._metrics[key] += 1

    def _send(self, api_request: ApiRequest, access_token: Optional[str]) -> requests.Response:
        """Issue one request; classify the response."""
        if not access_token:
            # Credential seeded from a refresh token only
            raise AuthExpired("No access token cached")

        self._bump('requests')
        start = time.perf_counter()
        try:
            response = self._session.request(
                api_request.method.upper(),
                api_request.url,
                headers={"Authorization": f"Bearer {access_token}"},
                params=api_request.params,
                json=api_request.json,
            )
        except requests.exceptions.RequestException as exc:
            self._logger.warning(
                "spotify.request.error",
                extra={
                    "method": api_request.method,
                    "url": api_request.url,
                    "elapsed": round(time.perf_counter() - start, 3),
                    "error": exc.__class__.__name__,
                },
            )
            raise TransportError(f"Could not reach Spotify: {exc.__class__.__name__}") from exc

        if is_auth_failure(response):
            raise AuthExpired(
                "Spotify rejected the access token",
                payload=response_payload(response),
                status_code=response.status_code,
            )

        if response.status_code >= 400:
            payload = response_payload(response)
            self._logger.warning(
                "spotify.request.http_error",
                extra={"method": api_request.method, "url": api_request.url, "status": response.status_code},
            )
            raise RemoteAPIError(
                _error_message(payload) or f"Spotify API returned {response.status_code}",
                status_code=response.status_code,
                payload=payload,
            )

        return response
