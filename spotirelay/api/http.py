#!/usr/bin/env python3
"""Centralised HTTP session configuration for Spotify API access."""

import logging
import os
import platform
from threading import RLock
from typing import Any, Callable, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util import Retry

from ..version import get_version

_LOGGER = logging.getLogger("spotirelay.http")
_SESSION_LOCK = RLock()
_SESSION: Optional[requests.Session] = None


def _number_env(name: str, default: float, cast: Callable[[str], Any] = float) -> Any:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return cast(value)
    except ValueError:
        _LOGGER.warning("Ignoring invalid %s=%r", name, value)
        return default


# (connect, read) applied to every call that does not pass its own timeout
DEFAULT_TIMEOUT: Tuple[float, float] = (
    max(0.5, _number_env("SPOTIRELAY_HTTP_CONNECT_TIMEOUT", 4.0)),
    max(1.0, _number_env("SPOTIRELAY_HTTP_READ_TIMEOUT", 15.0)),
)


def _with_default_timeout(
    request_func: Callable[..., requests.Response],
    timeout: Tuple[float, float],
) -> Callable[..., requests.Response]:
    def request(method: str, url: str, **kwargs: Any) -> requests.Response:
        if kwargs.get("timeout") is None:
            kwargs["timeout"] = timeout
        return request_func(method, url, **kwargs)

    return request


def _build_retry_configuration() -> Retry:
    """Transport retries are disabled.

    The executor's single refresh-and-retry is the only retry in the system,
    so the adapter must neither replay requests nor back off.
    """
    return Retry(
        total=0,
        connect=0,
        read=0,
        redirect=0,
        status=0,
        backoff_factor=0,
        raise_on_status=False,
        raise_on_redirect=False,
    )


def build_session() -> requests.Session:
    """Create a configured requests.Session with pooled connections and timeouts."""
    session = requests.Session()

    pool_connections = _number_env("SPOTIRELAY_HTTP_POOL_CONNECTIONS", 10, int)
    pool_maxsize = _number_env("SPOTIRELAY_HTTP_POOL_MAXSIZE", 20, int)
    adapter = HTTPAdapter(
        max_retries=_build_retry_configuration(),
        pool_connections=pool_connections,
        pool_maxsize=pool_maxsize,
    )

    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update(
        {
            "Accept": "application/json",
            "User-Agent": (
                f"SpotiRelay/{get_version()} (Python {platform.python_version()}; "
                f"Requests {requests.__version__})"
            ),
        }
    )
    session.request = _with_default_timeout(session.request, DEFAULT_TIMEOUT)  # type: ignore[method-assign]

    _LOGGER.debug(
        "HTTP session configured",
        extra={
            "http.timeout_connect": DEFAULT_TIMEOUT[0],
            "http.timeout_read": DEFAULT_TIMEOUT[1],
            "http.pool_connections": pool_connections,
            "http.pool_maxsize": pool_maxsize,
        },
    )
    return session


def get_http_session() -> requests.Session:
    """Return the shared HTTP session, creating it if necessary."""
    global _SESSION
    if _SESSION is None:
        with _SESSION_LOCK:
            if _SESSION is None:
                _SESSION = build_session()
    return _SESSION


def set_http_session(session: Optional[requests.Session]) -> None:
    """
    Override the shared HTTP session (primarily for testing).

    Args:
        session: Preconfigured session instance, or None to rebuild lazily
    """
    global _SESSION
    with _SESSION_LOCK:
        _SESSION = session


def response_payload(response: requests.Response) -> Any:
    """Return the JSON body of a response, the raw text if it isn't JSON, or None if empty."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


__all__ = [
    "DEFAULT_TIMEOUT",
    "build_session",
    "get_http_session",
    "set_http_session",
    "response_payload",
]
