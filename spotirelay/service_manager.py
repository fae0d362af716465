"""
🔧 Service Manager - Central Component Wiring
=============================================

Builds the token store, refresher, executor and Spotify facade for one
Flask application and exposes them to the route blueprints.
"""

import logging
from typing import Any, Dict, Optional

import requests
from flask import current_app

from .api.executor import AuthenticatedExecutor
from .api.http import get_http_session
from .api.oauth import TokenRefresher
from .api.spotify import SpotifyClient
from .config_schema import RelayConfig
from .constants import EXTENSION_KEY
from .utils.token_store import Credential, TokenStore


class ServiceManager:
    """Owns every stateful component of one application instance."""

    def __init__(
        self,
        config: RelayConfig,
        *,
        session: Optional[requests.Session] = None,
        token_store: Optional[TokenStore] = None,
    ):
        self.logger = logging.getLogger("spotirelay.service_manager")
        self.config = config
        self.session = session or get_http_session()
        self.token_store = token_store if token_store is not None else TokenStore()
        self.refresher = TokenRefresher(config, self.token_store, self.session)
        self.executor = AuthenticatedExecutor(self.token_store, self.refresher, self.session)
        self.spotify = SpotifyClient(
            self.executor,
            api_url=config.api_url,
            top_tracks_limit=config.top_tracks_limit,
        )

        self._seed_refresh_token()

    def _seed_refresh_token(self) -> None:
        """Use a pre-provisioned refresh token when nobody has logged in yet."""
        if not self.config.refresh_token or self.token_store.get() is not None:
            return
        self.token_store.set(Credential(access_token=None, refresh_token=self.config.refresh_token))
        self.logger.info("🎟️ Token store seeded from SPOTIFY_REFRESH_TOKEN")

    def status(self) -> Dict[str, Any]:
        """Token and request bookkeeping for the status endpoint (no secrets)."""
        return {
            "token_store": self.token_store.status(),
            "refresher": self.refresher.metrics(),
            "executor": self.executor.metrics(),
            "client_configured": self.config.has_client_credentials,
            "token_auth_mode": self.config.token_auth_mode,
        }


def get_service_manager() -> ServiceManager:
    """Return the ServiceManager of the current Flask application."""
    return current_app.extensions[EXTENSION_KEY]
