"""Shared pytest fixtures for the SpotiRelay test suite."""

from __future__ import annotations

import pytest

from spotirelay.api.executor import AuthenticatedExecutor
from spotirelay.api.oauth import TokenRefresher
from spotirelay.api.spotify import SpotifyClient
from spotirelay.app import create_app
from spotirelay.config_schema import RelayConfig
from spotirelay.utils.token_store import TokenStore
from tests.fakes import API, FakeSession


@pytest.fixture
def config() -> RelayConfig:
    return RelayConfig(
        client_id="client-id",
        client_secret="client-secret",
        redirect_uri="http://localhost:3000/callback",
    )


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def token_store() -> TokenStore:
    return TokenStore()


@pytest.fixture
def refresher(config, token_store, fake_session) -> TokenRefresher:
    return TokenRefresher(config, token_store, fake_session)


@pytest.fixture
def executor(token_store, refresher, fake_session) -> AuthenticatedExecutor:
    return AuthenticatedExecutor(token_store, refresher, fake_session)


@pytest.fixture
def spotify_client(executor) -> SpotifyClient:
    return SpotifyClient(executor, api_url=API)


@pytest.fixture
def app(config, fake_session, token_store):
    flask_app = create_app(config, session=fake_session, token_store=token_store)
    flask_app.config.update({"TESTING": True})
    return flask_app


@pytest.fixture
def client(app):
    """Provide a fresh Flask test client for each test."""
    with app.test_client() as test_client:
        yield test_client
