"""
SpotiRelay Main Application
Flask application factory wiring configuration, services and blueprints.
"""

import logging
import os
import secrets
from typing import Optional

import requests
from flask import Flask
from flask_compress import Compress

from .config import load_config
from .config_schema import RelayConfig
from .constants import EXTENSION_KEY
from .routes import auth_bp, health_bp, spotify_bp
from .routes.errors import register_error_handlers
from .service_manager import ServiceManager
from .utils.logger import setup_logging
from .utils.token_store import TokenStore
from .version import get_app_info

compress = Compress()


def create_app(
    config: Optional[RelayConfig] = None,
    *,
    session: Optional[requests.Session] = None,
    token_store: Optional[TokenStore] = None,
) -> Flask:
    """
    Build a SpotiRelay Flask application.

    Args:
        config: Validated configuration; loaded from the environment when omitted
        session: HTTP session for all outbound calls (tests inject a fake)
        token_store: Token store to use instead of a fresh empty one

    Returns:
        Flask: Configured application
    """
    logger = setup_logging()
    if config is None:
        config = load_config()

    app = Flask(__name__)
    app.secret_key = os.getenv('FLASK_SECRET_KEY') or secrets.token_hex(32)
    app.config['DEBUG'] = config.debug
    app.config.setdefault('COMPRESS_MIMETYPES', ['application/json'])
    app.config.setdefault('COMPRESS_ALGORITHM', os.getenv('SPOTIRELAY_COMPRESS_ALGO', 'gzip'))
    app.json.sort_keys = False
    compress.init_app(app)

    if config.log_level:
        logger.setLevel(getattr(logging, config.log_level))

    app.extensions[EXTENSION_KEY] = ServiceManager(config, session=session, token_store=token_store)

    app.register_blueprint(auth_bp)
    app.register_blueprint(spotify_bp)
    app.register_blueprint(health_bp)
    register_error_handlers(app)

    logger.info(
        "🎵 %s ready (environment=%s, token auth=%s)",
        get_app_info(), config.environment, config.token_auth_mode,
    )
    return app


__all__ = ["create_app"]
