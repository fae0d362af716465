"""
🔑 Authorization Routes Blueprint
Login redirect, OAuth callback and logout.
"""

import logging
import secrets

from flask import Blueprint, jsonify, redirect, request, session

from ..api.errors import CodeExchangeFailed
from ..service_manager import get_service_manager
from ..utils.logger import log_structured
from .helpers import api_error_handler, json_error, json_success

auth_bp = Blueprint("auth", __name__)
logger = logging.getLogger(__name__)

_STATE_SESSION_KEY = "oauth_state"


@auth_bp.route("/login")
@api_error_handler()
def login():
    """Redirect the user to Spotify's consent page."""
    manager = get_service_manager()
    if not manager.config.has_client_credentials:
        return json_error("Spotify client credentials are not configured.")

    state = secrets.token_urlsafe(16)
    session[_STATE_SESSION_KEY] = state
    return redirect(manager.refresher.build_authorize_url(state))


@auth_bp.route("/callback")
@api_error_handler()
def callback():
    """Exchange the authorization code and cache the resulting tokens."""
    manager = get_service_manager()

    provider_error = request.args.get("error")
    if provider_error:
        logger.warning("Authorization denied by Spotify: %s", provider_error)
        return json_error("Authorization was not granted.", details=provider_error)

    # A state is only enforced when /login issued one in this browser session
    expected_state = session.pop(_STATE_SESSION_KEY, None)
    if expected_state and request.args.get("state") != expected_state:
        logger.warning("OAuth state mismatch on callback")
        return json_error("Authorization state mismatch.")

    code = request.args.get("code")
    if not code:
        return json_error("Missing authorization code.")

    try:
        credential = manager.refresher.exchange_authorization_code(code)
    except CodeExchangeFailed as exc:
        log_structured(logger, logging.ERROR, "Authorization code exchange failed", error=str(exc))
        return json_error(str(exc), details=exc.payload)

    manager.token_store.set(credential)
    logger.info("✅ Tokens obtained from Spotify and cached")

    return jsonify({
        "message": "Tokens obtained successfully.",
        "access_token": credential.access_token,
        "refresh_token": credential.refresh_token,
    })


@auth_bp.route("/logout", methods=["POST"])
@api_error_handler()
def logout():
    """Forget the cached credential."""
    get_service_manager().token_store.clear()
    return json_success("Logged out.")
