"""
🛠️ Route Helpers
Shared response builders and error handling for all route blueprints.
"""

import logging
from functools import wraps
from typing import Any, Callable, Optional

from flask import Response, jsonify, redirect, request, url_for

from ..api.errors import RemoteAPIError, TransportError

logger = logging.getLogger(__name__)

TRANSPORT_ERROR_MESSAGE = "Could not reach Spotify."


def json_error(error: str, *, details: Optional[Any] = None, status: int = 500) -> Response:
    """Create the ``{error, details?}`` failure body.

    Args:
        error: Human readable error summary
        details: Optional provider payload or extra context
        status: HTTP status code (default 500)
    """
    payload = {"error": error}
    if details is not None:
        payload["details"] = details
    resp = jsonify(payload)
    resp.status_code = status
    return resp


def json_success(message: Optional[str] = None, **fields: Any) -> Response:
    """Create a ``{status: "success", ...}`` body."""
    payload = {"status": "success"}
    if message:
        payload["message"] = message
    payload.update(fields)
    return jsonify(payload)


def redirect_to_login() -> Response:
    """Send the user back through the authorization step."""
    logger.info("Re-authorization required for %s - redirecting to /login", request.path)
    return redirect(url_for("auth.login"))


def api_error_handler(error_message: Optional[str] = None) -> Callable:
    """Decorator for consistent API error handling.

    Spotify errors become 500 responses carrying the provider payload;
    transport failures get a generic message; anything unexpected is logged
    with its traceback.

    Args:
        error_message: Summary to use instead of the exception text
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except RemoteAPIError as exc:
                logger.warning(
                    "Spotify API error in %s: %s (status %s)",
                    func.__name__, exc, exc.status_code,
                )
                return json_error(error_message or str(exc), details=exc.payload)
            except TransportError as exc:
                logger.warning("Transport error in %s: %s", func.__name__, exc)
                return json_error(error_message or TRANSPORT_ERROR_MESSAGE, details=TRANSPORT_ERROR_MESSAGE)
            except Exception as exc:
                logger.exception("Error in %s", func.__name__)
                return json_error(error_message or "Internal server error.", details=str(exc))
        return wrapper
    return decorator
