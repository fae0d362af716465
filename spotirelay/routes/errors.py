"""
🚨 Error Handlers
Centralized JSON error handling for unmatched routes and server errors.
"""

from __future__ import annotations

import logging

from flask import Flask
from werkzeug.exceptions import HTTPException

from .helpers import json_error

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask) -> None:
    """Register shared error handlers on the Flask app."""

    @app.errorhandler(404)
    def not_found_error(_error):
        return json_error("Not found.", status=404)

    @app.errorhandler(405)
    def method_not_allowed(error: HTTPException):
        return json_error("Method not allowed.", details=error.description, status=405)

    @app.errorhandler(500)
    def internal_error(_error):
        logger.error("Unhandled server error")
        return json_error("Internal server error.", status=500)
