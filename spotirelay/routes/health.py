"""
🩺 Health & Status Routes Blueprint
Liveness check and token store status.
"""

from flask import Blueprint, jsonify

from ..service_manager import get_service_manager
from ..version import get_version

health_bp = Blueprint("health", __name__)


@health_bp.route("/healthz")
def healthz():
    return jsonify({"status": "ok", "version": get_version()})


@health_bp.route("/api/token/status")
def token_status():
    """Token store and refresh bookkeeping. Never includes token values."""
    return jsonify({"status": "success", "data": get_service_manager().status()})
