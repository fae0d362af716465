"""
SpotiRelay Route Blueprints
Modular Flask blueprints for the inbound HTTP surface.
"""

from .auth import auth_bp
from .health import health_bp
from .spotify import spotify_bp

__all__ = [
    "auth_bp",
    "health_bp",
    "spotify_bp",
]
