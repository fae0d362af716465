"""
SpotiRelay Version Information
Central version management for the SpotiRelay project.
"""

from typing import Dict, Optional, Union

# Semantic Versioning: MAJOR.MINOR.PATCH
VERSION = "0.4.0"

VERSION_INFO: Dict[str, Union[int, Optional[str]]] = {
    "major": 0,
    "minor": 4,
    "patch": 0,
    "pre_release": None,  # e.g., "alpha", "beta", "rc1"
}

# Application metadata
APP_NAME = "SpotiRelay"
APP_DESCRIPTION = "Spotify OAuth relay with automatic token refresh"


def get_version() -> str:
    """Get the current version string.

    Returns:
        str: Version string in format MAJOR.MINOR.PATCH
    """
    if VERSION_INFO["pre_release"]:
        return f"{VERSION}-{VERSION_INFO['pre_release']}"
    return VERSION


def get_app_info() -> str:
    """Get application name and version.

    Returns:
        str: Application name and version in format "AppName vX.Y.Z"
    """
    return f"{APP_NAME} v{get_version()}"
