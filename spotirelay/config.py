"""
Centralized configuration management for SpotiRelay
Reads the process environment (optionally seeded from .env files) and
validates it against the Pydantic schema.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from dotenv import load_dotenv
from pydantic import ValidationError

from .config_schema import RelayConfig, validate_config_dict

logger = logging.getLogger(__name__)

# Field name -> environment variables consulted in order
ENV_MAPPING: Dict[str, Tuple[str, ...]] = {
    "client_id": ("SPOTIFY_CLIENT_ID",),
    "client_secret": ("SPOTIFY_CLIENT_SECRET",),
    "redirect_uri": ("SPOTIFY_REDIRECT_URI", "REDIRECT_URI"),
    "refresh_token": ("SPOTIFY_REFRESH_TOKEN",),
    "token_auth_mode": ("SPOTIRELAY_TOKEN_AUTH_MODE",),
    "accounts_url": ("SPOTIRELAY_ACCOUNTS_URL",),
    "api_url": ("SPOTIRELAY_API_URL",),
    "top_tracks_limit": ("SPOTIRELAY_TOP_TRACKS_LIMIT",),
    "host": ("SPOTIRELAY_HOST",),
    "port": ("PORT", "SPOTIRELAY_PORT"),
    "environment": ("SPOTIRELAY_ENV",),
    "debug": ("SPOTIRELAY_DEBUG",),
    "log_level": ("SPOTIRELAY_LOG_LEVEL",),
}


def _get_app_config_dir() -> Path:
    """Get application configuration directory path-agnostically"""
    app_name = os.getenv("SPOTIRELAY_APP_NAME", "spotirelay")
    return Path.home() / f".{app_name}"


def load_env_files() -> None:
    """Load ``~/.spotirelay/.env`` and the project ``.env`` into ``os.environ``.

    Variables already present in the environment win over both files.
    """
    user_env = _get_app_config_dir() / ".env"
    if user_env.exists():
        load_dotenv(dotenv_path=user_env)
    load_dotenv()


def collect_env(env: Mapping[str, str]) -> Dict[str, Any]:
    """Pick the configuration values out of an environment mapping."""
    raw: Dict[str, Any] = {}
    for field_name, names in ENV_MAPPING.items():
        for name in names:
            value = env.get(name)
            if value is not None and value != "":
                raw[field_name] = value
                break
    return raw


def load_config(env: Optional[Mapping[str, str]] = None) -> RelayConfig:
    """
    Build the validated configuration.

    Args:
        env: Mapping to read from. When omitted, .env files are loaded and
             ``os.environ`` is used.

    Returns:
        RelayConfig: Validated configuration. Invalid values are logged and
        replaced by their defaults instead of aborting start-up.
    """
    if env is None:
        load_env_files()
        env = os.environ

    raw = collect_env(env)

    try:
        config, warnings = validate_config_dict(raw)
    except ValidationError as exc:
        invalid = {str(err["loc"][0]) for err in exc.errors() if err.get("loc")}
        for key in sorted(invalid):
            logger.warning("Invalid configuration value for '%s' - falling back to default", key)
        cleaned = {k: v for k, v in raw.items() if k not in invalid}
        config, warnings = validate_config_dict(cleaned)

    for warning in warnings:
        logger.warning("Config validation warning: %s", warning)

    logger.debug("✅ Configuration loaded", extra={"environment": config.environment})
    return config
