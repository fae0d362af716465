"""
Pydantic models for SpotiRelay configuration validation

This module provides a type-safe configuration schema with automatic validation,
preventing runtime errors from malformed environment values.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from .constants import DEFAULT_ACCOUNTS_URL, DEFAULT_API_URL, TOP_TRACKS_DEFAULT_LIMIT

TOKEN_AUTH_MODES = ("body", "basic")
SECRET_FIELDS = {"client_secret", "refresh_token"}


class RelayConfig(BaseModel):
    """Complete SpotiRelay configuration schema.

    Values normally come from the environment (see ``config.load_config``),
    but the model can be built directly, which is what the test-suite does.

    Example:
        >>> cfg = RelayConfig(client_id="abc", client_secret="xyz")
        >>> cfg.token_auth_mode
        'body'
    """

    # Spotify application credentials
    client_id: str = Field(default="", description="Spotify application client id")
    client_secret: str = Field(default="", description="Spotify application client secret")
    redirect_uri: str = Field(
        default="http://localhost:3000/callback",
        description="Redirect URI registered with the Spotify application",
    )
    refresh_token: Optional[str] = Field(
        default=None,
        description="Pre-provisioned refresh token for non-interactive deployments",
    )
    token_auth_mode: str = Field(
        default="body",
        description="How client credentials are presented to the token endpoint (body|basic)",
    )

    # Upstream endpoints
    accounts_url: str = Field(default=DEFAULT_ACCOUNTS_URL, description="Spotify accounts service base URL")
    api_url: str = Field(default=DEFAULT_API_URL, description="Spotify Web API base URL")
    top_tracks_limit: int = Field(default=TOP_TRACKS_DEFAULT_LIMIT, ge=1, le=50, description="Number of top tracks to fetch")

    # Runtime settings
    host: str = Field(default="0.0.0.0", description="Interface to bind")
    port: int = Field(default=3000, ge=1, le=65535, description="Listening port")
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable Flask debug mode")
    log_level: str = Field(default="INFO", pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$", description="Logging level")

    model_config = {
        "extra": "allow",  # Allow extra fields for forward compatibility
        "str_strip_whitespace": True,
    }

    @field_validator('redirect_uri')
    @classmethod
    def validate_redirect_uri(cls, v: str) -> str:
        """Spotify only accepts absolute http(s) redirect URIs."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid redirect URI: {v}. Must start with http:// or https://")
        return v

    @field_validator('refresh_token')
    @classmethod
    def empty_refresh_token_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @field_validator('token_auth_mode')
    @classmethod
    def validate_token_auth_mode(cls, v: str) -> str:
        mode = v.lower()
        if mode not in TOKEN_AUTH_MODES:
            raise ValueError(f"Invalid token auth mode: {v}. Must be one of {', '.join(TOKEN_AUTH_MODES)}")
        return mode

    @field_validator('log_level', mode='before')
    @classmethod
    def upper_log_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator('accounts_url', 'api_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def has_client_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def to_public_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary without secrets (safe to log or expose)."""
        data = self.model_dump(mode='json', exclude=SECRET_FIELDS)
        data["has_client_secret"] = bool(self.client_secret)
        data["has_refresh_token"] = bool(self.refresh_token)
        return data


def validate_config_dict(config_dict: Dict[str, Any]) -> tuple[RelayConfig, list[str]]:
    """Validate a config dictionary against the schema.

    Args:
        config_dict: Raw configuration values keyed by field name

    Returns:
        Tuple of (validated_config, warnings_list)

    Raises:
        pydantic.ValidationError: If a value is invalid
    """
    warnings = []

    validated = RelayConfig(**config_dict)

    if not validated.has_client_credentials:
        warnings.append("SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET not set - login and token refresh will fail")
    if validated.debug and validated.environment == "production":
        warnings.append("Debug mode enabled in production environment")

    return validated, warnings
