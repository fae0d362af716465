"""Central constants for SpotiRelay.

Only put small, stable primitives here – avoid runtime/config dependent values.
"""

DEFAULT_ACCOUNTS_URL: str = "https://accounts.spotify.com"
DEFAULT_API_URL: str = "https://api.spotify.com/v1"

AUTHORIZE_PATH: str = "/authorize"
TOKEN_PATH: str = "/api/token"

# Scopes needed for top tracks, now playing and playback control
OAUTH_SCOPES: tuple[str, ...] = (
    "user-top-read",
    "user-read-currently-playing",
    "user-modify-playback-state",
)

TOP_TRACKS_DEFAULT_LIMIT: int = 10

# Substring Spotify puts in error.message when a bearer token has expired
EXPIRED_MARKER: str = "expired"

# Key under which the wired components live in ``app.extensions``
EXTENSION_KEY: str = "spotirelay"
