#!/usr/bin/env python3
"""
🎵 Spotify Web API facade for SpotiRelay
Top tracks, now playing and playback control. Authentication is handled
entirely by the executor; this module builds requests and trims responses.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import unquote

from ..constants import DEFAULT_API_URL, TOP_TRACKS_DEFAULT_LIMIT
from .executor import ApiRequest, AuthenticatedExecutor, AuthOutcome
from .http import response_payload

__all__ = ["SpotifyClient"]


def _artist_names(item: Dict[str, Any]) -> str:
    return ", ".join(artist.get("name", "") for artist in item.get("artists") or [])


def _project_top_track(item: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": item.get("id"),
        "name": item.get("name"),
        "artist": _artist_names(item),
        "uri": item.get("uri"),
    }


def _project_now_playing(payload: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(payload, dict) or not payload.get("item"):
        return None
    item = payload["item"]
    return {
        "name": item.get("name"),
        "artist": _artist_names(item),
        "uri": item.get("uri"),
    }


class SpotifyClient:
    """Domain operations on the current user's Spotify account."""

    def __init__(
        self,
        executor: AuthenticatedExecutor,
        api_url: str = DEFAULT_API_URL,
        top_tracks_limit: int = TOP_TRACKS_DEFAULT_LIMIT,
    ):
        self._executor = executor
        self._api_url = api_url.rstrip("/")
        self._top_tracks_limit = top_tracks_limit
        self._logger = logging.getLogger('spotirelay.spotify')

    def get_top_tracks(self, limit: Optional[int] = None) -> AuthOutcome:
        """Fetch the user's top tracks.

        Returns:
            AuthOutcome: ``data`` is a list of ``{id, name, artist, uri}``
        """
        outcome = self._executor.execute(
            ApiRequest("GET", f"{self._api_url}/me/top/tracks", params={"limit": limit or self._top_tracks_limit})
        )
        if outcome.needs_reauthorization:
            return outcome

        payload = response_payload(outcome.response)
        items = payload.get("items") if isinstance(payload, dict) else None
        tracks: List[Dict[str, Any]] = [_project_top_track(item) for item in items or []]
        return outcome.with_data(tracks)

    def get_currently_playing(self) -> AuthOutcome:
        """Fetch the currently playing track.

        Returns:
            AuthOutcome: ``data`` is ``{name, artist, uri}`` or None when
            nothing is playing (Spotify answers 204 in that case)
        """
        outcome = self._executor.execute(ApiRequest("GET", f"{self._api_url}/me/player/currently-playing"))
        if outcome.needs_reauthorization:
            return outcome
        return outcome.with_data(_project_now_playing(response_payload(outcome.response)))

    def pause(self) -> AuthOutcome:
        """Pause playback on the active device."""
        outcome = self._executor.execute(ApiRequest("PUT", f"{self._api_url}/me/player/pause"))
        if not outcome.needs_reauthorization:
            self._logger.info("spotify.playback.paused")
        return outcome

    def play_uri(self, track_uri: str) -> AuthOutcome:
        """Start playback of a single track.

        Args:
            track_uri: Track identifier, possibly still URL-encoded

        Returns:
            AuthOutcome: ``data`` is the decoded track URI
        """
        uri = unquote(track_uri)
        outcome = self._executor.execute(
            ApiRequest("PUT", f"{self._api_url}/me/player/play", json={"uris": [uri]})
        )
        if outcome.needs_reauthorization:
            return outcome
        self._logger.info("spotify.playback.started", extra={"uri": uri})
        return outcome.with_data(uri)
