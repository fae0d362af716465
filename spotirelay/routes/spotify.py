"""
🎵 Spotify Routes Blueprint
Top tracks, now playing and playback control.
"""

import logging

from flask import Blueprint, jsonify

from ..service_manager import get_service_manager
from ..utils.logger import log_structured
from .helpers import api_error_handler, json_success, redirect_to_login

spotify_bp = Blueprint("spotify", __name__)
logger = logging.getLogger(__name__)

REFRESH_NOTE = "Access token auto-refreshes when expired. Re-login only if refresh fails."


@spotify_bp.route("/spotify")
@api_error_handler()
def overview():
    """Top tracks plus the currently playing song."""
    spotify = get_service_manager().spotify

    top_tracks = spotify.get_top_tracks()
    if top_tracks.needs_reauthorization:
        return redirect_to_login()

    playing = spotify.get_currently_playing()
    if playing.needs_reauthorization:
        return redirect_to_login()

    return jsonify({
        "status": "success",
        "topTracks": top_tracks.data,
        "currentlyPlaying": playing.data,
        "note": REFRESH_NOTE,
    })


@spotify_bp.route("/spotify/stop", methods=["PUT"])
@api_error_handler("Failed to stop playback.")
def stop():
    outcome = get_service_manager().spotify.pause()
    if outcome.needs_reauthorization:
        return redirect_to_login()
    log_structured(logger, logging.INFO, "Playback stopped via API", outcome=outcome.kind.value)
    return json_success("Playback stopped.")


@spotify_bp.route("/spotify/play/<path:track_uri>", methods=["PUT"])
@api_error_handler("Failed to start playback.")
def play(track_uri: str):
    outcome = get_service_manager().spotify.play_uri(track_uri)
    if outcome.needs_reauthorization:
        return redirect_to_login()
    log_structured(logger, logging.INFO, "Playback started via API",
                   uri=outcome.data, outcome=outcome.kind.value)
    return json_success(f"Started playing: {outcome.data}")
