import pytest

from spotirelay.api.errors import RemoteAPIError
from spotirelay.api.executor import OutcomeKind
from spotirelay.utils.token_store import Credential
from tests.fakes import make_response


@pytest.fixture(autouse=True)
def logged_in(token_store):
    token_store.set(Credential("A1", "R1"))


TOP_TRACKS = {
    "items": [
        {
            "id": "t1",
            "name": "Song One",
            "uri": "spotify:track:t1",
            "artists": [{"name": "Artist A"}, {"name": "Artist B"}],
            "album": {"name": "Ignored"},
            "popularity": 80,
        },
        {"id": "t2", "name": "Song Two", "uri": "spotify:track:t2", "artists": [{"name": "Artist C"}]},
    ]
}


def test_top_tracks_are_projected(spotify_client, fake_session):
    fake_session.on("GET", "/me/top/tracks", make_response(200, TOP_TRACKS))

    outcome = spotify_client.get_top_tracks()

    assert outcome.kind is OutcomeKind.SUCCESS
    assert outcome.data == [
        {"id": "t1", "name": "Song One", "artist": "Artist A, Artist B", "uri": "spotify:track:t1"},
        {"id": "t2", "name": "Song Two", "artist": "Artist C", "uri": "spotify:track:t2"},
    ]
    assert fake_session.calls_to("/me/top/tracks")[0].params == {"limit": 10}


def test_top_tracks_limit_can_be_overridden(spotify_client, fake_session):
    fake_session.on("GET", "/me/top/tracks", make_response(200, {"items": []}))

    outcome = spotify_client.get_top_tracks(limit=3)

    assert outcome.data == []
    assert fake_session.calls_to("/me/top/tracks")[0].params == {"limit": 3}


def test_top_tracks_tolerate_non_json_body(spotify_client, fake_session):
    fake_session.on("GET", "/me/top/tracks", make_response(200, "<html>maintenance</html>"))

    outcome = spotify_client.get_top_tracks()

    assert outcome.kind is OutcomeKind.SUCCESS
    assert outcome.data == []


def test_currently_playing_is_projected(spotify_client, fake_session):
    fake_session.on("GET", "/me/player/currently-playing", make_response(200, {
        "is_playing": True,
        "item": {"name": "Now", "uri": "spotify:track:now", "artists": [{"name": "Band"}]},
    }))

    outcome = spotify_client.get_currently_playing()

    assert outcome.data == {"name": "Now", "artist": "Band", "uri": "spotify:track:now"}


def test_nothing_playing_yields_none(spotify_client, fake_session):
    fake_session.on("GET", "/me/player/currently-playing", make_response(204))

    assert spotify_client.get_currently_playing().data is None


def test_pause_issues_put(spotify_client, fake_session):
    fake_session.on("PUT", "/me/player/pause", make_response(204))

    outcome = spotify_client.pause()

    assert outcome.kind is OutcomeKind.SUCCESS
    assert fake_session.calls_to("/me/player/pause", method="PUT")[0].bearer == "A1"


def test_play_uri_decodes_identifier(spotify_client, fake_session):
    fake_session.on("PUT", "/me/player/play", make_response(204))

    outcome = spotify_client.play_uri("spotify%3Atrack%3Aabc")

    assert outcome.data == "spotify:track:abc"
    assert fake_session.calls_to("/me/player/play")[0].json == {"uris": ["spotify:track:abc"]}


def test_play_without_active_device_raises(spotify_client, fake_session):
    body = {"error": {"status": 404, "message": "Player command failed: No active device found", "reason": "NO_ACTIVE_DEVICE"}}
    fake_session.on("PUT", "/me/player/play", make_response(404, body))

    with pytest.raises(RemoteAPIError) as excinfo:
        spotify_client.play_uri("spotify:track:abc")

    assert str(excinfo.value) == "Player command failed: No active device found"
    assert excinfo.value.payload == body


def test_reauthorization_outcome_passes_through(spotify_client, token_store, fake_session):
    token_store.clear()

    outcome = spotify_client.get_top_tracks()

    assert outcome.needs_reauthorization
    assert outcome.data is None
    assert fake_session.calls == []
