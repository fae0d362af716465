import threading

import pytest
import requests

from spotirelay.api.errors import RemoteAPIError, TransportError
from spotirelay.api.executor import ApiRequest, OutcomeKind, is_auth_failure
from spotirelay.utils.token_store import Credential
from tests.fakes import API, expired_body, make_response, sequence, token_reply

TOP = "/me/top/tracks"
TOKEN = "/api/token"
TOP_TRACKS_REQUEST = ApiRequest("GET", f"{API}{TOP}", params={"limit": 10})


def _by_bearer(**responses):
    """Reply according to the bearer token presented."""
    def handler(call):
        return responses[call.bearer]
    return handler


def test_no_credential_requires_reauthorization_without_network(executor, fake_session):
    outcome = executor.execute(TOP_TRACKS_REQUEST)

    assert outcome.kind is OutcomeKind.REAUTHORIZATION_REQUIRED
    assert outcome.needs_reauthorization
    assert fake_session.calls == []


def test_valid_token_succeeds_first_time(executor, fake_session, token_store):
    token_store.set(Credential("A1", "R1"))
    fake_session.on("GET", TOP, make_response(200, {"items": []}))

    outcome = executor.execute(TOP_TRACKS_REQUEST)

    assert outcome.kind is OutcomeKind.SUCCESS
    call = fake_session.calls_to(TOP)[0]
    assert call.headers["Authorization"] == "Bearer A1"
    assert call.params == {"limit": 10}
    assert fake_session.calls_to(TOKEN) == []


def test_401_triggers_exactly_one_refresh_and_one_retry(executor, fake_session, token_store):
    token_store.set(Credential("A1", "R1"))
    fake_session.on("GET", TOP, _by_bearer(A1=make_response(401, expired_body()), A2=make_response(200, {"items": []})))
    fake_session.on("POST", TOKEN, token_reply("A2"))

    outcome = executor.execute(TOP_TRACKS_REQUEST)

    assert outcome.kind is OutcomeKind.REFRESHED_AND_RETRIED
    assert outcome.response.status_code == 200
    assert len(fake_session.calls_to(TOKEN)) == 1
    assert [call.bearer for call in fake_session.calls_to(TOP)] == ["A1", "A2"]
    assert token_store.get().access_token == "A2"
    assert token_store.get().refresh_token == "R1"


def test_expired_message_with_non_401_status_counts_as_auth_failure(executor, fake_session, token_store):
    token_store.set(Credential("A1", "R1"))
    fake_session.on(
        "GET", TOP,
        _by_bearer(A1=make_response(400, expired_body("Access token EXPIRED")), A2=make_response(200, {"items": []})),
    )
    fake_session.on("POST", TOKEN, token_reply("A2"))

    outcome = executor.execute(TOP_TRACKS_REQUEST)

    assert outcome.kind is OutcomeKind.REFRESHED_AND_RETRIED
    assert len(fake_session.calls_to(TOKEN)) == 1


@pytest.mark.parametrize("status, body", [
    (403, {"error": {"status": 403, "message": "Player command failed: Premium required"}}),
    (404, {"error": {"status": 404, "message": "Player command failed: No active device found"}}),
    (429, {"error": {"status": 429, "message": "API rate limit exceeded"}}),
    (500, {"error": {"status": 500, "message": "Server error"}}),
])
def test_non_auth_errors_propagate_without_refresh(executor, fake_session, token_store, status, body):
    token_store.set(Credential("A1", "R1"))
    fake_session.on("GET", TOP, make_response(status, body))

    with pytest.raises(RemoteAPIError) as excinfo:
        executor.execute(TOP_TRACKS_REQUEST)

    assert excinfo.value.status_code == status
    assert excinfo.value.payload == body
    assert fake_session.calls_to(TOKEN) == []
    assert len(fake_session.calls_to(TOP)) == 1


def test_transport_error_propagates_without_refresh(executor, fake_session, token_store):
    token_store.set(Credential("A1", "R1"))
    fake_session.on("GET", TOP, requests.exceptions.ConnectTimeout("timed out"))

    with pytest.raises(TransportError):
        executor.execute(TOP_TRACKS_REQUEST)

    assert fake_session.calls_to(TOKEN) == []


def test_second_401_after_refresh_is_final(executor, fake_session, token_store):
    token_store.set(Credential("A1", "R1"))
    fake_session.on("GET", TOP, make_response(401, expired_body()))
    fake_session.on("POST", TOKEN, sequence(token_reply("A2"), token_reply("A3")))

    with pytest.raises(RemoteAPIError) as excinfo:
        executor.execute(TOP_TRACKS_REQUEST)

    assert excinfo.value.status_code == 401
    assert len(fake_session.calls_to(TOKEN)) == 1
    assert len(fake_session.calls_to(TOP)) == 2


def test_missing_refresh_token_requires_reauthorization(executor, fake_session, token_store):
    token_store.set(Credential("A1", None))
    fake_session.on("GET", TOP, make_response(401, expired_body()))

    outcome = executor.execute(TOP_TRACKS_REQUEST)

    assert outcome.kind is OutcomeKind.REAUTHORIZATION_REQUIRED
    assert fake_session.calls_to(TOKEN) == []
    assert len(fake_session.calls_to(TOP)) == 1


def test_rejected_refresh_requires_reauthorization(executor, fake_session, token_store):
    token_store.set(Credential("A1", "R1"))
    fake_session.on("GET", TOP, make_response(401, expired_body()))
    fake_session.on("POST", TOKEN, make_response(400, {"error": "invalid_grant"}))

    outcome = executor.execute(TOP_TRACKS_REQUEST)

    assert outcome.kind is OutcomeKind.REAUTHORIZATION_REQUIRED
    assert outcome.reason == "RefreshRejected"
    assert len(fake_session.calls_to(TOP)) == 1
    assert token_store.get().access_token == "A1"


def test_seeded_refresh_token_is_exchanged_before_first_request(executor, fake_session, token_store):
    token_store.set(Credential(access_token=None, refresh_token="R1"))
    fake_session.on("GET", TOP, make_response(200, {"items": []}))
    fake_session.on("POST", TOKEN, token_reply("A1"))

    outcome = executor.execute(TOP_TRACKS_REQUEST)

    assert outcome.kind is OutcomeKind.REFRESHED_AND_RETRIED
    assert [call.bearer for call in fake_session.calls_to(TOP)] == ["A1"]


def test_concurrent_expiry_results_in_single_refresh(executor, fake_session, token_store):
    token_store.set(Credential("A1", "R1"))
    both_rejected = threading.Barrier(2, timeout=5)

    def api(call):
        if call.bearer == "A1":
            # Hold until both requests have been sent with the stale token
            both_rejected.wait()
            return make_response(401, expired_body())
        return make_response(200, {"items": []})

    fake_session.on("GET", TOP, api)
    fake_session.on("POST", TOKEN, token_reply("A2"))

    outcomes, errors = [], []

    def worker():
        try:
            outcomes.append(executor.execute(TOP_TRACKS_REQUEST))
        except Exception as exc:  # surfaced via the assertion below
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert errors == []
    assert [o.kind for o in outcomes] == [OutcomeKind.REFRESHED_AND_RETRIED] * 2
    assert len(fake_session.calls_to(TOKEN)) == 1
    assert sorted(call.bearer for call in fake_session.calls_to(TOP)) == ["A1", "A1", "A2", "A2"]


@pytest.mark.parametrize("status, body, expected", [
    (401, None, True),
    (401, {"error": {"message": "Invalid access token"}}, True),
    (400, expired_body("The access token expired"), True),
    (403, {"error": {"message": "Forbidden"}}, False),
    (200, expired_body("The access token expired"), False),
    (204, None, False),
    (500, "upstream expired", False),
])
def test_is_auth_failure_checks_status_before_message(status, body, expected):
    assert is_auth_failure(make_response(status, body)) is expected


def test_logout_during_refresh_requires_reauthorization(executor, fake_session, token_store):
    token_store.set(Credential("A1", "R1"))
    fake_session.on("GET", TOP, make_response(401, expired_body()))

    def grant(call):
        token_store.clear()
        return token_reply("A2")

    fake_session.on("POST", TOKEN, grant)

    outcome = executor.execute(TOP_TRACKS_REQUEST)

    assert outcome.kind is OutcomeKind.REAUTHORIZATION_REQUIRED
    assert token_store.get() is None
    assert len(fake_session.calls_to(TOP)) == 1


def test_login_during_refresh_retries_with_the_new_token(executor, fake_session, token_store):
    token_store.set(Credential("A1", "R1"))
    fake_session.on("GET", TOP, _by_bearer(
        A1=make_response(401, expired_body()),
        B1=make_response(200, {"items": []}),
    ))

    def grant(call):
        token_store.set(Credential("B1", "R2"))
        return token_reply("A2")

    fake_session.on("POST", TOKEN, grant)

    outcome = executor.execute(TOP_TRACKS_REQUEST)

    assert outcome.kind is OutcomeKind.REFRESHED_AND_RETRIED
    assert [call.bearer for call in fake_session.calls_to(TOP)] == ["A1", "B1"]
    current = token_store.get()
    assert (current.access_token, current.refresh_token) == ("B1", "R2")
