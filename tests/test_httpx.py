import threading

import httpx
import pytest

from test_utils import ENDPOINT, FakeOneFS, body_json

from isilonclient._httpx import (
    AuthType,
    IsilonConnectionParameters,
    IsilonSessionAuth,
    Session,
    SessionAuthenticator,
    SessionStore,
    parse_session_cookies,
)
from isilonclient.exceptions import (
    AuthenticateError,
    AuthenticationFailed,
    SessionTokenMissing,
)


def make_params():
    return IsilonConnectionParameters(
        endpoint=ENDPOINT,
        username="u",
        password="p",
        group="",
        auth_type=AuthType.SESSION_BASED,
        ssl_verify=False,
        timeout=httpx.Timeout(5.0),
    )


def make_http_client(cluster):
    return httpx.Client(base_url=ENDPOINT, transport=cluster.transport)


class TestAuthType:
    def test_known_values(self):
        assert AuthType.normalize(0) is AuthType.BASIC
        assert AuthType.normalize(1) is AuthType.SESSION_BASED
        assert AuthType.normalize("1") is AuthType.SESSION_BASED

    def test_invalid_value_falls_back_to_basic(self, caplog):
        assert AuthType.normalize(7) is AuthType.BASIC
        assert AuthType.normalize("session") is AuthType.BASIC
        assert "falling back to basic authentication" in caplog.text


class TestParseSessionCookies:
    def test_session_and_csrf_cookies(self):
        values = [
            "isisessid=ABC123; path=/; HttpOnly; Secure",
            "isicsrf=XYZ; path=/; Secure",
        ]
        assert parse_session_cookies(values) == ("ABC123", "XYZ")

    def test_order_does_not_matter(self):
        values = ["isicsrf=XYZ; path=/", "isisessid=ABC123; path=/"]
        assert parse_session_cookies(values) == ("ABC123", "XYZ")

    def test_similar_names_are_not_matched(self):
        values = ["notisisessid=nope; path=/", "isicsrfx=nope; path=/"]
        assert parse_session_cookies(values) == (None, None)

    def test_session_cookie_without_csrf(self):
        assert parse_session_cookies(["isisessid=ABC123; path=/"]) == ("ABC123", None)

    def test_no_cookies(self):
        assert parse_session_cookies([]) == (None, None)

    def test_unfamiliar_attributes_are_ignored(self):
        values = ["isisessid=ABC123; path=/; Partitioned", "isicsrf=XYZ; path=/; Priority=High"]
        assert parse_session_cookies(values) == ("ABC123", "XYZ")

    def test_quoted_value(self):
        assert parse_session_cookies(['isisessid="ABC123"; path=/']) == ("ABC123", None)

    def test_value_without_pair_is_skipped(self):
        values = ["garbage", "isisessid=ABC123; path=/"]
        assert parse_session_cookies(values) == ("ABC123", None)


class TestSessionAuthenticator:
    def test_successful_login(self):
        cluster = FakeOneFS()
        login_requests = []
        handler = cluster.handler

        def recording_handler(request):
            login_requests.append(request)
            return handler(request)

        client = httpx.Client(base_url=ENDPOINT, transport=httpx.MockTransport(recording_handler))
        session = SessionAuthenticator(make_params()).authenticate(client)

        assert session == Session(cookie="isisessid=ABC123", csrf_token="XYZ", referer=ENDPOINT)
        assert cluster.logins == 1
        request = login_requests[0]
        assert request.method == "POST"
        assert request.url.path == "/session/1/session/"
        assert request.headers["content-type"] == "application/json"
        assert "authorization" not in request.headers
        assert body_json(request) == {
            "services": ["platform", "namespace"],
            "username": "u",
            "password": "p",
        }

    def test_rejected_credentials(self):
        cluster = FakeOneFS(login_status=401)
        with pytest.raises(AuthenticationFailed):
            SessionAuthenticator(make_params()).authenticate(make_http_client(cluster))

    def test_unexpected_status(self):
        cluster = FakeOneFS(login_status=500)
        with pytest.raises(AuthenticateError) as exc_info:
            SessionAuthenticator(make_params()).authenticate(make_http_client(cluster))
        assert str(exc_info.value) == "authenticate error. response-"
        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "login rejected"

    def test_missing_session_id(self):
        cluster = FakeOneFS(session_id="")
        with pytest.raises(SessionTokenMissing):
            SessionAuthenticator(make_params()).authenticate(make_http_client(cluster))

    def test_missing_csrf_token_is_not_fatal(self, caplog):
        cluster = FakeOneFS(csrf_token="")
        session = SessionAuthenticator(make_params()).authenticate(make_http_client(cluster))
        assert session.cookie == "isisessid=ABC123"
        assert session.csrf_token == ""
        assert "Anti-CSRF Token not retrieved" in caplog.text


class TestSessionStore:
    def test_replace_and_snapshot(self):
        store = SessionStore()
        assert store.snapshot() == Session()
        store.replace(Session("isisessid=1", "c", "r"))
        assert store.auth_token == "isisessid=1"
        assert store.csrf_token == "c"
        assert store.referer == "r"

    def test_setters_update_single_fields(self):
        store = SessionStore(Session("isisessid=1", "c", "r"))
        store.auth_token = "isisessid=2"
        store.csrf_token = "d"
        store.referer = "s"
        assert store.snapshot() == Session("isisessid=2", "d", "s")

    def test_clear(self):
        store = SessionStore(Session("isisessid=1", "c", "r"))
        store.clear()
        assert store.snapshot() == Session()

    def test_snapshots_are_never_mixed(self):
        store = SessionStore(Session("isisessid=old", "old", "old"))
        seen = []

        def writer():
            for i in range(200):
                store.replace(Session(f"isisessid={i}", str(i), str(i)))

        def reader():
            for _ in range(200):
                seen.append(store.snapshot())

        threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        for session in seen:
            assert session.cookie.split("=", 1)[1] == session.csrf_token == session.referer


class TestIsilonSessionAuth:
    def test_headers_attached_from_store(self):
        store = SessionStore(Session("isisessid=ABC123", "XYZ", ENDPOINT))
        request = httpx.Request("GET", f"{ENDPOINT}/platform/latest/")
        flow = IsilonSessionAuth(store).auth_flow(request)
        sent = next(flow)
        assert sent.headers["cookie"] == "isisessid=ABC123"
        assert sent.headers["x-csrf-token"] == "XYZ"
        assert sent.headers["referer"] == ENDPOINT

    def test_no_session_sends_request_unchanged(self):
        request = httpx.Request("GET", f"{ENDPOINT}/platform/latest/")
        sent = next(IsilonSessionAuth(SessionStore()).auth_flow(request))
        assert "cookie" not in sent.headers
        assert "x-csrf-token" not in sent.headers
