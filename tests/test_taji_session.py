"""Tests for Taji100 session management."""

from unittest.mock import Mock

import pytest
import responses
from responses import matchers

from tajuploader.auth.credential_store import (
    CredentialStore,
    SINK_CSRF,
    SINK_PARTICIPANT,
    SINK_SESSION,
)
from tajuploader.auth.taji_session import TajiCredentials, TajiSession
from tajuploader.errors import SessionError

BASE = "https://taji100.com"
LOGIN_URL = f"{BASE}/account/login/"

LOGIN_PAGE = """
<html><body>
<form method="post" action="/account/login/">
<input type="hidden" name="csrfmiddlewaretoken" value="login-token-123">
<input type="email" name="email">
<input type="password" name="password">
</form>
</body></html>
"""

HOME_PAGE = """
<html><body>
<a href="/participants/">Participants</a>
<a href="/participants/jane-doe-42/">My Page</a>
</body></html>
"""


class TestTajiSessionRestore:
    """Tests for adopting stored cookies."""

    @responses.activate
    def test_restore_makes_no_requests(self, tmp_path):
        """Test stored cookies are used as-is without logging in."""
        store = CredentialStore(tmp_path / "taju.env")
        store.set(SINK_CSRF, "csrf-abc")
        store.set(SINK_SESSION, "session-xyz")
        store.set(SINK_PARTICIPANT, "jane-doe-42")
        prompt = Mock()

        session = TajiSession(store, prompt=prompt)
        credentials = session.authenticate()

        assert credentials == TajiCredentials("csrf-abc", "session-xyz", "jane-doe-42")
        assert session.participant_id == "jane-doe-42"
        assert session.credentials() == credentials
        assert len(responses.calls) == 0
        prompt.assert_not_called()

    def test_participant_id_before_authenticate_raises(self, tmp_path):
        """Test the participant id is unavailable until authenticated."""
        session = TajiSession(CredentialStore(tmp_path / "taju.env"))

        with pytest.raises(SessionError):
            session.participant_id

    def test_forget_clears_stored_cookies(self, tmp_path):
        """Test forget() removes the triplet and rewrites the file."""
        store = CredentialStore(tmp_path / "taju.env")
        store.set(SINK_CSRF, "csrf-abc")
        store.set(SINK_SESSION, "session-xyz")
        store.set(SINK_PARTICIPANT, "jane-doe-42")
        store.set("SOURCE_CLIENT_ID", "12345")

        TajiSession(store).forget()

        reloaded = CredentialStore(store.path).load()
        assert not reloaded.has(SINK_CSRF)
        assert not reloaded.has(SINK_SESSION)
        assert not reloaded.has(SINK_PARTICIPANT)
        assert reloaded.get("SOURCE_CLIENT_ID") == "12345"


class TestTajiSessionLogin:
    """Tests for the interactive login."""

    def setup_method(self):
        """Set up test fixtures."""
        self.prompt = Mock(side_effect=["jane@example.com", "hunter2"])

    @responses.activate
    def test_login_stores_cookies_and_participant(self, tmp_path):
        """Test a successful login populates the store."""
        responses.add(
            responses.GET, LOGIN_URL, body=LOGIN_PAGE, status=200,
            headers={"Set-Cookie": "csrftoken=csrf-new; Path=/"},
        )
        responses.add(
            responses.POST,
            LOGIN_URL,
            status=200,
            body="<html>welcome</html>",
            headers={"Set-Cookie": "sessionid=session-new; Path=/"},
            match=[
                matchers.urlencoded_params_matcher({
                    "csrfmiddlewaretoken": "login-token-123",
                    "email": "jane@example.com",
                    "password": "hunter2",
                }),
                matchers.header_matcher({"Referer": LOGIN_URL}),
            ],
        )
        responses.add(responses.GET, f"{BASE}/", body=HOME_PAGE, status=200)
        store = CredentialStore(tmp_path / "taju.env")

        session = TajiSession(store, prompt=self.prompt)
        credentials = session.authenticate()

        assert credentials == TajiCredentials("csrf-new", "session-new", "jane-doe-42")
        assert store.get(SINK_CSRF) == "csrf-new"
        assert store.get(SINK_SESSION) == "session-new"
        assert store.get(SINK_PARTICIPANT) == "jane-doe-42"
        assert session.participant_id == "jane-doe-42"
        assert self.prompt.call_count == 2

    @responses.activate
    def test_saved_login_restores_without_prompt(self, tmp_path):
        """Test cookies from a login survive save/load and skip the next login."""
        responses.add(
            responses.GET, LOGIN_URL, body=LOGIN_PAGE, status=200,
            headers={"Set-Cookie": "csrftoken=csrf-new; Path=/"},
        )
        responses.add(
            responses.POST, LOGIN_URL, body="<html>welcome</html>", status=200,
            headers={"Set-Cookie": "sessionid=session-new; Path=/"},
        )
        responses.add(responses.GET, f"{BASE}/", body=HOME_PAGE, status=200)
        path = tmp_path / "taju.env"
        store = CredentialStore(path)

        first = TajiSession(store, prompt=self.prompt)
        logged_in = first.authenticate()
        assert store.save() is True
        first.close()
        calls_after_login = len(responses.calls)

        prompt = Mock()
        second = TajiSession(CredentialStore(path).load(), prompt=prompt)
        restored = second.authenticate()

        assert restored == logged_in
        assert second.credentials() == logged_in
        prompt.assert_not_called()
        assert len(responses.calls) == calls_after_login

    @responses.activate
    def test_rejected_login_raises(self, tmp_path):
        """Test a login that sets no session cookie fails."""
        responses.add(
            responses.GET, LOGIN_URL, body=LOGIN_PAGE, status=200,
            headers={"Set-Cookie": "csrftoken=csrf-new; Path=/"},
        )
        responses.add(responses.POST, LOGIN_URL, body=LOGIN_PAGE, status=200)
        store = CredentialStore(tmp_path / "taju.env")

        with pytest.raises(SessionError):
            TajiSession(store, prompt=self.prompt).authenticate()

        assert not store.has(SINK_SESSION)

    @responses.activate
    def test_login_page_without_token_raises(self, tmp_path):
        """Test an unparseable login page becomes SessionError."""
        responses.add(responses.GET, LOGIN_URL, body="<html></html>", status=200)

        with pytest.raises(SessionError):
            TajiSession(CredentialStore(tmp_path / "taju.env"), prompt=self.prompt).authenticate()

        self.prompt.assert_not_called()

    @responses.activate
    def test_site_unreachable_raises(self, tmp_path):
        """Test transport errors during login become SessionError."""
        responses.add(responses.GET, LOGIN_URL, status=503)

        with pytest.raises(SessionError):
            TajiSession(CredentialStore(tmp_path / "taju.env"), prompt=self.prompt).authenticate()
